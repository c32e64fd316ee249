"""
Per-user auth state kept in the signed Flask session cookie.

Holds the backend API token (plus refresh token and expiry), the profile the
backend returned for it, and the auth provider session used to obtain a new
API token when the backend one can't be refreshed.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from flask import session

from models import AuthTokens

logger = logging.getLogger(__name__)

API_TOKEN_KEY = "api_token"
REFRESH_TOKEN_KEY = "refresh_token"
TOKEN_EXPIRY_KEY = "token_expiry"
USER_DATA_KEY = "user_data"
SUPABASE_SESSION_KEY = "supabase_session"

AUTH_KEYS = (API_TOKEN_KEY, REFRESH_TOKEN_KEY, TOKEN_EXPIRY_KEY, USER_DATA_KEY, SUPABASE_SESSION_KEY)

# Never persisted alongside the profile
_TOKEN_FIELDS = ("token", "refreshToken")


def store_tokens(tokens: AuthTokens) -> None:
    session[API_TOKEN_KEY] = tokens.access_token
    if tokens.refresh_token:
        session[REFRESH_TOKEN_KEY] = tokens.refresh_token
    else:
        session.pop(REFRESH_TOKEN_KEY, None)
    session[TOKEN_EXPIRY_KEY] = tokens.expires_at


def load_tokens() -> Optional[AuthTokens]:
    token = session.get(API_TOKEN_KEY)
    if not token:
        return None
    try:
        expires_at = float(session.get(TOKEN_EXPIRY_KEY))
    except (TypeError, ValueError):
        # Unknown expiry is treated as already expired
        expires_at = 0.0
    return AuthTokens(token, session.get(REFRESH_TOKEN_KEY), expires_at)


def clear_api_tokens() -> None:
    for key in (API_TOKEN_KEY, REFRESH_TOKEN_KEY, TOKEN_EXPIRY_KEY):
        session.pop(key, None)


def clear_tokens() -> None:
    """Drop every piece of auth state."""
    for key in AUTH_KEYS:
        session.pop(key, None)


def store_user_data(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {k: v for k, v in (data or {}).items() if k not in _TOKEN_FIELDS}
    session[USER_DATA_KEY] = cleaned
    return cleaned


def load_user_data() -> Optional[Dict[str, Any]]:
    data = session.get(USER_DATA_KEY)
    return data if isinstance(data, dict) else None


def update_credits(credits: int) -> None:
    data = load_user_data()
    if data is not None:
        data["credits"] = credits
        session[USER_DATA_KEY] = data


def store_provider_session(access_token: str, refresh_token: Optional[str]) -> None:
    session[SUPABASE_SESSION_KEY] = {"access_token": access_token, "refresh_token": refresh_token}


def load_provider_session() -> Optional[Tuple[str, Optional[str]]]:
    data = session.get(SUPABASE_SESSION_KEY)
    if not isinstance(data, dict) or not data.get("access_token"):
        return None
    return data["access_token"], data.get("refresh_token")


def has_valid_api_token(now: Optional[float] = None) -> bool:
    tokens = load_tokens()
    return tokens is not None and not tokens.is_expired(now)


def auth_header() -> Dict[str, str]:
    tokens = load_tokens()
    if tokens is None:
        return {}
    return {"Authorization": f"Bearer {tokens.access_token}"}
