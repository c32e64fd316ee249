"""
Login, signup and logout orchestration.

A login is two steps: the auth provider verifies the password and returns a
session, then the backend trades that session's access token for an API
token. The user only counts as signed in once both have succeeded.
"""

import logging
from typing import Any, Dict, Optional

from flask_login import login_user, logout_user

from models import SessionUser
from services import token_store
from services.backend_client import get_backend_client
from services.errors import AuthProviderError, BackendError
from services.supabase_auth import SignUpResult, get_auth_provider

logger = logging.getLogger(__name__)

GENERIC_LOGIN_ERROR = "An error occurred during login"


class LoginFailed(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _reset_auth_state() -> None:
    provider_session = token_store.load_provider_session()
    try:
        if provider_session is not None:
            get_auth_provider().sign_out(*provider_session)
    finally:
        token_store.clear_tokens()
        logout_user()


def login(email: str, password: str, remember: bool = False) -> Dict[str, Any]:
    email = (email or "").strip().lower()
    logger.info(f"Logging in with email: {email}")
    if not email or not password:
        raise LoginFailed("Please enter both email and password")

    try:
        provider_session = get_auth_provider().sign_in(email, password)
        token_store.store_provider_session(provider_session.access_token, provider_session.refresh_token)

        _, user_data = get_backend_client().exchange_token(provider_session.access_token)
        login_user(SessionUser(user_data), remember=remember)
        logger.info(f"Login and token exchange successful for {email}")
        return user_data
    except (AuthProviderError, BackendError) as e:
        logger.warning(f"Login failed for {email}: {e}")
        _reset_auth_state()
        raise LoginFailed(getattr(e, "message", None) or GENERIC_LOGIN_ERROR) from e
    except Exception as e:
        logger.exception(f"Unexpected login error for {email}")
        _reset_auth_state()
        raise LoginFailed(GENERIC_LOGIN_ERROR) from e


def signup(email: str, password: str, full_name: str = "", redirect_to: Optional[str] = None) -> SignUpResult:
    email = (email or "").strip().lower()
    if not email or not password:
        raise AuthProviderError("Email and password are required")
    result = get_auth_provider().sign_up(email, password, full_name=full_name.strip(), redirect_to=redirect_to)
    logger.info(f"Signup submitted for {email} (confirmation required: {result.needs_confirmation})")
    return result


def logout() -> None:
    _reset_auth_state()
    logger.info("User signed out")


def restore_session() -> bool:
    """Re-issue the API token from a still-valid provider session.

    Returns True when the user ends up with a usable API token.
    """
    if token_store.has_valid_api_token():
        return True
    if token_store.load_provider_session() is None:
        return False
    try:
        token = get_backend_client().refresh_session()
    except (AuthProviderError, BackendError) as e:
        logger.warning(f"Could not restore session: {e}")
        token_store.clear_tokens()
        logout_user()
        return False

    user_data = token_store.load_user_data()
    if user_data:
        login_user(SessionUser(user_data))
    return bool(token)
