"""
Supabase auth adapter.

Only the password flows are used here: sign in, sign up, session refresh and
sign out. A fresh client is created per call because the client keeps the
current session in memory and this app serves many users from one process.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from flask import current_app
from supabase import AuthError, Client, create_client

from services.errors import AuthProviderError

logger = logging.getLogger(__name__)


@dataclass
class ProviderSession:
    access_token: str
    refresh_token: Optional[str]
    user_id: Optional[str] = None
    email: Optional[str] = None


@dataclass
class SignUpResult:
    user_id: Optional[str]
    email: str
    needs_confirmation: bool


class SupabaseAuth:
    def __init__(self, url: str, anon_key: str):
        self.url = url
        self.anon_key = anon_key

    def _client(self) -> Client:
        if not self.url or not self.anon_key:
            raise AuthProviderError("Authentication is not configured")
        return create_client(self.url, self.anon_key)

    @staticmethod
    def _to_session(response) -> Optional[ProviderSession]:
        sess = getattr(response, "session", None)
        if sess is None or not getattr(sess, "access_token", None):
            return None
        user = getattr(response, "user", None) or getattr(sess, "user", None)
        return ProviderSession(
            access_token=sess.access_token,
            refresh_token=getattr(sess, "refresh_token", None),
            user_id=getattr(user, "id", None),
            email=getattr(user, "email", None),
        )

    def sign_in(self, email: str, password: str) -> ProviderSession:
        try:
            response = self._client().auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            logger.warning(f"Provider sign-in rejected for {email}: {e}")
            raise AuthProviderError(getattr(e, "message", None) or str(e)) from e

        provider_session = self._to_session(response)
        if provider_session is None:
            logger.error("No session returned after login")
            raise AuthProviderError("No session returned after login")
        return provider_session

    def sign_up(self, email: str, password: str, full_name: str = "", redirect_to: Optional[str] = None) -> SignUpResult:
        options = {"data": {"full_name": full_name}}
        if redirect_to:
            options["email_redirect_to"] = redirect_to
        try:
            response = self._client().auth.sign_up({"email": email, "password": password, "options": options})
        except AuthError as e:
            logger.warning(f"Provider sign-up rejected for {email}: {e}")
            raise AuthProviderError(getattr(e, "message", None) or str(e)) from e

        user = getattr(response, "user", None)
        # An already-registered address comes back as a user with no identities
        identities = getattr(user, "identities", None) if user is not None else None
        if user is not None and identities is not None and len(identities) == 0:
            raise AuthProviderError("User already registered")

        return SignUpResult(
            user_id=getattr(user, "id", None),
            email=email,
            needs_confirmation=getattr(response, "session", None) is None,
        )

    def refresh(self, refresh_token: str) -> ProviderSession:
        try:
            response = self._client().auth.refresh_session(refresh_token)
        except AuthError as e:
            raise AuthProviderError(getattr(e, "message", None) or str(e)) from e
        provider_session = self._to_session(response)
        if provider_session is None:
            raise AuthProviderError("Provider session could not be refreshed")
        return provider_session

    def sign_out(self, access_token: Optional[str], refresh_token: Optional[str] = None) -> None:
        """Best effort; the local session is cleared regardless."""
        if not access_token or not refresh_token:
            return
        try:
            client = self._client()
            client.auth.set_session(access_token, refresh_token)
            client.auth.sign_out()
        except Exception as e:
            logger.warning(f"Provider sign-out failed: {e}")


def get_auth_provider() -> SupabaseAuth:
    provider = current_app.extensions.get("auth_provider")
    if provider is None:
        provider = SupabaseAuth(current_app.config["SUPABASE_URL"], current_app.config["SUPABASE_ANON_KEY"])
        current_app.extensions["auth_provider"] = provider
    return provider
