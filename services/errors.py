"""
Exceptions raised while talking to the backend service and the auth provider.
"""

from typing import Any, Optional

SESSION_EXPIRED_MESSAGE = "Session expired. Please log in again."


class BackendError(Exception):
    """A backend call failed.

    ``status_code`` is None when the request never got a response
    (connection refused, timeout).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class TokenExchangeError(BackendError):
    """The backend refused to issue an API token for a provider session."""


class SessionExpiredError(Exception):
    def __init__(self, message: str = SESSION_EXPIRED_MESSAGE):
        super().__init__(message)
        self.message = message


class AuthProviderError(Exception):
    """Sign-in / sign-up failure reported by the auth provider."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
