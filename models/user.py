"""
User and token models.

The app has no database; the signed-in user is rebuilt from the profile the
backend returned at token exchange time and kept in the session.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from flask_login import UserMixin


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class UserProfile:
    id: str
    email: str
    name: str
    credits: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]]) -> "UserProfile":
        data = data or {}
        return cls(
            id=str(data.get("id", "")),
            email=data.get("email") or "",
            name=data.get("name") or data.get("full_name") or "",
            credits=_to_int(data.get("credits")),
            created_at=data.get("created_at") or data.get("memberSince"),
            updated_at=data.get("updated_at"),
        )

    @property
    def member_since(self) -> Optional[str]:
        return self.created_at

    @property
    def display_name(self) -> str:
        return self.name or self.email


@dataclass
class AuthTokens:
    """Backend API token plus its optional refresh token.

    ``expires_at`` is a unix timestamp in seconds.
    """
    access_token: str
    refresh_token: Optional[str]
    expires_at: float

    def is_expired(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return now >= self.expires_at

    @classmethod
    def issued_now(cls, access_token: str, refresh_token: Optional[str], expires_in: int) -> "AuthTokens":
        return cls(access_token, refresh_token, time.time() + int(expires_in))


class SessionUser(UserMixin):
    """Flask-Login user backed by the stored backend profile."""

    def __init__(self, data: Dict[str, Any]):
        self.data = dict(data)
        self.profile = UserProfile.from_api(self.data)
        self.id = self.profile.id or self.profile.email

    @property
    def email(self):
        return self.profile.email

    @property
    def name(self):
        return self.profile.display_name

    @property
    def credits(self):
        return self.profile.credits

    def get_id(self):
        return str(self.id)
