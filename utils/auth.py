"""
Route protection.

Dashboard pages need both a signed-in user and a backend API token. Visitors
without them are sent to the login page with ``returnTo`` set so they land
back where they started.
"""

import logging
from functools import wraps
from urllib.parse import urlsplit

from flask import jsonify, redirect, request, url_for
from flask_login import current_user

from services import token_store

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES = ("/dashboard",)
AUTH_PAGES = ("/login", "/signup")
UNGUARDED_PREFIXES = ("/static", "/api", "/health", "/favicon.ico")

DEFAULT_LANDING = "/dashboard"


def safe_return_to(value, default=DEFAULT_LANDING):
    """Only same-site absolute paths are honoured as redirect targets."""
    if not value or not isinstance(value, str):
        return default
    if not value.startswith("/") or value.startswith("//") or "\\" in value:
        return default
    parts = urlsplit(value)
    if parts.scheme or parts.netloc:
        return default
    return value


def is_fully_authenticated():
    return current_user.is_authenticated and token_store.has_valid_api_token()


def _login_redirect():
    target = request.full_path if request.query_string else request.path
    return redirect(url_for("auth.login", returnTo=target.rstrip("?")))


def wants_json():
    return request.is_json or request.accept_mimetypes.best == "application/json"


def _ensure_session():
    """True when the request may proceed as an authenticated user."""
    if is_fully_authenticated():
        return True

    # Provider session survives but the API token is gone or stale
    from services.auth_service import restore_session

    if token_store.load_provider_session() is not None and restore_session():
        return current_user.is_authenticated

    # Stale API token with a backend refresh token: the client refreshes on first use
    tokens = token_store.load_tokens()
    return bool(current_user.is_authenticated and tokens is not None and tokens.refresh_token)


def api_token_required(f):
    """Decorator for views that call the backend on the user's behalf."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _ensure_session():
            logger.info(f"Not authenticated, redirecting to login from {request.path}")
            if wants_json():
                return jsonify({"success": False, "error": "Authentication required"}), 401
            return _login_redirect()
        return f(*args, **kwargs)

    return decorated_function


def guard_routes():
    """before_request hook mirroring the protected/auth route split."""
    path = request.path
    if path.startswith(UNGUARDED_PREFIXES):
        return None

    if path.startswith(PROTECTED_PREFIXES):
        if not _ensure_session():
            logger.info(f"Unauthenticated request for {path}, redirecting to login")
            if wants_json():
                return jsonify({"success": False, "error": "Authentication required"}), 401
            return _login_redirect()
        return None

    if path in AUTH_PAGES and is_fully_authenticated():
        return redirect(safe_return_to(request.args.get("returnTo")))

    return None
