"""
Application configuration.

Values are read from the environment (a local .env file is loaded first) so the
same build runs against a local backend in development and the hosted one in
production.
"""

import os
import logging

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:3001"


def _env_int(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} value: {raw!r}, using default: {default}")
        return default


def _env_float(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid {name} value: {raw!r}, using default: {default}")
        return default


def _env_bool(name, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _clean_base_url(url):
    url = (url or "").strip() or DEFAULT_API_BASE_URL
    return url.rstrip("/")


class Config:
    SECRET_KEY = os.getenv("SESSION_SECRET", "dev-secret-change-me")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", False)

    # Backend service
    API_BASE_URL = _clean_base_url(os.getenv("API_BASE_URL"))
    API_TIMEOUT = _env_float("API_TIMEOUT", 15.0)
    API_TOKEN_TTL = _env_int("API_TOKEN_TTL", 3600)

    # Auth provider
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

    # Payments
    STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "")
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
    CREDIT_CURRENCY = os.getenv("CREDIT_CURRENCY", "CAD")

    CHROME_EXTENSION_ID = os.getenv("CHROME_EXTENSION_ID", "")

    CORS_ALLOWED_ORIGINS = [
        o.strip()
        for o in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
        if o.strip()
    ]

    # Summary polling (seconds)
    SUMMARY_POLL_INTERVAL = _env_float("SUMMARY_POLL_INTERVAL", 5.0)
    SUMMARY_LONG_POLL_TIMEOUT = _env_float("SUMMARY_LONG_POLL_TIMEOUT", 25.0)
    SUMMARY_PAGE_SIZE = _env_int("SUMMARY_PAGE_SIZE", 10)

    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    TESTING = False


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-for-testing-only"
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    API_BASE_URL = "http://backend.test"
    SUPABASE_URL = "http://supabase.test"
    SUPABASE_ANON_KEY = "anon-test-key"
    STRIPE_PUBLISHABLE_KEY = "pk_test_123"
    STRIPE_SECRET_KEY = ""
    CHROME_EXTENSION_ID = ""
    SUMMARY_LONG_POLL_TIMEOUT = 0
