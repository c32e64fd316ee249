"""Unit tests for the session-backed token store."""
import time

import pytest

from models import AuthTokens
from services import token_store


@pytest.fixture
def ctx(app):
    with app.test_request_context():
        yield


@pytest.mark.usefixtures("ctx")
class TestTokenStore:

    def test_round_trip_tokens(self):
        expires = time.time() + 60
        token_store.store_tokens(AuthTokens("a", "r", expires))

        tokens = token_store.load_tokens()
        assert tokens == AuthTokens("a", "r", expires)
        assert token_store.has_valid_api_token()
        assert token_store.auth_header() == {"Authorization": "Bearer a"}

    def test_no_token(self):
        assert token_store.load_tokens() is None
        assert not token_store.has_valid_api_token()
        assert token_store.auth_header() == {}

    def test_storing_without_refresh_drops_old_one(self):
        token_store.store_tokens(AuthTokens("a", "r", time.time() + 60))
        token_store.store_tokens(AuthTokens("b", None, time.time() + 60))
        assert token_store.load_tokens().refresh_token is None

    def test_unparseable_expiry_counts_as_expired(self):
        from flask import session

        session["api_token"] = "a"
        session["token_expiry"] = "soon"
        tokens = token_store.load_tokens()
        assert tokens.expires_at == 0.0
        assert not token_store.has_valid_api_token()

    def test_expiry_boundary(self):
        token_store.store_tokens(AuthTokens("a", None, 1000.0))
        assert token_store.has_valid_api_token(now=999.9)
        assert not token_store.has_valid_api_token(now=1000.0)

    def test_user_data_strips_tokens(self):
        stored = token_store.store_user_data({"id": "u", "token": "t", "refreshToken": "r", "credits": 3})
        assert stored == {"id": "u", "credits": 3}
        assert token_store.load_user_data() == {"id": "u", "credits": 3}

    def test_update_credits(self):
        token_store.store_user_data({"id": "u", "credits": 3})
        token_store.update_credits(10)
        assert token_store.load_user_data()["credits"] == 10

    def test_update_credits_without_profile_is_noop(self):
        token_store.update_credits(10)
        assert token_store.load_user_data() is None

    def test_provider_session(self):
        assert token_store.load_provider_session() is None
        token_store.store_provider_session("pa", "pr")
        assert token_store.load_provider_session() == ("pa", "pr")

    def test_clear_api_tokens_keeps_profile(self):
        token_store.store_tokens(AuthTokens("a", "r", time.time() + 60))
        token_store.store_user_data({"id": "u"})
        token_store.clear_api_tokens()
        assert token_store.load_tokens() is None
        assert token_store.load_user_data() == {"id": "u"}

    def test_clear_tokens_removes_everything(self):
        token_store.store_tokens(AuthTokens("a", "r", time.time() + 60))
        token_store.store_user_data({"id": "u"})
        token_store.store_provider_session("pa", "pr")
        token_store.clear_tokens()
        assert token_store.load_tokens() is None
        assert token_store.load_user_data() is None
        assert token_store.load_provider_session() is None
