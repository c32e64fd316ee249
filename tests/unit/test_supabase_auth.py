"""Unit tests for the Supabase adapter with the client mocked out."""
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from supabase import AuthError

from services.errors import AuthProviderError
from services.supabase_auth import SupabaseAuth


@pytest.fixture
def supabase_client(mocker):
    client = MagicMock()
    mocker.patch("services.supabase_auth.create_client", return_value=client)
    return client


def _auth_response(access="sb-access", refresh="sb-refresh", user_id="u1"):
    user = SimpleNamespace(id=user_id, email="a@b.co", identities=[{"id": "i"}])
    return SimpleNamespace(session=SimpleNamespace(access_token=access, refresh_token=refresh), user=user)


class TestSupabaseAuth:

    def test_not_configured(self):
        with pytest.raises(AuthProviderError, match="Authentication is not configured"):
            SupabaseAuth("", "").sign_in("a@b.co", "secret")

    def test_sign_in(self, supabase_client):
        supabase_client.auth.sign_in_with_password.return_value = _auth_response()
        result = SupabaseAuth("http://sb", "anon").sign_in("a@b.co", "secret")

        supabase_client.auth.sign_in_with_password.assert_called_once_with({"email": "a@b.co", "password": "secret"})
        assert result.access_token == "sb-access"
        assert result.refresh_token == "sb-refresh"
        assert result.user_id == "u1"

    def test_sign_in_rejected(self, supabase_client):
        supabase_client.auth.sign_in_with_password.side_effect = AuthError("Invalid login credentials", None)
        with pytest.raises(AuthProviderError, match="Invalid login credentials"):
            SupabaseAuth("http://sb", "anon").sign_in("a@b.co", "wrong")

    def test_sign_in_without_session(self, supabase_client):
        supabase_client.auth.sign_in_with_password.return_value = SimpleNamespace(session=None, user=None)
        with pytest.raises(AuthProviderError, match="No session returned after login"):
            SupabaseAuth("http://sb", "anon").sign_in("a@b.co", "secret")

    def test_sign_up_needs_confirmation(self, supabase_client):
        user = SimpleNamespace(id="u2", identities=[{"id": "i"}])
        supabase_client.auth.sign_up.return_value = SimpleNamespace(user=user, session=None)

        result = SupabaseAuth("http://sb", "anon").sign_up("a@b.co", "secret", full_name="Ada", redirect_to="http://x/dashboard")

        payload = supabase_client.auth.sign_up.call_args[0][0]
        assert payload["options"] == {"data": {"full_name": "Ada"}, "email_redirect_to": "http://x/dashboard"}
        assert result.needs_confirmation
        assert result.user_id == "u2"

    def test_sign_up_existing_user(self, supabase_client):
        user = SimpleNamespace(id="u2", identities=[])
        supabase_client.auth.sign_up.return_value = SimpleNamespace(user=user, session=None)
        with pytest.raises(AuthProviderError, match="User already registered"):
            SupabaseAuth("http://sb", "anon").sign_up("a@b.co", "secret")

    def test_refresh(self, supabase_client):
        supabase_client.auth.refresh_session.return_value = _auth_response(access="new")
        assert SupabaseAuth("http://sb", "anon").refresh("sb-refresh").access_token == "new"
        supabase_client.auth.refresh_session.assert_called_once_with("sb-refresh")

    def test_sign_out_swallows_provider_errors(self, supabase_client):
        supabase_client.auth.sign_out.side_effect = AuthError("gone", None)
        SupabaseAuth("http://sb", "anon").sign_out("a", "r")
        supabase_client.auth.set_session.assert_called_once_with("a", "r")

    def test_sign_out_swallows_transport_errors(self, supabase_client):
        supabase_client.auth.set_session.side_effect = httpx.ConnectError("supabase down")
        SupabaseAuth("http://sb", "anon").sign_out("a", "r")
        supabase_client.auth.sign_out.assert_not_called()

    def test_sign_out_without_tokens_skips_client(self, supabase_client):
        SupabaseAuth("http://sb", "anon").sign_out(None)
        supabase_client.auth.sign_out.assert_not_called()
