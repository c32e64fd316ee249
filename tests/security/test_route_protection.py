"""
Security Tests: route protection, session restoration and CSRF.
"""
import time
from urllib.parse import parse_qs, urlsplit

import pytest

from utils.auth import safe_return_to


def _login_target(response):
    location = urlsplit(response.headers["Location"])
    return location.path, parse_qs(location.query)


@pytest.mark.security
class TestProtectedRoutes:

    @pytest.mark.parametrize("path", [
        "/dashboard",
        "/dashboard/summaries",
        "/dashboard/summaries/s1",
        "/dashboard/meetings/new",
        "/dashboard/credits",
    ])
    def test_anonymous_redirected_to_login(self, client, backend, path):
        response = client.get(path)

        assert response.status_code == 302
        assert _login_target(response) == ("/login", {"returnTo": [path]})
        assert backend.calls == []

    def test_query_string_kept_in_return_to(self, client):
        response = client.get("/dashboard/summaries?page=3")
        assert _login_target(response)[1] == {"returnTo": ["/dashboard/summaries?page=3"]}

    def test_json_clients_get_401(self, client):
        response = client.get("/dashboard/summaries/s1/status", headers={"Accept": "application/json"})
        assert response.status_code == 401
        assert response.json == {"success": False, "error": "Authentication required"}

    def test_public_pages_open(self, client):
        for path in ("/", "/privacy", "/terms", "/login", "/signup", "/health/live"):
            assert client.get(path).status_code == 200, path

    def test_app_entry_point(self, client):
        assert client.get("/app").headers["Location"].endswith("/signup")

    def test_landing_redirects_signed_in_user(self, logged_in_client):
        response = logged_in_client.get("/")
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/dashboard")

    def test_forged_user_id_without_token_rejected(self, client):
        with client.session_transaction() as sess:
            sess["_user_id"] = "user-1"
            sess["_fresh"] = True
        response = client.get("/dashboard")
        assert response.status_code == 302


@pytest.mark.security
class TestSessionRestoration:

    def test_stale_token_restored_from_provider_session(self, client, backend, provider, json_response, profile):
        with client.session_transaction() as sess:
            sess["api_token"] = "old"
            sess["token_expiry"] = time.time() - 10
            sess["user_data"] = dict(profile)
            sess["supabase_session"] = {"access_token": "provider-access", "refresh_token": "provider-refresh"}
            sess["_user_id"] = profile["id"]
        backend.add("POST", "/api/user/auth", json_response(200, {"success": True, "data": dict(profile, token="fresh")}))
        backend.add("GET", "/api/user/history", json_response(200, {"data": {"items": []}}))

        response = client.get("/dashboard/summaries")

        assert response.status_code == 200
        provider.refresh.assert_called_once_with("provider-refresh")
        assert backend.calls_to("/api/user/history")[0]["headers"]["Authorization"] == "Bearer fresh"

    def test_stale_token_without_any_refresh_path(self, client, backend, profile):
        with client.session_transaction() as sess:
            sess["api_token"] = "old"
            sess["token_expiry"] = time.time() - 10
            sess["user_data"] = dict(profile)
            sess["_user_id"] = profile["id"]

        response = client.get("/dashboard")

        assert response.status_code == 302
        assert _login_target(response)[0] == "/login"
        assert backend.calls == []

    def test_stale_token_with_backend_refresh_token(self, client, backend, json_response, profile):
        with client.session_transaction() as sess:
            sess["api_token"] = "old"
            sess["refresh_token"] = "api-refresh"
            sess["token_expiry"] = time.time() - 10
            sess["user_data"] = dict(profile)
            sess["_user_id"] = profile["id"]
        backend.add("POST", "/api/user/refresh", json_response(200, {"accessToken": "renewed"}))
        backend.add("GET", "/api/user/dashboard", json_response(200, {"data": {"user": profile}}))

        response = client.get("/dashboard")

        assert response.status_code == 200
        assert backend.calls_to("/api/user/dashboard")[0]["headers"]["Authorization"] == "Bearer renewed"


@pytest.mark.security
class TestReturnToValidation:

    @pytest.mark.parametrize("value,expected", [
        ("/dashboard/summaries", "/dashboard/summaries"),
        ("/dashboard?page=2", "/dashboard?page=2"),
        (None, "/dashboard"),
        ("", "/dashboard"),
        ("https://evil.example/", "/dashboard"),
        ("//evil.example", "/dashboard"),
        ("/\\evil.example", "/dashboard"),
        ("javascript:alert(1)", "/dashboard"),
    ])
    def test_safe_return_to(self, value, expected):
        assert safe_return_to(value) == expected


@pytest.mark.security
class TestCsrf:

    def test_forms_require_token(self, app, client, provider):
        app.config["WTF_CSRF_ENABLED"] = True
        response = client.post("/login", data={"email": "a@b.co", "password": "x"})
        assert response.status_code == 400
        provider.sign_in.assert_not_called()

    def test_api_proxy_exempt(self, app, client, backend, json_response):
        app.config["WTF_CSRF_ENABLED"] = True
        backend.add("POST", "/api/summary", json_response(200, {"success": True}))

        response = client.post("/api/summary", json={"transcript_id": "t1"}, headers={"Authorization": "Bearer x"})

        assert response.status_code == 200
        assert len(backend.calls_to("/api/summary")) == 1
