"""
Root pytest configuration and fixtures.

The backend service and the auth provider are replaced by in-process fakes:
``FakeBackend`` stands in for the ``requests`` session the backend client and
the API proxy use, and a mock provider replaces Supabase.
"""
import json
import time
from unittest.mock import MagicMock
from urllib.parse import urlsplit

import pytest
import requests

from config import TestingConfig

BACKEND_URL = TestingConfig.API_BASE_URL

PROFILE = {
    "id": "user-1",
    "email": "ada@example.com",
    "name": "Ada Lovelace",
    "credits": 42,
    "created_at": "2025-01-05T10:00:00Z",
}


def make_response(status_code=200, body=None, headers=None):
    """Build a real ``requests.Response`` carrying a JSON (or raw text) body."""
    response = requests.Response()
    response.status_code = status_code
    if isinstance(body, (dict, list)):
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = (body or "").encode("utf-8")
    response.encoding = "utf-8"
    for name, value in (headers or {}).items():
        response.headers[name] = value
    return response


class FakeBackend:
    """Routes ``request(method, url, ...)`` calls to canned responses.

    A route maps to a single response (served forever) or a list that is
    consumed in order. Exceptions in the list are raised instead of returned.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, *responses):
        self.routes[(method.upper(), path)] = list(responses) if len(responses) > 1 else responses[0]
        return self

    def request(self, method, url, **kwargs):
        path = urlsplit(url).path
        self.calls.append({"method": method.upper(), "path": path, "url": url, **kwargs})
        route = self.routes.get((method.upper(), path))
        if route is None:
            return make_response(404, {"message": f"No route for {method} {path}"})
        if isinstance(route, list):
            item = route.pop(0) if len(route) > 1 else route[0]
        else:
            item = route
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(method, url, **kwargs)
        return item

    def calls_to(self, path, method=None):
        return [c for c in self.calls if c["path"] == path and (method is None or c["method"] == method.upper())]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def provider():
    """Mock auth provider with the SupabaseAuth interface."""
    mock = MagicMock()
    mock.sign_in.return_value = MagicMock(access_token="provider-access", refresh_token="provider-refresh")
    mock.refresh.return_value = MagicMock(access_token="provider-access-2", refresh_token="provider-refresh-2")
    return mock


@pytest.fixture
def app(backend, provider):
    """Create and configure a test Flask application."""
    from app import create_app

    test_app = create_app(TestingConfig)
    test_app.extensions["backend_http"] = backend
    test_app.extensions["auth_provider"] = provider
    yield test_app


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture
def logged_in_client(client):
    """Client whose session holds a valid API token and profile."""
    with client.session_transaction() as sess:
        sess["api_token"] = "api-token"
        sess["refresh_token"] = "api-refresh"
        sess["token_expiry"] = time.time() + 3600
        sess["user_data"] = dict(PROFILE)
        sess["supabase_session"] = {"access_token": "provider-access", "refresh_token": "provider-refresh"}
        sess["_user_id"] = PROFILE["id"]
        sess["_fresh"] = True
    return client


@pytest.fixture
def json_response():
    return make_response


@pytest.fixture
def profile():
    return dict(PROFILE)
