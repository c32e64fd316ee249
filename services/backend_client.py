"""
HTTP client for the summary backend.

Every page in the dashboard is rendered from data this client fetches. The
client attaches the user's API token, refreshes it before it expires, and on a
401 refreshes once and replays the request. When no refresh is possible the
stored auth state is cleared and SessionExpiredError is raised so the caller
can send the user back to the login page.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import requests
from flask import current_app, g
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from models import AuthTokens
from services import token_store
from services.errors import AuthProviderError, BackendError, SessionExpiredError, TokenExchangeError

logger = logging.getLogger(__name__)

AUTH_EXCHANGE_ENDPOINT = "/api/user/auth"
REFRESH_ENDPOINT = "/api/user/refresh"

# Endpoints that must never trigger a refresh of their own
_AUTH_ENDPOINTS = {"/login", "/signup", AUTH_EXCHANGE_ENDPOINT, REFRESH_ENDPOINT}

_TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)


def is_auth_endpoint(endpoint: str) -> bool:
    return endpoint.startswith("/api/auth") or endpoint in _AUTH_ENDPOINTS


def _is_success(response) -> bool:
    return 200 <= response.status_code < 300


def _json_or_empty(response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class BackendClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        token_ttl: int = 3600,
        http: Optional[requests.Session] = None,
        provider=None,
        retry_attempts: int = 3,
        retry_wait=None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_ttl = token_ttl
        self.http = http or requests.Session()
        self.provider = provider
        self.retry_attempts = max(1, retry_attempts)
        self.retry_wait = retry_wait or wait_exponential(multiplier=0.5, max=4)

    # Transport -----------------------------------------------------------
    def _send(self, method: str, endpoint: str, *, headers: Dict[str, str], json: Any = None,
              params: Optional[Dict[str, Any]] = None):
        url = f"{self.base_url}{endpoint}"
        # Only idempotent reads are replayed after a transport failure
        attempts = self.retry_attempts if method.upper() == "GET" else 1
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(attempts),
                wait=self.retry_wait,
                retry=retry_if_exception_type(_TRANSIENT_ERRORS),
                reraise=True,
            ):
                with attempt:
                    return self.http.request(
                        method, url, headers=headers, json=json, params=params, timeout=self.timeout
                    )
        except requests.RequestException as e:
            logger.error(f"Backend request {method} {endpoint} failed: {e}")
            raise BackendError(f"Could not reach the backend service: {e}") from e

    # Core request --------------------------------------------------------
    def request(self, method: str, endpoint: str, *, json: Any = None,
                params: Optional[Dict[str, Any]] = None, auth: bool = True) -> Any:
        return self._request(method, endpoint, json=json, params=params, auth=auth, retried=False)

    def _request(self, method, endpoint, *, json, params, auth, retried):
        guarded = auth and not is_auth_endpoint(endpoint)
        if guarded:
            self._ensure_fresh_token()

        headers = {"Content-Type": "application/json"}
        if auth:
            headers.update(token_store.auth_header())

        response = self._send(method, endpoint, headers=headers, json=json, params=params)

        if response.status_code == 401 and guarded:
            if retried:
                logger.warning(f"Backend rejected refreshed token for {endpoint}")
                token_store.clear_tokens()
                raise SessionExpiredError()
            logger.info(f"Backend returned 401 for {endpoint}, refreshing token")
            self._refresh_or_expire()
            return self._request(method, endpoint, json=json, params=params, auth=auth, retried=True)

        return self._parse(response)

    @staticmethod
    def _parse(response) -> Any:
        if not _is_success(response):
            body = _json_or_empty(response)
            message = (
                body.get("message")
                or body.get("error")
                or f"API request failed with status {response.status_code}"
            )
            raise BackendError(message, status_code=response.status_code, payload=body)

        if response.status_code == 204:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise BackendError("Backend returned an invalid response", status_code=response.status_code) from e

    @staticmethod
    def _unwrap(body: Any, default_message: str) -> Any:
        if isinstance(body, dict):
            if body.get("success") is False:
                raise BackendError(body.get("message") or body.get("error") or default_message, payload=body)
            if "data" in body:
                return body["data"]
        return body

    # Token lifecycle -----------------------------------------------------
    def _ensure_fresh_token(self) -> None:
        tokens = token_store.load_tokens()
        if tokens is None or tokens.is_expired():
            self._refresh_or_expire()

    def _refresh_or_expire(self) -> str:
        try:
            return self.refresh_session()
        except (BackendError, AuthProviderError) as e:
            logger.warning(f"Token refresh failed: {e}")
            raise SessionExpiredError() from e

    def refresh_session(self) -> str:
        """Obtain a new API token.

        Uses the backend refresh token when there is one, otherwise refreshes
        the auth provider session and exchanges it again. All auth state is
        cleared when neither works.
        """
        tokens = token_store.load_tokens()
        try:
            if tokens is not None and tokens.refresh_token:
                return self._refresh_with_backend(tokens.refresh_token)

            provider_session = token_store.load_provider_session()
            if provider_session is not None and self.provider is not None:
                _, provider_refresh = provider_session
                if provider_refresh:
                    renewed = self.provider.refresh(provider_refresh)
                    token_store.store_provider_session(renewed.access_token, renewed.refresh_token)
                    token, _ = self.exchange_token(renewed.access_token)
                    return token

            raise BackendError("No refresh token available")
        except (BackendError, AuthProviderError):
            token_store.clear_tokens()
            raise

    def _refresh_with_backend(self, refresh_token: str) -> str:
        response = self._send(
            "POST",
            REFRESH_ENDPOINT,
            headers={"Content-Type": "application/json"},
            json={"refreshToken": refresh_token},
        )
        if not _is_success(response):
            raise BackendError("Failed to refresh token", status_code=response.status_code)

        body = _json_or_empty(response)
        data = body.get("data") if isinstance(body.get("data"), dict) else body
        access_token = data.get("accessToken")
        if not access_token:
            raise BackendError("Failed to refresh token", status_code=response.status_code)

        tokens = AuthTokens.issued_now(
            access_token,
            data.get("refreshToken"),
            data.get("expiresIn") or self.token_ttl,
        )
        token_store.store_tokens(tokens)
        logger.info("API token refreshed")
        return tokens.access_token

    def exchange_token(self, provider_token: str) -> Tuple[str, Dict[str, Any]]:
        """Trade an auth provider access token for a backend API token."""
        logger.info("Exchanging provider token for API token")
        try:
            response = self._send(
                "POST",
                AUTH_EXCHANGE_ENDPOINT,
                headers={"Content-Type": "application/json", "Authorization": f"Bearer {provider_token}"},
                json={"token": provider_token},
            )
            body = _json_or_empty(response)

            if not _is_success(response):
                message = body.get("message") or body.get("error") or "Failed to authenticate with backend"
                logger.error(f"Token exchange failed: {response.status_code} - {message}")
                raise TokenExchangeError(message, status_code=response.status_code, payload=body)

            user_data = body.get("data")
            if not isinstance(user_data, dict) or not user_data.get("token"):
                logger.error("Invalid token response format - missing token")
                raise TokenExchangeError("No access token received from backend", status_code=response.status_code)
        except BackendError:
            token_store.clear_api_tokens()
            raise

        tokens = AuthTokens.issued_now(
            user_data["token"],
            user_data.get("refreshToken"),
            user_data.get("expiresIn") or self.token_ttl,
        )
        token_store.store_tokens(tokens)
        stored = token_store.store_user_data(user_data)
        logger.info("Token exchange successful")
        return tokens.access_token, stored

    # Typed operations ----------------------------------------------------
    def get_user_profile(self) -> Dict[str, Any]:
        return self._unwrap(self.request("GET", "/api/user"), "Failed to fetch user profile")

    def get_history(self, limit: int = 10, offset: int = 0) -> Dict[str, Any]:
        body = self.request("GET", "/api/user/history", params={"limit": limit, "offset": offset})
        return self._unwrap(body, "Failed to fetch summary history")

    def get_summary(self, summary_id: str) -> Dict[str, Any]:
        return self._unwrap(self.request("GET", f"/api/summary/{summary_id}"), "Failed to fetch summary")

    def create_summary(self, transcript_id: str, title: Optional[str] = None,
                       custom_prompt: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"transcript_id": transcript_id}
        if title:
            payload["title"] = title
        if custom_prompt:
            payload["custom_prompt"] = custom_prompt
        return self._unwrap(self.request("POST", "/api/summary", json=payload), "Failed to create summary")

    def process_transcript(self, transcript_text: str, title: Optional[str] = None, transcript_json=None,
                           meeting_metadata: Optional[Dict[str, Any]] = None,
                           meeting_duration_minutes: Optional[float] = None,
                           should_summarize: Optional[bool] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"transcript_text": transcript_text}
        if title:
            payload["title"] = title
        if transcript_json is not None:
            payload["transcript_json"] = [
                item.to_api() if hasattr(item, "to_api") else item for item in transcript_json
            ]
        if meeting_metadata is not None:
            payload["meeting_metadata"] = meeting_metadata
        if meeting_duration_minutes is not None:
            payload["meeting_duration_minutes"] = meeting_duration_minutes
        if should_summarize is not None:
            payload["should_summarize"] = should_summarize
        return self._unwrap(self.request("POST", "/api/transcript", json=payload), "Failed to upload transcript")

    def get_dashboard(self) -> Dict[str, Any]:
        return self._unwrap(self.request("GET", "/api/user/dashboard"), "Failed to fetch dashboard data")

    def sync_user(self, token: str) -> Dict[str, Any]:
        return self._unwrap(self.request("POST", AUTH_EXCHANGE_ENDPOINT, json={"token": token}), "Failed to sync user")

    def get_products(self):
        return self._unwrap(self.request("GET", "/api/payment/products"), "Failed to fetch products")

    def create_payment_intent(self, product_id: str) -> Dict[str, Any]:
        body = self.request("POST", "/api/payment/create-payment-intent", json={"product_id": product_id})
        return self._unwrap(body, "Failed to create payment intent")


def build_backend_client(app, http=None) -> BackendClient:
    from services.supabase_auth import get_auth_provider

    return BackendClient(
        app.config["API_BASE_URL"],
        timeout=app.config["API_TIMEOUT"],
        token_ttl=app.config["API_TOKEN_TTL"],
        http=http or app.extensions.get("backend_http"),
        provider=get_auth_provider(),
    )


def get_backend_client() -> BackendClient:
    """Per-request client bound to the current user's session."""
    if "backend_client" not in g:
        g.backend_client = build_backend_client(current_app)
    return g.backend_client
