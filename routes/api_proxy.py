"""
Pass-through for /api/* calls made from the browser (the Chrome extension and
the page scripts) to the backend service.

``/api/user/dashboard`` has its own handler that insists on a bearer token and
wraps backend errors in a stable JSON shape; every other path is forwarded
unchanged.
"""

import logging

import requests
from flask import Blueprint, Response, current_app, jsonify, make_response, request

logger = logging.getLogger(__name__)

api_proxy_bp = Blueprint("api_proxy", __name__, url_prefix="/api")

ALLOWED_METHODS = "GET,OPTIONS,PATCH,DELETE,POST,PUT"
ALLOWED_HEADERS = (
    "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
    "Content-MD5, Content-Type, Date, X-Api-Version, Authorization"
)
FORWARDED_HEADERS = ("Authorization", "Content-Type", "Accept")

# Hop-by-hop and length headers are recomputed by our own response
_DROPPED_RESPONSE_HEADERS = {
    "content-encoding", "content-length", "transfer-encoding", "connection", "keep-alive",
}


def _http():
    return current_app.extensions.get("backend_http") or requests


def _backend_url(path):
    return f"{current_app.config['API_BASE_URL']}{path}"


@api_proxy_bp.after_request
def add_cors_headers(response):
    allowed = current_app.config.get("CORS_ALLOWED_ORIGINS") or []
    origin = request.headers.get("Origin")
    if origin and origin in allowed:
        response.headers["Access-Control-Allow-Origin"] = origin
    elif allowed:
        response.headers["Access-Control-Allow-Origin"] = allowed[0]
    response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
    response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
    response.headers["Vary"] = "Origin"
    return response


@api_proxy_bp.route("/user/dashboard", methods=["GET", "OPTIONS"])
def user_dashboard():
    if request.method == "OPTIONS":
        return make_response("", 204)

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        logger.error("[Dashboard API] No authorization token provided")
        return jsonify({"error": "Unauthorized", "details": "No authorization token provided"}), 401

    token = auth_header.split(" ", 1)[1]
    try:
        try:
            backend_response = _http().request(
                "GET",
                _backend_url("/api/user/dashboard"),
                headers={"Content-Type": "application/json", "Authorization": f"Bearer {token}"},
                timeout=current_app.config["API_TIMEOUT"],
            )
        except requests.RequestException as e:
            logger.error(f"[Dashboard API] Error forwarding request to backend: {e}")
            return jsonify({"error": "Backend connection failed", "details": str(e)}), 502

        logger.info(f"[Dashboard API] Backend response status: {backend_response.status_code}")
        if not 200 <= backend_response.status_code < 300:
            error_text = backend_response.text
            try:
                error_data = backend_response.json()
            except ValueError:
                error_data = {"message": error_text}
            details = error_data.get("message") if isinstance(error_data, dict) else None
            logger.error(f"[Dashboard API] Backend error: {error_text}")
            return jsonify({
                "error": "Failed to fetch dashboard data",
                "details": details or error_text,
                "status": backend_response.status_code,
            }), backend_response.status_code

        return jsonify(backend_response.json())
    except Exception as e:
        logger.exception("[Dashboard API] Unexpected error")
        return jsonify({"error": "Internal server error", "details": str(e)}), 500


@api_proxy_bp.route("/", defaults={"path": ""}, methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
@api_proxy_bp.route("/<path:path>", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
def forward(path):
    if request.method == "OPTIONS":
        return make_response("", 204)

    headers = {name: request.headers[name] for name in FORWARDED_HEADERS if name in request.headers}
    try:
        backend_response = _http().request(
            request.method,
            _backend_url(f"/api/{path}"),
            params=request.args.to_dict(flat=False),
            data=request.get_data(),
            headers=headers,
            timeout=current_app.config["API_TIMEOUT"],
        )
    except requests.RequestException as e:
        logger.error(f"Proxy {request.method} /api/{path} failed: {e}")
        return jsonify({"error": "Backend connection failed", "details": str(e)}), 502

    passthrough = [
        (name, value) for name, value in backend_response.headers.items()
        if name.lower() not in _DROPPED_RESPONSE_HEADERS
    ]
    return Response(backend_response.content, status=backend_response.status_code, headers=passthrough)
