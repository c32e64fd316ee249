"""
Health Check Endpoints

1. /health/live - Liveness probe (is the process alive?)
2. /health/ready - Readiness probe (can the backend service be reached?)
3. /health/startup - Startup probe plus the configuration report
"""

import time
import logging
from datetime import datetime, timezone
from typing import Dict, Any

import requests
from flask import Blueprint, jsonify, current_app

logger = logging.getLogger(__name__)

health_production_bp = Blueprint('health_production', __name__, url_prefix='/health')

# Track startup time for uptime calculation
_startup_time = time.time()
_startup_complete = False


def mark_startup_complete():
    """Call this after all initialization is done."""
    global _startup_complete
    _startup_complete = True
    logger.info("Startup marked complete - application ready for traffic")


def get_uptime_seconds() -> float:
    return time.time() - _startup_time


def check_backend_health() -> Dict[str, Any]:
    """
    Check that the backend service answers at all.

    Any response below 500 counts as reachable; auth errors on the root path
    are expected.
    """
    base_url = current_app.config["API_BASE_URL"]
    http = current_app.extensions.get("backend_http") or requests
    start = time.time()
    try:
        response = http.request("GET", f"{base_url}/", timeout=min(current_app.config["API_TIMEOUT"], 5))
        latency_ms = (time.time() - start) * 1000
        healthy = response.status_code < 500
        result = {
            "healthy": healthy,
            "latency_ms": round(latency_ms, 2),
            "status_code": response.status_code,
        }
        if not healthy:
            logger.warning(f"Backend health check returned {response.status_code}")
        return result
    except requests.RequestException as e:
        latency_ms = (time.time() - start) * 1000
        logger.warning(f"Backend health check failed: {e}")
        return {
            "healthy": False,
            "latency_ms": round(latency_ms, 2),
            "error": str(e)[:100],
        }


@health_production_bp.route('/live')
@health_production_bp.route('/liveness')
def liveness():
    return jsonify({
        "status": "alive",
        "uptime_seconds": round(get_uptime_seconds(), 2),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }), 200


@health_production_bp.route('/ready')
@health_production_bp.route('/readiness')
def readiness():
    """
    Readiness probe - returns 503 while the backend service is unreachable,
    since no dashboard page can be rendered without it.
    """
    backend = check_backend_health()
    is_ready = backend.get("healthy", False)

    return jsonify({
        "status": "ready" if is_ready else "not_ready",
        "checks": {"backend": backend},
        "timestamp": datetime.now(timezone.utc).isoformat()
    }), 200 if is_ready else 503


@health_production_bp.route('/startup')
def startup():
    report = current_app.extensions.get("startup_report")
    body = {
        "status": "started" if _startup_complete else "starting",
        "uptime_seconds": round(get_uptime_seconds(), 2),
    }
    if report is not None:
        body["report"] = report.to_dict()
    return jsonify(body), 200 if _startup_complete else 503
