"""
Application factory for the web dashboard.

The dashboard keeps no database of its own: users, summaries and credits all
live in the backend service, and the only per-user state held here is the
signed session cookie (auth provider session plus backend API token).
"""

import logging

from flask import Flask, flash, jsonify, redirect, request, url_for
from flask_login import logout_user

from config import Config
from extensions import csrf, limiter, login_manager
from models import SessionUser
from routes.api_proxy import api_proxy_bp
from routes.auth import auth_bp, handle_rate_limited
from routes.billing import billing_bp
from routes.dashboard import dashboard_bp
from routes.health_production import health_production_bp, mark_startup_complete
from routes.pages import pages_bp
from services import token_store
from services.errors import SessionExpiredError
from services.stripe_service import stripe_svc
from utils.auth import guard_routes, wants_json
from utils.formatting import register_filters
from utils.startup_validation import run_startup_validation

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # requests/urllib3 log every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _init_login_manager(app):
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message = "Please log in to access this page."
    login_manager.login_message_category = "info"

    @login_manager.user_loader
    def load_user(user_id):
        # Only a user with a backend token in this session counts as signed in
        if token_store.load_tokens() is None:
            return None
        user_data = token_store.load_user_data()
        if not user_data:
            return None
        user = SessionUser(user_data)
        return user if str(user.get_id()) == str(user_id) else None


def _register_error_handlers(app):
    @app.errorhandler(SessionExpiredError)
    def handle_session_expired(e):
        logger.info(f"Session expired on {request.path}")
        token_store.clear_tokens()
        logout_user()
        if request.path.startswith("/api") or wants_json():
            return jsonify({"success": False, "error": e.message}), 401
        flash(e.message, "error")
        return redirect(url_for("auth.login", returnTo=request.path))

    @app.errorhandler(429)
    def handle_429(e):
        return handle_rate_limited(e)


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    _configure_logging(app)

    _init_login_manager(app)
    csrf.init_app(app)
    limiter.init_app(app)
    stripe_svc.init_app(app)
    register_filters(app)

    app.register_blueprint(pages_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(billing_bp)
    app.register_blueprint(api_proxy_bp)
    app.register_blueprint(health_production_bp)
    # The extension calls /api/* with a bearer token, not a form
    csrf.exempt(api_proxy_bp)

    app.before_request(guard_routes)

    _register_error_handlers(app)

    @app.context_processor
    def inject_client_settings():
        return {
            "chrome_extension_id": app.config.get("CHROME_EXTENSION_ID"),
            "stripe_publishable_key": app.config.get("STRIPE_PUBLISHABLE_KEY"),
        }

    app.extensions["startup_report"] = run_startup_validation(app.config)
    mark_startup_complete()
    logger.info("Application initialised")
    return app
