"""
Authentication routes: login, signup and logout.
"""

import logging
import re

from flask import Blueprint, flash, redirect, render_template, request, url_for

from extensions import limiter
from services import auth_service
from services.errors import AuthProviderError
from utils.auth import safe_return_to

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

SIGNUP_CONFIRMATION_MESSAGE = "Please check your email to confirm your account. You can now sign in."
RATE_LIMITED_MESSAGE = "Too many attempts. Please wait a moment and try again."


def is_valid_email(email):
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    return re.match(pattern, email) is not None


@auth_bp.route("/login", methods=["GET", "POST"])
@limiter.limit("5 per minute", methods=["POST"])
def login():
    """Login page and handler.

    Rate limited: 5 attempts per minute.
    """
    return_to = request.args.get("returnTo") or request.form.get("returnTo")

    if request.method == "POST":
        email = request.form.get("email", "")
        password = request.form.get("password", "")
        remember_me = request.form.get("remember_me") == "on"

        try:
            auth_service.login(email, password, remember=remember_me)
        except auth_service.LoginFailed as e:
            flash(e.message, "error")
            return render_template("auth/login.html", email=email, return_to=return_to)

        target = safe_return_to(return_to)
        logger.info(f"Login successful, redirecting to: {target}")
        return redirect(target)

    return render_template("auth/login.html", return_to=return_to)


@auth_bp.route("/signup", methods=["GET", "POST"])
@limiter.limit("3 per minute", methods=["POST"])
def signup():
    """Signup page and handler.

    Rate limited: 3 attempts per minute.
    """
    if request.method == "POST":
        full_name = request.form.get("full_name", "").strip()
        email = request.form.get("email", "").strip().lower()
        password = request.form.get("password", "")

        errors = []
        if not email or not is_valid_email(email):
            errors.append("Please enter a valid email address")
        if len(password) < 6:
            errors.append("Password must be at least 6 characters long")

        if errors:
            for error in errors:
                flash(error, "error")
            return render_template("auth/signup.html", email=email, full_name=full_name)

        try:
            auth_service.signup(
                email,
                password,
                full_name=full_name,
                redirect_to=url_for("dashboard.index", _external=True),
            )
        except AuthProviderError as e:
            logger.warning(f"Signup error: {e.message}")
            flash(e.message or "An error occurred during signup", "error")
            return render_template("auth/signup.html", email=email, full_name=full_name)

        flash(SIGNUP_CONFIRMATION_MESSAGE, "success")
        return redirect(url_for("auth.login"))

    return render_template("auth/signup.html")


@auth_bp.route("/logout", methods=["GET", "POST"])
def logout():
    auth_service.logout()
    flash("You have been logged out successfully", "info")
    return redirect(url_for("auth.login"))


def handle_rate_limited(e):
    """429 handler: re-render the auth form with a friendly message."""
    flash(RATE_LIMITED_MESSAGE, "error")
    if request.path == "/signup":
        return render_template("auth/signup.html"), 429
    return render_template("auth/login.html", return_to=request.args.get("returnTo")), 429
