# routes/pages.py
from flask import Blueprint, redirect, render_template, url_for

from models import CREDIT_PLANS
from utils.auth import is_fully_authenticated

pages_bp = Blueprint("pages", __name__)


@pages_bp.route("/")
def index():
    if is_fully_authenticated():
        return redirect(url_for("dashboard.index"))
    return render_template("marketing/landing.html", plans=CREDIT_PLANS)


@pages_bp.route("/app")
def app():
    """Entry point for marketing CTAs."""
    if is_fully_authenticated():
        return redirect(url_for("dashboard.index"))
    return redirect(url_for("auth.signup"))


# Legal Pages
@pages_bp.route("/privacy")
def privacy():
    return render_template("legal/privacy.html")


@pages_bp.route("/terms")
def terms():
    return render_template("legal/terms.html")
