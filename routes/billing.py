from __future__ import annotations
import logging
from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from models import UserProfile
from services import token_store
from services.backend_client import get_backend_client
from services.errors import BackendError
from services.stripe_service import SUCCEEDED, IN_FLIGHT, stripe_svc
from utils.auth import api_token_required

logger = logging.getLogger(__name__)
billing_bp = Blueprint("billing", __name__, url_prefix="/dashboard/credits")


@billing_bp.route("")
@api_token_required
def credits_page():
    """Render the credit balance and the credit packs on offer."""
    client = get_backend_client()
    profile = None
    try:
        profile = UserProfile.from_api(client.get_user_profile())
        token_store.update_credits(profile.credits)
    except BackendError as e:
        logger.warning(f"Failed to fetch credits: {e}")

    plans = stripe_svc.list_plans(client)
    return render_template("dashboard/credits.html", profile=profile, plans=plans)


@billing_bp.post("/checkout")
@api_token_required
def checkout():
    product_id = request.form.get("product_id", "")
    try:
        intent = stripe_svc.start_checkout(get_backend_client(), product_id)
    except ValueError as e:
        flash(str(e), "error")
        return redirect(url_for("billing.credits_page"))
    except BackendError as e:
        logger.error(f"Payment intent creation failed: {e}")
        flash(e.message or "Failed to create payment intent", "error")
        return redirect(url_for("billing.credits_page"))

    return render_template(
        "dashboard/checkout.html",
        intent=intent,
        publishable_key=current_app.config["STRIPE_PUBLISHABLE_KEY"],
        return_url=url_for("billing.complete", _external=True),
    )


@billing_bp.route("/complete")
@api_token_required
def complete():
    """Stripe sends the buyer here after confirmPayment."""
    payment_intent_id = request.args.get("payment_intent")
    redirect_status = request.args.get("redirect_status")
    status = stripe_svc.confirm_payment(payment_intent_id, redirect_status)

    if status == SUCCEEDED:
        flash("Payment successful! Your credits will appear in your balance shortly.", "success")
    elif status in IN_FLIGHT:
        flash("Your payment is processing. Credits are added once it completes.", "info")
    else:
        logger.warning(f"Payment {payment_intent_id} did not succeed: {status}")
        flash("Payment was not completed. You have not been charged.", "error")
    return redirect(url_for("billing.credits_page"))
