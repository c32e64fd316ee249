from __future__ import annotations
import logging
from typing import List, Optional

import stripe
from stripe import StripeError

from models import CREDIT_PLANS, PaymentIntent, Product
from services.errors import BackendError

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {"CAD": "$", "USD": "$", "AUD": "$", "GBP": "£", "EUR": "€"}

SUCCEEDED = "succeeded"
# Statuses that can still turn into a successful charge
IN_FLIGHT = ("processing", "requires_capture")


def format_price(price_in_cents, currency: str = "CAD") -> str:
    try:
        amount = int(price_in_cents) / 100
    except (TypeError, ValueError):
        amount = 0.0
    symbol = CURRENCY_SYMBOLS.get((currency or "").upper(), "")
    sign = "-" if amount < 0 else ""
    text = f"{sign}{symbol}{abs(amount):,.2f}"
    return text if symbol else f"{text} {currency.upper()}"


class StripeService:
    def __init__(self):
        self.publishable_key = ""
        self.configured = False

    def init_app(self, app):
        secret = app.config.get("STRIPE_SECRET_KEY") or ""
        self.publishable_key = app.config.get("STRIPE_PUBLISHABLE_KEY") or ""
        self.configured = bool(secret)
        if secret:
            stripe.api_key = secret
            logger.info("Stripe initialized from environment variables")
        else:
            logger.warning("STRIPE_SECRET_KEY not configured - payment results will not be verified server-side")
        app.extensions["stripe_service"] = self

    def list_plans(self, client) -> List[Product]:
        """Credit packs for the pricing grid.

        Backend products override the built-in catalog entry with the same id;
        inactive products are hidden. The built-in catalog is used as-is when the
        backend can't be reached.
        """
        try:
            remote = [Product.from_api(p) for p in (client.get_products() or []) if isinstance(p, dict)]
        except BackendError as e:
            logger.warning(f"Could not fetch credit products: {e}")
            return list(CREDIT_PLANS)

        if not remote:
            return list(CREDIT_PLANS)

        defaults = {p.id: p for p in CREDIT_PLANS}
        plans = []
        for product in remote:
            if not product.active:
                continue
            fallback = defaults.get(product.id)
            if fallback is not None:
                product.description = product.description or fallback.description
                product.features = product.features or list(fallback.features)
                product.featured = product.featured or fallback.featured
            plans.append(product)
        return sorted(plans, key=lambda p: p.price)

    def start_checkout(self, client, product_id: str) -> PaymentIntent:
        product_id = (product_id or "").strip()
        if not product_id:
            raise ValueError("Please choose a credit pack")
        intent = PaymentIntent.from_api(client.create_payment_intent(product_id) or {})
        if not intent.client_secret:
            raise BackendError("Failed to create payment intent")
        logger.info(f"Payment intent created for product {product_id} ({intent.credits} credits)")
        return intent

    def confirm_payment(self, payment_intent_id: Optional[str], redirect_status: Optional[str] = None) -> str:
        """Status of a payment after Stripe sends the buyer back to us."""
        if not payment_intent_id:
            return redirect_status or "unknown"
        if not self.configured:
            return redirect_status or "unknown"
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)
        except StripeError as e:
            logger.error(f"Could not retrieve payment intent {payment_intent_id}: {e}")
            return redirect_status or "unknown"
        status = intent.get("status") if hasattr(intent, "get") else getattr(intent, "status", None)
        logger.info(f"Payment intent {payment_intent_id} status: {status}")
        return status or "unknown"


stripe_svc = StripeService()
