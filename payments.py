"""
Stripe Checkout helpers.

The storefront posts its cart as-is; prices are in rupees and are converted
to paise for Stripe.
"""

import logging
import os
from typing import Any, Dict, Iterable, List

import stripe

from schemas import CheckoutItem

logger = logging.getLogger(__name__)

STRIPE_API_KEY = os.getenv("STRIPE_API_KEY")
STRIPE_SHIPPING_RATE = os.getenv("STRIPE_SHIPPING_RATE", "shr_1Q6xI7RxZdHdwLQKxHBETndM")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CURRENCY = "inr"


class GatewayError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


def build_line_items(items: Iterable[CheckoutItem]) -> List[Dict[str, Any]]:
    line_items = []
    for it in items:
        line_items.append({
            "price_data": {
                "currency": CURRENCY,
                "product_data": {"name": it.name},
                "unit_amount": int(round(it.price * 100)),
            },
            "adjustable_quantity": {"enabled": True, "minimum": 1},
            "quantity": it.qty,
        })
    return line_items


def create_checkout_session(items: Iterable[CheckoutItem]) -> str:
    """Open a hosted Checkout session for the cart and return its id."""
    if not STRIPE_API_KEY:
        raise GatewayError(500, "Stripe not configured")

    stripe.api_key = STRIPE_API_KEY
    try:
        session = stripe.checkout.Session.create(
            submit_type="pay",
            mode="payment",
            payment_method_types=["card"],
            billing_address_collection="auto",
            shipping_options=[{"shipping_rate": STRIPE_SHIPPING_RATE}],
            line_items=build_line_items(items),
            success_url=f"{FRONTEND_URL}/success",
            cancel_url=f"{FRONTEND_URL}/cancel",
        )
    except stripe.StripeError as exc:
        status = exc.http_status or 500
        message = exc.user_message or str(exc)
        logger.error("Stripe checkout session failed (%s): %s", status, message)
        raise GatewayError(status, message) from exc
    return session.id
