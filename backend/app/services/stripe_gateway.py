"""Thin wrapper over the Stripe API used by the payment services.

All Stripe traffic goes through one ``StripeGateway`` so the secret key is
checked in a single place and tests can swap in a fake via the FastAPI
dependency override of ``get_stripe_gateway``.
"""

import logging
from typing import Any, Dict, Optional

import stripe

from backend.app.core.errors import ConfigError
from backend.app.core.settings import get_settings

logger = logging.getLogger(__name__)


class StripeGateway:
    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _require_key(self) -> str:
        if not self.api_key:
            logger.error("[STRIPE] STRIPE_SECRET_KEY is not set")
            raise ConfigError()
        return self.api_key

    def create_payment_intent(self, *, amount: int, currency: str, metadata: Dict[str, str], description: Optional[str] = None):
        api_key = self._require_key()
        params: Dict[str, Any] = {"amount": amount, "currency": currency, "metadata": metadata}
        if description:
            params["description"] = description
        intent = stripe.PaymentIntent.create(api_key=api_key, **params)
        logger.info(f"[STRIPE] PaymentIntent created: id={intent.id} amount={amount}")
        return intent

    def create_checkout_session(self, **params: Any):
        api_key = self._require_key()
        session = stripe.checkout.Session.create(api_key=api_key, **params)
        logger.info(f"[STRIPE] Checkout Session created: id={session.id}")
        return session

    def retrieve_payment_intent(self, payment_intent_id: str):
        api_key = self._require_key()
        return stripe.PaymentIntent.retrieve(payment_intent_id, api_key=api_key)

    def construct_event(self, payload: bytes, signature: Optional[str], secret: str):
        return stripe.Webhook.construct_event(payload, signature, secret)


def get_stripe_gateway() -> StripeGateway:
    return StripeGateway(get_settings().stripe_secret_key)
