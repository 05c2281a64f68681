"""Payment-intent routing for donations, quotations and application payments.

A request names exactly one payable reference. The reference is resolved to a
stored row, the chargeable amount is computed in minor units (cents), and the
processor reference returned by Stripe is written back onto that row.
Donations may be paid anonymously; quotations and application payments need
an authenticated caller, and application payments are looked up scoped to the
caller's own user id.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from sqlalchemy.orm import Session, joinedload

from backend.app.core.constants import CURRENCY, DEFAULT_FRONTEND_URL, MINIMUM_CHARGE_AMOUNT
from backend.app.core.errors import AuthError, NotFoundError, ValidationError
from backend.app.core.settings import get_settings
from backend.app.models.donation import Donation
from backend.app.models.payment import Payment
from backend.app.models.quotation import Quotation
from backend.app.models.user import User
from backend.app.schemas.payment_intent import PaymentIntentRequest
from backend.app.services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)

DONATION_PRODUCT_NAME = "NCLEX Sponsorship Donation"
DONATION_BASE_DESCRIPTION = "Support aspiring nurses achieve their USRN dreams through NCLEX sponsorship"
DONATION_MESSAGE_LIMIT = 400


@dataclass
class Payable:
    kind: str
    row: Any
    amount: int
    metadata: Dict[str, str]


def to_minor_units(amount: Decimal | float | int) -> int:
    """Convert a decimal currency amount to whole cents, rounding half up."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _override_amount(amount: Optional[float]) -> Optional[int]:
    # A zero or missing override falls back to the stored amount.
    if not amount:
        return None
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def resolve_payable(db: Session, request: PaymentIntentRequest, user: Optional[User]) -> Payable:
    """Resolve the single payable entity a request refers to.

    References are mutually exclusive; a request naming more than one is
    rejected before any lookup. Otherwise a donation is checked first, then a
    quotation, then an application payment.
    """
    supplied = [ref for ref in (request.donation_id, request.quotation_id, request.payment_id) if ref]
    if len(supplied) > 1:
        raise ValidationError("Only one of payment_id, quotation_id, or donation_id may be supplied")

    metadata: Dict[str, str] = {}
    if user is not None:
        metadata["user_id"] = str(user.id)

    if request.donation_id:
        donation = db.query(Donation).filter(Donation.id == request.donation_id).first()
        if donation is None:
            raise NotFoundError("Donation not found")
        override = _override_amount(request.amount)
        amount = override if override is not None else to_minor_units(donation.amount)
        metadata["donation_id"] = donation.id
        if donation.sponsorship_id:
            metadata["sponsorship_id"] = donation.sponsorship_id
        return Payable("donation", donation, amount, metadata)

    if request.quotation_id:
        if user is None:
            raise AuthError("Authentication required for quotation payments")
        quotation = db.query(Quotation).filter(Quotation.id == request.quotation_id).first()
        if quotation is None or (quotation.user_id is not None and quotation.user_id != user.id and not user.is_admin):
            raise NotFoundError("Quotation not found")
        override = _override_amount(request.amount)
        amount = override if override is not None else to_minor_units(quotation.amount)
        metadata["quotation_id"] = quotation.id
        return Payable("quotation", quotation, amount, metadata)

    if request.payment_id:
        if user is None:
            raise AuthError("Authentication required for application payments")
        payment = (
            db.query(Payment)
            .options(joinedload(Payment.application))
            .filter(Payment.id == request.payment_id, Payment.user_id == user.id)
            .first()
        )
        if payment is None:
            raise NotFoundError("Payment not found or you do not have access to it")
        if payment.amount is None or payment.amount <= 0:
            raise ValidationError("Invalid payment amount")
        metadata["payment_id"] = payment.id
        metadata["application_id"] = payment.application_id
        return Payable("payment", payment, to_minor_units(payment.amount), metadata)

    raise ValidationError("Either payment_id, quotation_id, or donation_id is required")


def resolve_frontend_url(origin: Optional[str]) -> str:
    """Base URL for Checkout redirects: configured URL, else request origin, else the default."""
    configured = get_settings().frontend_url
    candidate = configured or origin or ""
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        if candidate:
            logger.warning(f"[STRIPE] Invalid frontend URL {candidate!r}, using default")
        return DEFAULT_FRONTEND_URL
    if configured:
        return configured.rstrip("/")
    return f"{parsed.scheme}://{parsed.netloc}"


def _donation_description(donation: Donation) -> str:
    message = (donation.message or "").strip()
    if not message:
        return DONATION_BASE_DESCRIPTION
    if len(message) > DONATION_MESSAGE_LIMIT:
        message = message[:DONATION_MESSAGE_LIMIT] + "..."
    return f"{message} - {DONATION_BASE_DESCRIPTION}"


def build_checkout_params(donation: Donation, amount: int, metadata: Dict[str, str], frontend_url: str) -> Dict[str, Any]:
    logo_url = get_settings().stripe_checkout_logo_url
    product_data: Dict[str, Any] = {"name": DONATION_PRODUCT_NAME, "description": _donation_description(donation)}
    if logo_url:
        product_data["images"] = [logo_url]
    params: Dict[str, Any] = {
        "mode": "payment",
        "payment_method_types": ["card"],
        "line_items": [
            {
                "price_data": {
                    "currency": CURRENCY,
                    "product_data": product_data,
                    "unit_amount": amount,
                },
                "quantity": 1,
            }
        ],
        "success_url": f"{frontend_url}/donate/success?session_id={{CHECKOUT_SESSION_ID}}&donation_id={donation.id}",
        "cancel_url": f"{frontend_url}/donate?canceled=true",
        "locale": "en",
        "submit_type": "donate",
        "allow_promotion_codes": True,
        "billing_address_collection": "auto",
        "custom_text": {"submit": {"message": "Thank you for supporting nurses!"}},
        "metadata": dict(metadata),
        "payment_intent_data": {
            "description": f"Donation for NCLEX Sponsorship - {donation.id}",
            "metadata": dict(metadata),
        },
    }
    if donation.donor_email:
        params["customer_email"] = donation.donor_email
    return params


def _create_donation_checkout(db: Session, gateway: StripeGateway, payable: Payable, origin: Optional[str]) -> Dict[str, str]:
    if payable.amount <= 0:
        raise ValidationError("Invalid donation amount. Amount must be greater than zero.")
    if payable.amount < MINIMUM_CHARGE_AMOUNT:
        raise ValidationError(f"Minimum donation amount is $0.50. Your amount is ${payable.amount / 100:.2f}")

    donation = payable.row
    params = build_checkout_params(donation, payable.amount, payable.metadata, resolve_frontend_url(origin))
    session = gateway.create_checkout_session(**params)

    donation.stripe_payment_intent_id = session.id
    db.commit()
    logger.info(f"[STRIPE] Donation {donation.id} linked to checkout session {session.id}")
    return {"checkout_url": session.url, "session_id": session.id}


def create_payment_intent(
    db: Session,
    gateway: StripeGateway,
    request: PaymentIntentRequest,
    user: Optional[User] = None,
    origin: Optional[str] = None,
) -> Dict[str, str]:
    """Create a Checkout Session (checkout-mode donations) or a PaymentIntent.

    Returns ``{checkout_url, session_id}`` or ``{client_secret, payment_intent_id}``.
    """
    payable = resolve_payable(db, request, user)

    if payable.kind == "donation" and request.use_checkout:
        return _create_donation_checkout(db, gateway, payable, origin)

    if payable.amount <= 0:
        raise ValidationError("Invalid payment amount. Amount must be greater than zero.")

    intent = gateway.create_payment_intent(amount=payable.amount, currency=CURRENCY, metadata=payable.metadata)

    payable.row.stripe_payment_intent_id = intent.id
    db.commit()
    logger.info(f"[STRIPE] {payable.kind} {payable.row.id} linked to payment intent {intent.id}")
    return {"client_secret": intent.client_secret, "payment_intent_id": intent.id}
