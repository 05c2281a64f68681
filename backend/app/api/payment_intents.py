"""Payment-intent endpoint used by the donation, quotation and application payment pages."""

import json
import logging
from typing import Optional, Union

import pydantic
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.core.errors import ValidationError, classify_exception, error_body
from backend.app.core.security import get_optional_user
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.payment_intent import (
    CheckoutSessionResponse,
    ErrorResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
)
from backend.app.services.payment_intents import create_payment_intent
from backend.app.services.stripe_gateway import StripeGateway, get_stripe_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payment-intents", tags=["payment-intents"])


def _parse_request(raw: bytes) -> PaymentIntentRequest:
    try:
        body = json.loads(raw or b"{}")
    except ValueError as exc:
        raise ValidationError("Invalid JSON in request body") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return PaymentIntentRequest.model_validate(body)
    except pydantic.ValidationError as exc:
        raise ValidationError("Invalid payment request") from exc


@router.post(
    "/",
    response_model=Union[PaymentIntentResponse, CheckoutSessionResponse],
    responses={code: {"model": ErrorResponse} for code in (400, 401, 404, 500, 504)},
)
async def create_intent(
    request: Request,
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Create a Stripe PaymentIntent, or a Checkout Session for checkout-mode donations.

    Every failure is returned as ``{error, type, details?}`` with the status of
    its error kind.
    """
    try:
        payload = _parse_request(await request.body())
        return create_payment_intent(
            db,
            gateway,
            payload,
            user=current_user,
            origin=request.headers.get("origin"),
        )
    except Exception as exc:
        db.rollback()
        error = classify_exception(exc)
        if error.status_code >= 500:
            logger.exception(f"[STRIPE] Payment intent request failed: {error.error_type}")
        else:
            logger.warning(f"[STRIPE] Payment intent request rejected: {error.error_type} {error.message}")
        return JSONResponse(status_code=error.status_code, content=error_body(error, exc))
