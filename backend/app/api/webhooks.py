"""Stripe webhook receiver."""

import json
import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.db.session import get_db
from backend.app.services.stripe_gateway import StripeGateway, get_stripe_gateway
from backend.app.services.webhooks import handle_stripe_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    payload = await request.body()
    secret = get_settings().stripe_webhook_secret
    if secret:
        try:
            gateway.construct_event(payload, request.headers.get("stripe-signature"), secret)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning(f"[WEBHOOK] Rejected webhook: {exc}")
            raise HTTPException(status_code=400, detail="Invalid webhook signature")
    else:
        logger.warning("[WEBHOOK] STRIPE_WEBHOOK_SECRET is not set, skipping signature verification")

    try:
        event = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid webhook payload")
    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Invalid webhook payload")
    return handle_stripe_event(db, event)
