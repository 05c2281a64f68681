"""Stripe webhook event handling.

Events arrive as plain dicts (the verified JSON payload). Rows are found by
the ids placed in the metadata at creation time, falling back to the stored
processor reference.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from backend.app.models.donation import Donation
from backend.app.models.payment import Payment
from backend.app.models.quotation import Quotation
from backend.app.services.payments import settle_from_processor

logger = logging.getLogger(__name__)


def _find(db: Session, model, row_id: Optional[str], processor_id: Optional[str]):
    if row_id:
        row = db.query(model).filter(model.id == row_id).first()
        if row is not None:
            return row
    if processor_id:
        return db.query(model).filter(model.stripe_payment_intent_id == processor_id).first()
    return None


def _payment_intent_succeeded(db: Session, intent: Dict[str, Any]) -> Dict[str, Any]:
    metadata = intent.get("metadata") or {}
    intent_id = intent.get("id")
    result: Dict[str, Any] = {}

    if metadata.get("donation_id"):
        donation = _find(db, Donation, metadata.get("donation_id"), intent_id)
        if donation is not None and donation.status != "completed":
            donation.status = "completed"
            db.commit()
            result["donation_id"] = donation.id
        return result

    if metadata.get("quotation_id"):
        quotation = _find(db, Quotation, metadata.get("quotation_id"), intent_id)
        if quotation is not None and quotation.status != "paid":
            quotation.status = "paid"
            quotation.stripe_payment_intent_id = intent_id
            db.commit()
            result["quotation_id"] = quotation.id
        return result

    payment = _find(db, Payment, metadata.get("payment_id"), intent_id)
    if payment is None:
        logger.warning(f"[WEBHOOK] No payable row found for payment intent {intent_id}")
        return result
    receipt = settle_from_processor(db, payment, intent_id)
    result["payment_id"] = payment.id
    if receipt is not None:
        result["receipt_number"] = receipt.receipt_number
    return result


def _payment_intent_failed(db: Session, intent: Dict[str, Any]) -> Dict[str, Any]:
    metadata = intent.get("metadata") or {}
    intent_id = intent.get("id")
    error = (intent.get("last_payment_error") or {}).get("message")
    logger.warning(f"[WEBHOOK] Payment intent {intent_id} failed: {error}")

    if metadata.get("donation_id"):
        donation = _find(db, Donation, metadata.get("donation_id"), intent_id)
        if donation is not None and donation.status == "pending":
            donation.status = "failed"
            db.commit()
            return {"donation_id": donation.id}
        return {}

    if metadata.get("payment_id"):
        payment = _find(db, Payment, metadata.get("payment_id"), intent_id)
        if payment is not None and payment.status == "pending":
            payment.status = "failed"
            db.commit()
            return {"payment_id": payment.id}
    return {}


def _checkout_session_completed(db: Session, session: Dict[str, Any]) -> Dict[str, Any]:
    metadata = session.get("metadata") or {}
    donation = _find(db, Donation, metadata.get("donation_id"), session.get("id"))
    if donation is None:
        logger.warning(f"[WEBHOOK] No donation found for checkout session {session.get('id')}")
        return {}
    if donation.status != "completed":
        donation.status = "completed"
        db.commit()
    return {"donation_id": donation.id}


HANDLERS = {
    "payment_intent.succeeded": _payment_intent_succeeded,
    "payment_intent.payment_failed": _payment_intent_failed,
    "checkout.session.completed": _checkout_session_completed,
}


def handle_stripe_event(db: Session, event: Dict[str, Any]) -> Dict[str, Any]:
    event_type = event.get("type")
    handler = HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"[WEBHOOK] Unhandled event type {event_type}")
        return {"received": True}

    data_object = (event.get("data") or {}).get("object") or {}
    result = handler(db, data_object)
    logger.info(f"[WEBHOOK] Processed {event_type}: {result}")
    return {"received": True, **result}
