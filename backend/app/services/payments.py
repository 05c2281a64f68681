"""Application payment workflow.

Covers the lifecycle of a payment row: creation in ``pending``, manual
submission with proof (``pending_approval``), card completion or admin
approval (``paid``) and admin rejection (``failed``). Step 2 of a staggered
application can never be created, approved or completed before the
application's Step 1 payment is paid.
"""

import logging
import random
import re
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

import stripe
from sqlalchemy.orm import Session

from backend.app.core.constants import DEFAULT_SERVICE_NAME, DEFAULT_SERVICE_STATE
from backend.app.core.errors import ConfigError, NotFoundError, PaymentError, ServerError, ValidationError
from backend.app.models.application import Application
from backend.app.models.payment import Payment
from backend.app.models.receipt import Receipt
from backend.app.models.service import Service
from backend.app.models.user import User
from backend.app.schemas.payment import ManualPaymentSubmit, PaymentComplete
from backend.app.services.notifications import create_notification, format_usd, payment_label
from backend.app.services.payment_intents import to_minor_units
from backend.app.services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)

GRIT_APP_ID_PATTERN = re.compile(r"^AP[0-9A-Z]{12}$")

DEFAULT_RECEIPT_ITEMS: Dict[str, List[Dict[str, object]]] = {
    "step1": [
        {"name": "NCLEX NY BON Application Fee", "amount": 143},
        {"name": "NCLEX NY Mandatory Courses", "amount": 54.99},
        {"name": "NCLEX NY Bond Fee", "amount": 70},
    ],
    "step2": [
        {"name": "NCLEX PV Application Fee", "amount": 200},
        {"name": "NCLEX PV NCSBN Exam Fee", "amount": 150},
        {"name": "NCLEX GritSync Service Fee", "amount": 150},
        {"name": "NCLEX NY Quick Results", "amount": 8},
    ],
    "full": [
        {"name": "NCLEX PV Application Fee", "amount": 200},
        {"name": "NCLEX PV NCSBN Exam Fee", "amount": 150},
        {"name": "NCLEX GritSync Service Fee", "amount": 100},
        {"name": "NCLEX NY Quick Results", "amount": 8},
    ],
}


def completed_payment_types(payments: Iterable[Payment]) -> List[str]:
    completed: List[str] = []
    for payment in payments:
        if payment.status == "paid" and payment.payment_type not in completed:
            completed.append(payment.payment_type)
    return completed


def step_availability(completed: Iterable[str]) -> Dict[str, bool]:
    """Which payment types may be started given the already-paid types."""
    done = set(completed)
    return {
        "step1": not done & {"step1", "full"},
        "step2": "step1" in done and not done & {"step2", "full"},
        "full": not done,
    }


def get_application_for_user(db: Session, application_id: str, user: User) -> Application:
    """Look up an application by id or GRIT APP ID; other users' applications are not found."""
    normalized = application_id.strip()
    if GRIT_APP_ID_PATTERN.match(normalized.upper()):
        application = db.query(Application).filter(Application.grit_app_id == normalized.upper()).first()
    else:
        application = db.query(Application).filter(Application.id == normalized).first()
    if application is None or (not user.is_admin and application.user_id != user.id):
        raise NotFoundError("Application not found")
    return application


def get_payment_for_user(db: Session, payment_id: str, user: User) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if payment is None or (not user.is_admin and payment.user_id != user.id):
        raise NotFoundError("Payment not found")
    return payment


def get_payment(db: Session, payment_id: str) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment


def list_application_payments(db: Session, application: Application) -> List[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.application_id == application.id)
        .order_by(Payment.created_at.desc())
        .all()
    )


def list_pending_approval(db: Session) -> List[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.status == "pending_approval")
        .order_by(Payment.created_at.desc())
        .all()
    )


def _step1_paid(db: Session, application_id: str) -> bool:
    return (
        db.query(Payment)
        .filter(
            Payment.application_id == application_id,
            Payment.payment_type == "step1",
            Payment.status == "paid",
        )
        .first()
        is not None
    )


def ensure_step_order(db: Session, payment: Payment) -> None:
    if payment.payment_type == "step2" and not _step1_paid(db, payment.application_id):
        raise ValidationError("Step 1 payment must be paid before Step 2")


def default_step_amount(db: Session, payment_type: str) -> Optional[Decimal]:
    """Price of a payment step taken from the default service templates."""
    service_payment_type = "full" if payment_type == "full" else "staggered"
    service = (
        db.query(Service)
        .filter(
            Service.service_name == DEFAULT_SERVICE_NAME,
            Service.state == DEFAULT_SERVICE_STATE,
            Service.payment_type == service_payment_type,
        )
        .first()
    )
    if service is None:
        return None
    if payment_type == "step1":
        return service.total_step1
    if payment_type == "step2":
        return service.total_step2
    return service.total_full


def create_payment(
    db: Session,
    application: Application,
    payment_type: str,
    amount: Optional[Decimal] = None,
) -> Payment:
    payments = list_application_payments(db, application)
    completed = completed_payment_types(payments)
    if not step_availability(completed)[payment_type]:
        if payment_type == "step2" and "step1" not in completed:
            raise ValidationError("Step 1 payment must be paid before Step 2")
        raise ValidationError(f"{payment_label(payment_type)} can no longer be created for this application")

    for existing in payments:
        if existing.payment_type != payment_type:
            continue
        if existing.status == "pending":
            return existing
        if existing.status == "pending_approval":
            raise ValidationError(f"A {payment_label(payment_type)} payment is already awaiting approval")

    resolved_amount = amount if amount is not None else default_step_amount(db, payment_type)
    if resolved_amount is None or resolved_amount <= 0:
        raise ValidationError("Invalid payment amount")

    payment = Payment(
        application_id=application.id,
        user_id=application.user_id,
        payment_type=payment_type,
        amount=Decimal(str(resolved_amount)),
        status="pending",
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info(f"[PAYMENTS] Created {payment_type} payment {payment.id} for application {application.id}")
    return payment


def submit_manual_payment(db: Session, payment: Payment, submission: ManualPaymentSubmit) -> Payment:
    """Record a bank transfer / e-wallet payment awaiting admin verification."""
    if payment.status not in ("pending", "failed"):
        raise ValidationError("Payment is not awaiting submission")
    ensure_step_order(db, payment)

    payment.payment_method = submission.payment_method
    payment.proof_of_payment_file_path = submission.proof_of_payment_file_path
    payment.transaction_id = submission.transaction_id
    if submission.usd_to_php_rate is not None:
        payment.usd_to_php_rate = submission.usd_to_php_rate
    payment.admin_note = None
    payment.status = "pending_approval"
    db.commit()
    db.refresh(payment)
    logger.info(f"[PAYMENTS] Payment {payment.id} submitted for approval via {payment.payment_method}")
    return payment


def generate_receipt_number(db: Session, max_attempts: int = 100) -> str:
    for _ in range(max_attempts):
        candidate = f"RCP{random.randint(1000000000, 9999999999)}"
        if db.query(Receipt.id).filter(Receipt.receipt_number == candidate).first() is None:
            return candidate
    raise ServerError("Could not allocate a unique receipt number")


def issue_receipt(db: Session, payment: Payment) -> Receipt:
    """Return the payment's receipt, creating it on first call."""
    existing = db.query(Receipt).filter(Receipt.payment_id == payment.id).first()
    if existing is not None:
        return existing
    receipt = Receipt(
        payment_id=payment.id,
        application_id=payment.application_id,
        user_id=payment.user_id,
        receipt_number=generate_receipt_number(db),
        amount=payment.amount,
        payment_type=payment.payment_type,
        items=[dict(item) for item in DEFAULT_RECEIPT_ITEMS.get(payment.payment_type, [])],
    )
    db.add(receipt)
    db.flush()
    return receipt


def get_receipt(db: Session, payment: Payment) -> Receipt:
    receipt = db.query(Receipt).filter(Receipt.payment_id == payment.id).first()
    if receipt is None:
        raise NotFoundError("Receipt not found")
    return receipt


def _settle(db: Session, payment: Payment, title: str, verb: str) -> Receipt:
    previous_status = payment.status
    payment.status = "paid"
    receipt = issue_receipt(db, payment)
    if previous_status != "paid":
        create_notification(
            db,
            user_id=payment.user_id,
            application_id=payment.application_id,
            notification_type="payment",
            title=title,
            message=f"Your {payment_label(payment.payment_type)} of {format_usd(payment.amount)} has been {verb}.",
        )
    return receipt


def _verify_intent_for_payment(gateway: StripeGateway, payment: Payment, payment_intent_id: str) -> None:
    """Check that a processor intent succeeded and was created for this payment and amount."""
    if not gateway.is_configured:
        raise ConfigError()
    try:
        intent = gateway.retrieve_payment_intent(payment_intent_id)
    except stripe.InvalidRequestError as exc:
        raise PaymentError("Invalid payment intent") from exc
    if intent.status != "succeeded":
        raise PaymentError("Payment intent has not been completed")
    metadata = getattr(intent, "metadata", None) or {}
    if metadata.get("payment_id") != payment.id:
        logger.warning(f"[PAYMENTS] Intent {payment_intent_id} does not belong to payment {payment.id}")
        raise PaymentError("Payment intent does not match this payment")
    if intent.amount != to_minor_units(payment.amount):
        logger.warning(f"[PAYMENTS] Intent {payment_intent_id} amount {intent.amount} does not match payment {payment.id}")
        raise PaymentError("Payment intent amount does not match this payment")


def complete_payment(
    db: Session,
    gateway: StripeGateway,
    payment: Payment,
    completion: PaymentComplete,
) -> Tuple[Payment, Receipt]:
    """Mark a card payment paid once its PaymentIntent is verified with Stripe.

    Only ``pending`` and ``failed`` payments can be completed this way; payments
    awaiting manual approval go through the admin review. Repeating the call for
    an already paid payment with the same intent returns the existing receipt.
    """
    if payment.status == "paid":
        if not completion.stripe_payment_intent_id or completion.stripe_payment_intent_id != payment.stripe_payment_intent_id:
            raise ValidationError("Payment has already been paid")
        receipt = issue_receipt(db, payment)
        db.commit()
        db.refresh(receipt)
        return payment, receipt
    if payment.status not in ("pending", "failed"):
        raise ValidationError("Only pending or failed payments can be completed by card")
    if not completion.stripe_payment_intent_id:
        raise ValidationError("stripe_payment_intent_id is required to complete a card payment")
    ensure_step_order(db, payment)
    _verify_intent_for_payment(gateway, payment, completion.stripe_payment_intent_id)

    payment.payment_method = completion.payment_method
    payment.transaction_id = completion.transaction_id or completion.stripe_payment_intent_id
    payment.stripe_payment_intent_id = completion.stripe_payment_intent_id
    payment.admin_note = None
    receipt = _settle(db, payment, "Payment Successful", "processed successfully")
    db.commit()
    db.refresh(payment)
    db.refresh(receipt)
    logger.info(f"[PAYMENTS] Payment {payment.id} completed, receipt {receipt.receipt_number}")
    return payment, receipt


def settle_from_processor(db: Session, payment: Payment, payment_intent_id: str) -> Optional[Receipt]:
    """Settle a pending payment confirmed by a processor webhook; other states are left alone."""
    if payment.status != "pending":
        return None
    if payment.payment_type == "step2" and not _step1_paid(db, payment.application_id):
        logger.warning(f"[PAYMENTS] Step 2 payment {payment.id} confirmed before Step 1 was paid")
    payment.payment_method = "stripe"
    payment.stripe_payment_intent_id = payment_intent_id
    receipt = _settle(db, payment, "Payment Successful", "processed successfully")
    db.commit()
    logger.info(f"[PAYMENTS] Payment {payment.id} completed via webhook, receipt {receipt.receipt_number}")
    return receipt


def approve_payment(db: Session, payment: Payment) -> Payment:
    """Settle a pending or submitted payment; approving a paid payment changes nothing."""
    if payment.status == "paid":
        return payment
    if payment.status not in ("pending", "pending_approval"):
        raise ValidationError("Only pending payments or payments awaiting approval can be approved")
    ensure_step_order(db, payment)
    _settle(db, payment, "Payment Approved", "approved and processed successfully")
    db.commit()
    db.refresh(payment)
    logger.info(f"[PAYMENTS] Payment {payment.id} approved")
    return payment


def reject_payment(db: Session, payment: Payment, reason: Optional[str] = None) -> Payment:
    if payment.status == "paid":
        raise ValidationError("A paid payment cannot be rejected")
    previous_status = payment.status
    payment.status = "failed"
    payment.transaction_id = "REJECTED"
    payment.admin_note = reason or None
    if previous_status != "failed":
        base = f"Your {payment_label(payment.payment_type)} of {format_usd(payment.amount)} has been rejected."
        message = f"{base} Reason: {reason}" if reason else f"{base} Please contact support for more information."
        create_notification(
            db,
            user_id=payment.user_id,
            application_id=payment.application_id,
            notification_type="payment",
            title="Payment Rejected",
            message=message,
        )
    db.commit()
    db.refresh(payment)
    logger.info(f"[PAYMENTS] Payment {payment.id} rejected")
    return payment
