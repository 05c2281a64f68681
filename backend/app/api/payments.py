"""Application payment endpoints: client workflow and admin review."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin, get_current_user
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.payment import (
    ManualPaymentSubmit,
    PaymentComplete,
    PaymentCompletion,
    PaymentCreate,
    PaymentRead,
    PaymentReject,
    StepAvailability,
)
from backend.app.schemas.receipt import ReceiptRead
from backend.app.services import payments as payment_service
from backend.app.services.stripe_gateway import StripeGateway, get_stripe_gateway

router = APIRouter(tags=["payments"])


@router.get("/applications/{application_id}/payments", response_model=List[PaymentRead])
async def list_application_payments(
    application_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    application = payment_service.get_application_for_user(db, application_id, current_user)
    return payment_service.list_application_payments(db, application)


@router.get("/applications/{application_id}/payments/availability", response_model=StepAvailability)
async def get_step_availability(
    application_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    application = payment_service.get_application_for_user(db, application_id, current_user)
    completed = payment_service.completed_payment_types(payment_service.list_application_payments(db, application))
    return StepAvailability(completed=completed, **payment_service.step_availability(completed))


@router.post(
    "/applications/{application_id}/payments",
    response_model=PaymentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_application_payment(
    application_id: str,
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    application = payment_service.get_application_for_user(db, application_id, current_user)
    return payment_service.create_payment(db, application, payload.payment_type, payload.amount)


@router.get("/payments/{payment_id}", response_model=PaymentRead)
async def get_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payment_service.get_payment_for_user(db, payment_id, current_user)


@router.post("/payments/{payment_id}/submit-proof", response_model=PaymentRead)
async def submit_payment_proof(
    payment_id: str,
    payload: ManualPaymentSubmit,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payment = payment_service.get_payment_for_user(db, payment_id, current_user)
    return payment_service.submit_manual_payment(db, payment, payload)


@router.post("/payments/{payment_id}/complete", response_model=PaymentCompletion)
async def complete_payment(
    payment_id: str,
    payload: PaymentComplete,
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
    current_user: User = Depends(get_current_user),
):
    payment = payment_service.get_payment_for_user(db, payment_id, current_user)
    payment, receipt = payment_service.complete_payment(db, gateway, payment, payload)
    return PaymentCompletion(
        message="Payment completed successfully",
        payment=PaymentRead.model_validate(payment),
        receipt=ReceiptRead.model_validate(receipt),
    )


@router.get("/payments/{payment_id}/receipt", response_model=ReceiptRead)
async def get_payment_receipt(
    payment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payment = payment_service.get_payment_for_user(db, payment_id, current_user)
    return payment_service.get_receipt(db, payment)


@router.get("/admin/payments/pending-approval", response_model=List[PaymentRead])
async def list_pending_approval(
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return payment_service.list_pending_approval(db)


@router.post("/admin/payments/{payment_id}/approve", response_model=PaymentRead)
async def approve_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    payment = payment_service.get_payment(db, payment_id)
    return payment_service.approve_payment(db, payment)


@router.post("/admin/payments/{payment_id}/reject", response_model=PaymentRead)
async def reject_payment(
    payment_id: str,
    payload: PaymentReject,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    payment = payment_service.get_payment(db, payment_id)
    return payment_service.reject_payment(db, payment, payload.reason)
