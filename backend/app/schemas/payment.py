"""Application payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.app.schemas.receipt import ReceiptRead

PaymentType = Literal["step1", "step2", "full"]
PaymentStatus = Literal["pending", "pending_approval", "paid", "failed", "cancelled"]


class PaymentCreate(BaseModel):
    payment_type: PaymentType
    amount: Optional[Decimal] = Field(default=None, gt=0)


class ManualPaymentSubmit(BaseModel):
    payment_method: Literal["bank_transfer", "gcash", "mobile_banking"]
    proof_of_payment_file_path: str = Field(min_length=1)
    transaction_id: Optional[str] = None
    usd_to_php_rate: Optional[Decimal] = Field(default=None, gt=0)


class PaymentComplete(BaseModel):
    transaction_id: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    payment_method: str = "stripe"


class PaymentReject(BaseModel):
    reason: Optional[str] = None


class PaymentRead(BaseModel):
    id: str
    application_id: str
    user_id: str
    payment_type: PaymentType
    amount: Decimal
    status: PaymentStatus
    transaction_id: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    payment_method: Optional[str] = None
    proof_of_payment_file_path: Optional[str] = None
    usd_to_php_rate: Optional[Decimal] = None
    admin_note: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StepAvailability(BaseModel):
    completed: list[PaymentType]
    step1: bool
    step2: bool
    full: bool


class PaymentCompletion(BaseModel):
    message: str
    payment: PaymentRead
    receipt: ReceiptRead
