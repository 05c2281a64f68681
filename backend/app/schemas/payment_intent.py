"""Request/response shapes of the payment-intent endpoint."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class PaymentIntentRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    payment_id: Optional[str] = None
    quotation_id: Optional[str] = None
    donation_id: Optional[str] = None
    # Explicit override in minor units (cents).
    amount: Optional[float] = None
    use_checkout: bool = False


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str


class CheckoutSessionResponse(BaseModel):
    checkout_url: str
    session_id: str


class ErrorResponse(BaseModel):
    error: str
    type: str
    details: Optional[Any] = None
