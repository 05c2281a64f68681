"""Quotation schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from backend.app.schemas.service import LineItem


class QuotationBase(BaseModel):
    description: Optional[str] = None
    service: Optional[str] = None
    state: Optional[str] = None
    payment_type: Literal["full", "staggered"] = "full"
    line_items: List[LineItem] = []
    client_first_name: Optional[str] = None
    client_last_name: Optional[str] = None
    client_email: Optional[EmailStr] = None
    client_mobile: Optional[str] = None
    validity_date: Optional[date] = None


class QuotationCreate(QuotationBase):
    amount: Optional[Decimal] = Field(default=None, gt=0)


class QuotationUpdate(BaseModel):
    amount: Optional[Decimal] = Field(default=None, gt=0)
    description: Optional[str] = None
    service: Optional[str] = None
    state: Optional[str] = None
    payment_type: Optional[Literal["full", "staggered"]] = None
    line_items: Optional[List[LineItem]] = None
    status: Optional[Literal["pending", "approved", "rejected", "paid"]] = None
    client_first_name: Optional[str] = None
    client_last_name: Optional[str] = None
    client_email: Optional[EmailStr] = None
    client_mobile: Optional[str] = None
    validity_date: Optional[date] = None


class QuotationRead(QuotationBase):
    id: str
    user_id: Optional[str] = None
    amount: Decimal
    status: str
    client_email: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
