"""Service pricing schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LineItem(BaseModel):
    description: str
    amount: Decimal = Field(ge=0)
    step: Optional[Literal[1, 2]] = None
    taxable: bool = False


class ServiceBase(BaseModel):
    service_name: str
    state: str
    payment_type: Literal["full", "staggered"] = "staggered"
    line_items: List[LineItem]


class ServiceCreate(ServiceBase):
    pass


class ServiceUpdate(BaseModel):
    service_name: Optional[str] = None
    state: Optional[str] = None
    payment_type: Optional[Literal["full", "staggered"]] = None
    line_items: Optional[List[LineItem]] = None


class ServiceRead(ServiceBase):
    id: str
    total_full: Decimal
    total_step1: Optional[Decimal] = None
    total_step2: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    tax_step1: Optional[Decimal] = None
    tax_step2: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
