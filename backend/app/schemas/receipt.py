from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict


class ReceiptItem(BaseModel):
    name: str
    amount: Decimal


class ReceiptRead(BaseModel):
    id: str
    payment_id: str
    receipt_number: str
    amount: Decimal
    payment_type: str
    items: List[ReceiptItem]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
