"""CRUD operations for quotations."""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from backend.app.models.quotation import Quotation
from backend.app.models.user import User
from backend.app.schemas.quotation import QuotationCreate, QuotationUpdate
from backend.app.services.pricing import calculate_totals, serialize_line_items


def _priced_fields(data: dict, payment_type: str) -> dict:
    # Supplied line items always re-derive the amount unless one is given.
    if data.get("line_items") is not None:
        data["line_items"] = serialize_line_items(data["line_items"])
        if data.get("amount") is None and data["line_items"]:
            data["amount"] = calculate_totals(data["line_items"], payment_type)["total_full"]
    if "amount" in data and data["amount"] is None:
        data.pop("amount")
    return data


class CRUDQuotation:
    def create(self, db: Session, *, obj_in: QuotationCreate, user_id: Optional[str]) -> Quotation:
        data = _priced_fields(obj_in.model_dump(), obj_in.payment_type)
        if data.get("amount") is None or Decimal(str(data["amount"])) <= 0:
            raise ValueError("Quotation amount or line items are required")
        obj = Quotation(user_id=user_id, **data)
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, quotation_id: str, user: User) -> Optional[Quotation]:
        query = db.query(Quotation).filter(Quotation.id == quotation_id)
        if not user.is_admin:
            query = query.filter(Quotation.user_id == user.id)
        return query.first()

    def get_multi(self, db: Session, *, user: User) -> List[Quotation]:
        query = db.query(Quotation)
        if not user.is_admin:
            query = query.filter(Quotation.user_id == user.id)
        return query.order_by(Quotation.created_at.desc()).all()

    def update(self, db: Session, *, db_obj: Quotation, obj_in: QuotationUpdate) -> Quotation:
        update_data = obj_in.model_dump(exclude_unset=True)
        update_data = _priced_fields(update_data, update_data.get("payment_type") or db_obj.payment_type)
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: Quotation) -> str:
        quotation_id = db_obj.id
        db.delete(db_obj)
        db.commit()
        return quotation_id


quotation_crud = CRUDQuotation()
