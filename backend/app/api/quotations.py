"""Quotation endpoints. Guests may request a quote; admins manage all quotes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin, get_current_user, get_optional_user
from backend.app.crud.crud_quotation import quotation_crud
from backend.app.db.session import get_db
from backend.app.models.quotation import Quotation
from backend.app.models.user import User
from backend.app.schemas.quotation import QuotationCreate, QuotationRead, QuotationUpdate

router = APIRouter(prefix="/quotations", tags=["quotations"])


@router.post("/", response_model=QuotationRead, status_code=status.HTTP_201_CREATED)
async def create_quotation(
    quotation_in: QuotationCreate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    try:
        return quotation_crud.create(db, obj_in=quotation_in, user_id=current_user.id if current_user else None)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/", response_model=List[QuotationRead])
async def list_quotations(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return quotation_crud.get_multi(db, user=current_user)


@router.get("/{quotation_id}", response_model=QuotationRead)
async def get_quotation(quotation_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    quotation = quotation_crud.get(db, quotation_id=quotation_id, user=current_user)
    if not quotation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quotation not found")
    return quotation


@router.put("/{quotation_id}", response_model=QuotationRead)
async def update_quotation(
    quotation_id: str,
    quotation_in: QuotationUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    quotation = db.query(Quotation).filter(Quotation.id == quotation_id).first()
    if not quotation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quotation not found")
    return quotation_crud.update(db, db_obj=quotation, obj_in=quotation_in)


@router.delete("/{quotation_id}")
async def delete_quotation(quotation_id: str, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    quotation = db.query(Quotation).filter(Quotation.id == quotation_id).first()
    if not quotation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quotation not found")
    deleted_id = quotation_crud.delete(db, db_obj=quotation)
    return {"message": "Quotation deleted successfully", "id": deleted_id}
