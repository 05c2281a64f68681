"""Service pricing endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin
from backend.app.db.session import get_db
from backend.app.models.service import Service
from backend.app.models.user import User
from backend.app.schemas.service import ServiceCreate, ServiceRead, ServiceUpdate
from backend.app.services.pricing import apply_line_items, ensure_default_services

router = APIRouter(prefix="/services", tags=["services"])


@router.get("/", response_model=List[ServiceRead])
async def list_services(db: Session = Depends(get_db)):
    ensure_default_services(db)
    return db.query(Service).order_by(Service.service_name.asc(), Service.state.asc(), Service.payment_type.asc()).all()


@router.get("/lookup", response_model=List[ServiceRead])
async def find_services(
    service_name: str,
    state: str,
    payment_type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Service).filter(Service.service_name == service_name, Service.state == state)
    if payment_type:
        query = query.filter(Service.payment_type == payment_type)
    services = query.all()
    if not services:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    return services


@router.get("/{service_id}", response_model=ServiceRead)
async def get_service(service_id: str, db: Session = Depends(get_db)):
    service = db.query(Service).filter(Service.id == service_id).first()
    if not service:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    return service


@router.post("/", response_model=ServiceRead)
async def upsert_service(
    service_in: ServiceCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """Create a service, or replace the one with the same name, state and payment type."""
    service = (
        db.query(Service)
        .filter(
            Service.service_name == service_in.service_name,
            Service.state == service_in.state,
            Service.payment_type == service_in.payment_type,
        )
        .first()
    )
    if service is None:
        service = Service(
            service_name=service_in.service_name,
            state=service_in.state,
            payment_type=service_in.payment_type,
        )
        db.add(service)
    apply_line_items(service, service_in.line_items)
    db.commit()
    db.refresh(service)
    return service


@router.put("/{service_id}", response_model=ServiceRead)
async def update_service(
    service_id: str,
    service_in: ServiceUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = db.query(Service).filter(Service.id == service_id).first()
    if not service:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")

    update_data = service_in.model_dump(exclude_unset=True, exclude={"line_items"})
    for field, value in update_data.items():
        if value is not None:
            setattr(service, field, value)
    line_items = service_in.line_items if service_in.line_items is not None else service.line_items
    apply_line_items(service, line_items)
    db.commit()
    db.refresh(service)
    return service


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: str,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = db.query(Service).filter(Service.id == service_id).first()
    if not service:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    db.delete(service)
    db.commit()
