"""Document requirement endpoints driving the client upload slots."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin
from backend.app.db.session import get_db
from backend.app.models.document_requirement import ServiceDocumentRequirement
from backend.app.models.user import User
from backend.app.schemas.document_requirement import (
    DocumentRequirementCreate,
    DocumentRequirementRead,
    DocumentRequirementUpdate,
)
from backend.app.services.documents import DEFAULT_SERVICE_TYPE, get_requirement, list_requirements, sync_standard_requirements

router = APIRouter(prefix="/document-requirements", tags=["document_requirements"])


@router.get("/", response_model=List[DocumentRequirementRead])
async def list_document_requirements(service_type: str = DEFAULT_SERVICE_TYPE, db: Session = Depends(get_db)):
    return list_requirements(db, service_type)


@router.post("/", response_model=DocumentRequirementRead, status_code=status.HTTP_201_CREATED)
async def create_document_requirement(
    requirement_in: DocumentRequirementCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    requirement = ServiceDocumentRequirement(**requirement_in.model_dump())
    db.add(requirement)
    db.commit()
    db.refresh(requirement)
    return requirement


@router.post("/sync")
async def sync_document_requirements(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    created, updated = sync_standard_requirements(db)
    return {"created": created, "updated": updated}


@router.put("/{requirement_id}", response_model=DocumentRequirementRead)
async def update_document_requirement(
    requirement_id: str,
    requirement_in: DocumentRequirementUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    requirement = get_requirement(db, requirement_id)
    if not requirement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document requirement not found")
    for field, value in requirement_in.model_dump(exclude_unset=True).items():
        setattr(requirement, field, value)
    db.commit()
    db.refresh(requirement)
    return requirement


@router.delete("/{requirement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document_requirement(
    requirement_id: str,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    requirement = get_requirement(db, requirement_id)
    if not requirement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document requirement not found")
    db.delete(requirement)
    db.commit()
