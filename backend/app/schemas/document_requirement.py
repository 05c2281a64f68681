from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class DocumentRequirementBase(BaseModel):
    service_type: str
    document_type: str
    name: str
    accepted_formats: List[str] = []
    required: bool = True
    sort_order: int = 0


class DocumentRequirementCreate(DocumentRequirementBase):
    pass


class DocumentRequirementUpdate(BaseModel):
    document_type: Optional[str] = None
    name: Optional[str] = None
    accepted_formats: Optional[List[str]] = None
    required: Optional[bool] = None
    sort_order: Optional[int] = None


class DocumentRequirementRead(DocumentRequirementBase):
    # None for entries served from the built-in fallback list.
    id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
