from sqlalchemy import JSON, Boolean, Column, Integer, String

from backend.app.db.base_class import Base, generate_id


class ServiceDocumentRequirement(Base):
    __tablename__ = "service_document_requirements"

    id = Column(String(64), primary_key=True, index=True, default=generate_id)
    service_type = Column(String(100), nullable=False, index=True)
    document_type = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    accepted_formats = Column(JSON, nullable=False, default=list)
    required = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
