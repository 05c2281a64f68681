"""Service pricing template; totals are derived from the line items."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Numeric, String, UniqueConstraint

from backend.app.db.base_class import Base, generate_id


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (UniqueConstraint("service_name", "state", "payment_type", name="uq_services_name_state_type"),)

    id = Column(String(64), primary_key=True, index=True, default=generate_id)
    service_name = Column(String(255), nullable=False)
    state = Column(String(100), nullable=False)
    payment_type = Column(String(20), nullable=False, default="staggered")
    line_items = Column(JSON, nullable=False, default=list)
    total_full = Column(Numeric(10, 2), nullable=False, default=0)
    total_step1 = Column(Numeric(10, 2), nullable=True)
    total_step2 = Column(Numeric(10, 2), nullable=True)
    tax_amount = Column(Numeric(10, 2), nullable=True)
    tax_step1 = Column(Numeric(10, 2), nullable=True)
    tax_step2 = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
