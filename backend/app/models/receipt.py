from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_id


class Receipt(Base):
    __tablename__ = "receipts"

    id = Column(String(64), primary_key=True, index=True, default=generate_id)
    payment_id = Column(String(64), ForeignKey("application_payments.id"), nullable=False, unique=True, index=True)
    application_id = Column(String(64), ForeignKey("applications.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    receipt_number = Column(String(20), nullable=False, unique=True)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_type = Column(String(10), nullable=False)
    items = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    payment = relationship("Payment", back_populates="receipt")
