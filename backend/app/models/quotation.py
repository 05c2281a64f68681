from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_id


class Quotation(Base):
    __tablename__ = "quotations"

    id = Column(String(64), primary_key=True, index=True, default=generate_id)
    # NULL user_id marks a public/guest quote.
    user_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    service = Column(String(255), nullable=True)
    state = Column(String(100), nullable=True)
    payment_type = Column(String(20), nullable=False, default="full")
    line_items = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="pending")
    client_first_name = Column(String(100), nullable=True)
    client_last_name = Column(String(100), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_mobile = Column(String(50), nullable=True)
    validity_date = Column(Date, nullable=True)
    stripe_payment_intent_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="quotations")
