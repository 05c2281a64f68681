"""Application payment: one step (or the whole) of an application's fee."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_id


class Payment(Base):
    __tablename__ = "application_payments"

    id = Column(String(64), primary_key=True, index=True, default=generate_id)
    application_id = Column(String(64), ForeignKey("applications.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    payment_type = Column(String(10), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    transaction_id = Column(String(255), nullable=True)
    stripe_payment_intent_id = Column(String(255), nullable=True)
    payment_method = Column(String(50), nullable=True)
    proof_of_payment_file_path = Column(String(512), nullable=True)
    usd_to_php_rate = Column(Numeric(10, 4), nullable=True)
    admin_note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    application = relationship("Application", back_populates="payments")
    user = relationship("User", back_populates="payments", foreign_keys=[user_id])
    receipt = relationship("Receipt", back_populates="payment", uselist=False, cascade="all, delete-orphan")
