"""Sponsorship donation; donors may be anonymous."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Numeric, String, Text

from backend.app.db.base_class import Base, generate_id


class Donation(Base):
    __tablename__ = "donations"

    id = Column(String(64), primary_key=True, index=True, default=generate_id)
    amount = Column(Numeric(10, 2), nullable=False)
    donor_name = Column(String(255), nullable=True)
    donor_email = Column(String(255), nullable=True)
    message = Column(Text, nullable=True)
    sponsorship_id = Column(String(64), nullable=True)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="pending")
    # Holds either a PaymentIntent id or a Checkout Session id.
    stripe_payment_intent_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
