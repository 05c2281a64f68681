"""Licensure application a client pays for in one or two steps."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_id


class Application(Base):
    __tablename__ = "applications"

    id = Column(String(64), primary_key=True, index=True, default=generate_id)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    grit_app_id = Column(String(14), unique=True, nullable=True, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String, nullable=True)
    status = Column(String(30), nullable=False, default="pending")
    payment_type = Column(String(20), nullable=False, default="staggered")
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="applications")
    payments = relationship("Payment", back_populates="application", cascade="all, delete-orphan")
