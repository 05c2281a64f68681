from sqlalchemy import Boolean, Column, DateTime, String, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_id


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True, default=generate_id)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, default="client")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    applications = relationship("Application", back_populates="user", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="user", foreign_keys="Payment.user_id")
    quotations = relationship("Quotation", back_populates="user")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
