from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base, generate_id


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(64), primary_key=True, index=True, default=generate_id)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    application_id = Column(String(64), ForeignKey("applications.id"), nullable=True, index=True)
    type = Column(String(30), nullable=False, default="general")
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="notifications")
