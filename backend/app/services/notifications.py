"""In-app notifications written alongside payment state changes."""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from backend.app.models.notification import Notification

PAYMENT_TYPE_LABELS = {
    "step1": "Step 1",
    "step2": "Step 2",
    "full": "Full Payment",
}


def payment_label(payment_type: Optional[str]) -> str:
    return PAYMENT_TYPE_LABELS.get(payment_type or "", "payment")


def format_usd(amount: Decimal | float | None) -> str:
    return f"${Decimal(str(amount or 0)):.2f}"


def create_notification(
    db: Session,
    user_id: str,
    title: str,
    message: str,
    notification_type: str = "general",
    application_id: Optional[str] = None,
) -> Notification:
    """Stage a notification on the session; the caller commits."""
    notification = Notification(
        user_id=user_id,
        application_id=application_id,
        type=notification_type,
        title=title,
        message=message,
    )
    db.add(notification)
    return notification
