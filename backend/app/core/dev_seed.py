import os

from sqlalchemy.orm import Session

from backend.app.services.pricing import ensure_default_services


def ensure_default_catalog(db: Session) -> None:
    """
    Create the default NCLEX service templates on startup.
    Skips execution when running under pytest so tests start from empty tables.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return
    ensure_default_services(db)
