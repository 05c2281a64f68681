"""Service pricing: totals and tax derived from line items, default templates."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from backend.app.core.constants import DEFAULT_SERVICE_NAME, DEFAULT_SERVICE_STATE, TAX_RATE
from backend.app.models.service import Service

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

_NCLEX_ITEMS = [
    ("NCLEX NY BON Application Fee", "143", 1),
    ("NCLEX NY Mandatory Courses", "54.99", 1),
    ("NCLEX NY Bond Fee", "70", 1),
    ("NCLEX PV Application Fee", "200", 2),
    ("NCLEX PV NCSBN Exam Fee", "150", 2),
    ("NCLEX GritSync Service Fee", "150", 2),
    ("NCLEX NY Quick Results", "8", 2),
]

DEFAULT_SERVICES: List[Dict[str, Any]] = [
    {
        "id": "svc_nclex_ny_staggered",
        "payment_type": "staggered",
        "line_items": [{"description": d, "amount": float(a), "step": s, "taxable": False} for d, a, s in _NCLEX_ITEMS],
    },
    {
        "id": "svc_nclex_ny_full",
        "payment_type": "full",
        "line_items": [{"description": d, "amount": float(a), "step": None, "taxable": False} for d, a, _ in _NCLEX_ITEMS],
    },
]


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _item_field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def calculate_totals(line_items: Iterable[Any], payment_type: str) -> Dict[str, Optional[Decimal]]:
    """Compute per-step subtotals plus 12% tax on taxable items.

    Items without a step count toward step 1. For ``full`` services the step
    columns are left empty and only the overall figures are returned.
    """
    subtotals = {1: Decimal("0"), 2: Decimal("0")}
    taxes = {1: Decimal("0"), 2: Decimal("0")}
    for item in line_items:
        step = 2 if _item_field(item, "step") == 2 else 1
        amount = Decimal(str(_item_field(item, "amount") or 0))
        subtotals[step] += amount
        if _item_field(item, "taxable", False):
            taxes[step] += amount * TAX_RATE

    total_step1 = _money(subtotals[1] + taxes[1])
    total_step2 = _money(subtotals[2] + taxes[2])
    tax_step1 = _money(taxes[1])
    tax_step2 = _money(taxes[2])
    totals: Dict[str, Optional[Decimal]] = {
        "total_full": total_step1 + total_step2,
        "tax_amount": tax_step1 + tax_step2,
        "total_step1": None,
        "total_step2": None,
        "tax_step1": None,
        "tax_step2": None,
    }
    if payment_type == "staggered":
        totals.update(
            total_step1=total_step1,
            total_step2=total_step2,
            tax_step1=tax_step1,
            tax_step2=tax_step2,
        )
    return totals


def serialize_line_items(line_items: Iterable[Any]) -> List[Dict[str, Any]]:
    serialized = []
    for item in line_items:
        serialized.append(
            {
                "description": _item_field(item, "description"),
                "amount": float(Decimal(str(_item_field(item, "amount") or 0))),
                "step": _item_field(item, "step"),
                "taxable": bool(_item_field(item, "taxable", False)),
            }
        )
    return serialized


def apply_line_items(service: Service, line_items: Iterable[Any]) -> Service:
    items = serialize_line_items(line_items)
    service.line_items = items
    for field, value in calculate_totals(items, service.payment_type).items():
        setattr(service, field, value)
    return service


def ensure_default_services(db: Session) -> List[Service]:
    """Create the default NCLEX Processing / New York templates when missing."""
    created = []
    for template in DEFAULT_SERVICES:
        existing = (
            db.query(Service)
            .filter(
                Service.service_name == DEFAULT_SERVICE_NAME,
                Service.state == DEFAULT_SERVICE_STATE,
                Service.payment_type == template["payment_type"],
            )
            .first()
        )
        if existing is not None:
            continue
        service = Service(
            id=template["id"],
            service_name=DEFAULT_SERVICE_NAME,
            state=DEFAULT_SERVICE_STATE,
            payment_type=template["payment_type"],
        )
        apply_line_items(service, template["line_items"])
        db.add(service)
        created.append(service)
    if created:
        db.commit()
        logger.info(f"[PRICING] Created {len(created)} default service template(s)")
    return created
