"""Per-service document requirements and document type naming."""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.models.document_requirement import ServiceDocumentRequirement
from backend.app.schemas.document_requirement import DocumentRequirementRead

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_TYPE = "NCLEX"
IMAGE_FORMATS = ["image/*"]
DOCUMENT_FORMATS = [".pdf", ".jpg", ".jpeg", ".png"]

FALLBACK_REQUIREMENTS = [
    ("picture", "2x2 Picture", IMAGE_FORMATS),
    ("diploma", "Nursing Diploma", DOCUMENT_FORMATS),
    ("passport", "Passport", DOCUMENT_FORMATS),
]

STANDARD_REQUIREMENTS: Dict[str, List[Tuple[str, str, List[str]]]] = {
    "NCLEX": FALLBACK_REQUIREMENTS,
    "EAD": [
        (
            "ead_photos",
            "Two passport-sized photographs (2x2 inches) meeting USCIS requirements "
            "(attached in a small envelope and labeled with your name)",
            IMAGE_FORMATS,
        ),
        ("ead_passport", "Clear Copy of your passport biographical page", DOCUMENT_FORMATS),
        ("ead_h4_visa", "Copy of your H-4 visa stamp", DOCUMENT_FORMATS),
        ("ead_i94", "Copy of your most recent I-94 Arrival/Departure Record", DOCUMENT_FORMATS),
        (
            "ead_marriage_certificate",
            "Copy of your marriage certificate to establish your relationship with the H-1B principal beneficiary",
            DOCUMENT_FORMATS,
        ),
        ("ead_spouse_i797", "Copy of your spouse's H-1B approval notice (Form I-797)", DOCUMENT_FORMATS),
        (
            "ead_spouse_i140",
            "Copy of your spouse's approved Form I-140, Immigrant Petition for Alien Worker",
            DOCUMENT_FORMATS,
        ),
        ("ead_employer_letter", "Copy of your spouse's employer verification letter", DOCUMENT_FORMATS),
        ("ead_paystub", "Recent paystub", DOCUMENT_FORMATS),
    ],
}

_FIXED_NAMES = {
    "mandatory_course_infection_control": "Infection Control Course",
    "mandatory_course_child_abuse": "Child Abuse Course",
    "picture": "2x2 Picture",
    "diploma": "Nursing Diploma",
    "passport": "Passport",
}


def fallback_requirements(service_type: str = DEFAULT_SERVICE_TYPE) -> List[DocumentRequirementRead]:
    return [
        DocumentRequirementRead(
            service_type=service_type,
            document_type=document_type,
            name=name,
            accepted_formats=list(formats),
            required=True,
            sort_order=index,
        )
        for index, (document_type, name, formats) in enumerate(FALLBACK_REQUIREMENTS)
    ]


def list_requirements(db: Session, service_type: str = DEFAULT_SERVICE_TYPE) -> List[DocumentRequirementRead]:
    """Requirements for a service type, or the built-in list when none can be read."""
    try:
        rows = (
            db.query(ServiceDocumentRequirement)
            .filter(ServiceDocumentRequirement.service_type == service_type)
            .order_by(ServiceDocumentRequirement.sort_order.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.warning(f"[DOCUMENTS] Falling back to default requirements for {service_type}: {exc}")
        db.rollback()
        return fallback_requirements(service_type)

    if not rows:
        return fallback_requirements(service_type)
    return [DocumentRequirementRead.model_validate(row) for row in rows]


def get_requirement(db: Session, requirement_id: str) -> Optional[ServiceDocumentRequirement]:
    return db.query(ServiceDocumentRequirement).filter(ServiceDocumentRequirement.id == requirement_id).first()


def sync_standard_requirements(db: Session) -> Tuple[int, int]:
    """Create or refresh the standard requirement set; returns (created, updated)."""
    existing = {
        (row.service_type, row.document_type): row
        for row in db.query(ServiceDocumentRequirement).all()
    }
    created = updated = 0
    for service_type, entries in STANDARD_REQUIREMENTS.items():
        for sort_order, (document_type, name, formats) in enumerate(entries):
            row = existing.get((service_type, document_type))
            if row is None:
                db.add(
                    ServiceDocumentRequirement(
                        service_type=service_type,
                        document_type=document_type,
                        name=name,
                        accepted_formats=list(formats),
                        required=True,
                        sort_order=sort_order,
                    )
                )
                created += 1
            else:
                row.name = name
                row.accepted_formats = list(formats)
                row.required = True
                row.sort_order = sort_order
                updated += 1
    db.commit()
    logger.info(f"[DOCUMENTS] Synced standard requirements: {created} created, {updated} updated")
    return created, updated


def document_display_name(document_type: str) -> str:
    if document_type in _FIXED_NAMES:
        return _FIXED_NAMES[document_type]
    if document_type.startswith("mandatory_course_"):
        words = document_type[len("mandatory_course_"):].replace("_", " ").split(" ")
        return " ".join(word[:1].upper() + word[1:] for word in words) + " Course"
    if not document_type:
        return document_type
    return document_type[0].upper() + document_type[1:].replace("_", " ")
