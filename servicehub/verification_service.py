"""
Specialist identity verification: document submission and admin review.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .database import transaction
from .exceptions import NotFoundError
from .slot_service import get_specialist

logger = logging.getLogger(__name__)

DECISIONS = (models.VerificationStatus.APPROVED.value, models.VerificationStatus.REJECTED.value)


def _find(db: Session, specialist_id: int) -> Optional[models.SpecialistVerification]:
    return db.scalars(
        select(models.SpecialistVerification).where(
            models.SpecialistVerification.specialist_id == specialist_id
        )
    ).first()


def submit(db: Session, specialist_id: int, front_document: str, back_document: str) -> models.SpecialistVerification:
    """Create or replace the specialist's documents; review starts over"""
    with transaction(db):
        get_specialist(db, specialist_id)
        record = _find(db, specialist_id)
        if record is None:
            record = models.SpecialistVerification(specialist_id=specialist_id)
            db.add(record)

        record.front_document = front_document
        record.back_document = back_document
        record.status = models.VerificationStatus.PENDING.value
        record.rejection_reason = None

    db.refresh(record)
    logger.info(f"Verification {record.id} submitted by specialist {specialist_id}")
    return record


def get_verification(db: Session, verification_id: int) -> models.SpecialistVerification:
    record = db.get(models.SpecialistVerification, verification_id)
    if record is None:
        raise NotFoundError(f"Verification {verification_id} not found")
    return record


def adjudicate(
    db: Session,
    verification_id: int,
    decision: str,
    reason: Optional[str] = None,
) -> models.SpecialistVerification:
    """Approve or reject a verification; the reason is only kept on rejection"""
    if decision not in DECISIONS:
        raise ValueError(f"Unknown verification decision: {decision}")

    with transaction(db):
        record = get_verification(db, verification_id)
        record.status = decision
        record.rejection_reason = reason if decision == models.VerificationStatus.REJECTED.value else None

    db.refresh(record)
    logger.info(f"Verification {verification_id} {decision} (specialist {record.specialist_id})")
    return record


def status_of(db: Session, specialist_id: int) -> Tuple[str, Optional[str]]:
    """(status, rejection reason) of a specialist; not_submitted without a record"""
    record = _find(db, specialist_id)
    if record is None:
        return models.VerificationStatus.NOT_SUBMITTED.value, None
    return record.status, record.rejection_reason


def is_verified(db: Session, specialist_id: int) -> bool:
    status, _ = status_of(db, specialist_id)
    return status == models.VerificationStatus.APPROVED.value


def list_verifications(db: Session, status: Optional[str] = models.VerificationStatus.PENDING.value) -> List[models.SpecialistVerification]:
    query = select(models.SpecialistVerification)
    if status:
        query = query.where(models.SpecialistVerification.status == status)
    return list(db.scalars(query.order_by(models.SpecialistVerification.updated_at)))
