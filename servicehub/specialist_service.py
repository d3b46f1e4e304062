"""
Specialist profiles and client-facing discovery.
"""
import logging
from datetime import time
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .database import transaction

logger = logging.getLogger(__name__)

# Discovery windows: name -> [start, end) of the slot start time
TIME_WINDOWS = {
    "morning": (time(6, 0), time(12, 0)),
    "afternoon": (time(12, 0), time(18, 0)),
    "evening": (time(18, 0), None),
}


def get_by_user(db: Session, user_id: int) -> Optional[models.Specialist]:
    return db.scalars(
        select(models.Specialist).where(models.Specialist.user_id == user_id)
    ).first()


def upsert_profile(
    db: Session,
    user_id: int,
    services: str,
    experience: int,
    skills: str = "",
    email: Optional[str] = None,
) -> models.Specialist:
    """Create the specialist profile on first call, update it afterwards"""
    with transaction(db):
        specialist = get_by_user(db, user_id)
        if specialist is None:
            specialist = models.Specialist(
                user_id=user_id,
                availability=models.Availability.NOT_AVAILABLE.value,
            )
            db.add(specialist)
            logger.info(f"Creating specialist profile for user {user_id}")

        specialist.services = services
        specialist.experience = experience
        specialist.skills = skills
        if email is not None:
            specialist.email = email

    db.refresh(specialist)
    return specialist


def list_bookable_specialists(
    db: Session,
    services: Optional[str] = None,
    experience: Optional[int] = None,
    window: Optional[str] = None,
    require_verified: bool = False,
) -> List[models.Specialist]:
    """Available specialists matching the filters"""
    query = select(models.Specialist).where(
        models.Specialist.availability == models.Availability.AVAILABLE.value
    )

    if services:
        query = query.where(models.Specialist.services.ilike(f"%{services}%"))
    if experience is not None:
        query = query.where(models.Specialist.experience >= experience)

    if window:
        start, end = TIME_WINDOWS[window]
        open_slot = select(models.SessionSlot.id).where(
            models.SessionSlot.specialist_id == models.Specialist.id,
            models.SessionSlot.status == models.SlotStatus.AVAILABLE.value,
            models.SessionSlot.start_time >= start,
        )
        if end is not None:
            open_slot = open_slot.where(models.SessionSlot.start_time < end)
        query = query.where(open_slot.exists())

    if require_verified:
        query = query.join(models.SpecialistVerification).where(
            models.SpecialistVerification.status == models.VerificationStatus.APPROVED.value
        )

    return list(db.scalars(query.order_by(models.Specialist.created_at.desc(), models.Specialist.id.desc())))
