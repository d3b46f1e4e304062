"""
Specialist availability toggle and the slot lifecycle it drives.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .database import transaction
from .exceptions import ConflictError, StoreFailureError
from .slot_service import get_specialist, insert_missing_slots, is_duplicate_slot

logger = logging.getLogger(__name__)


def _turn_on(db: Session, specialist_id: int, today: date) -> models.Specialist:
    try:
        with transaction(db):
            specialist = get_specialist(db, specialist_id)
            specialist.availability = models.Availability.AVAILABLE.value
            created = insert_missing_slots(db, specialist_id, today)
    except StoreFailureError as e:
        if not is_duplicate_slot(e):
            raise
        logger.info(f"Slots for specialist {specialist_id} on {today} generated concurrently, retrying")
        return _turn_on(db, specialist_id, today)

    logger.info(
        f"Specialist {specialist_id} is available, {len(created)} new slots for {today}"
    )
    return specialist


def _turn_off(db: Session, specialist_id: int, today: date) -> models.Specialist:
    with transaction(db):
        specialist = get_specialist(db, specialist_id)

        # Written before the bookings are read; reservations check this flag
        specialist.availability = models.Availability.NOT_AVAILABLE.value
        db.flush()

        slots = db.scalars(
            select(models.SessionSlot)
            .where(
                models.SessionSlot.specialist_id == specialist_id,
                models.SessionSlot.date == today,
            )
            .with_for_update()
        ).all()
        slot_ids = [slot.id for slot in slots]

        live_booking_ids = db.scalars(
            select(models.Booking.id).where(
                models.Booking.slot_id.in_(slot_ids),
                models.Booking.status.in_(models.LIVE_BOOKING_STATUSES),
            )
        ).all()
        if live_booking_ids:
            logger.info(
                f"Specialist {specialist_id} cannot go unavailable, live bookings: {list(live_booking_ids)}"
            )
            raise ConflictError(
                "Today's slots carry live bookings; cancel or reject them first",
                booking_ids=live_booking_ids,
            )

        referenced = set(db.scalars(
            select(models.Booking.slot_id).where(models.Booking.slot_id.in_(slot_ids))
        ))
        retracted = 0
        for slot in slots:
            if slot.id not in referenced:
                db.delete(slot)
                retracted += 1

    logger.info(
        f"Specialist {specialist_id} is not available, retracted {retracted} slots for {today}"
    )
    return specialist


def set_availability(
    db: Session,
    specialist_id: int,
    status: str,
    today: Optional[date] = None,
) -> models.Specialist:
    """
    Turn a specialist's availability on or off for today.

    On: today's slots are generated unless they already exist.
    Off: today's slots are retracted. Refused with ConflictError when any of
    them carries a pending or accepted booking; slots with only rejected or
    cancelled bookings are kept since bookings always reference their slot.
    """
    status = models.Availability(status)
    today = today or date.today()

    if status is models.Availability.AVAILABLE:
        specialist = _turn_on(db, specialist_id, today)
    else:
        specialist = _turn_off(db, specialist_id, today)

    db.refresh(specialist)
    return specialist
