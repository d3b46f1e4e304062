"""
Slot generation and slot listings.

A working day runs 08:00-18:00, except Sunday (first day of the week)
which starts at 14:00. The 13:00-14:00 lunch hour is never a slot.
"""
import logging
from datetime import date, datetime, time
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .database import transaction
from .exceptions import NotFoundError, StoreFailureError

logger = logging.getLogger(__name__)

DAY_START_HOUR = 8
FIRST_WEEKDAY_START_HOUR = 14
DAY_END_HOUR = 18
LUNCH_HOUR = 13
FIRST_WEEKDAY = 6  # date.weekday() of Sunday


def working_hours(slot_date: date) -> List[Tuple[time, time]]:
    """Hour buckets (start, end) of a working day"""
    start_hour = FIRST_WEEKDAY_START_HOUR if slot_date.weekday() == FIRST_WEEKDAY else DAY_START_HOUR
    return [
        (time(hour, 0), time(hour + 1, 0))
        for hour in range(start_hour, DAY_END_HOUR)
        if hour != LUNCH_HOUR
    ]


def get_specialist(db: Session, specialist_id: int) -> models.Specialist:
    specialist = db.get(models.Specialist, specialist_id)
    if specialist is None:
        raise NotFoundError(f"Specialist {specialist_id} not found")
    return specialist


def insert_missing_slots(db: Session, specialist_id: int, slot_date: date) -> List[models.SessionSlot]:
    """
    Add the day's slots that do not exist yet. Does not commit, so the
    caller decides the unit of work.
    """
    existing = set(db.scalars(
        select(models.SessionSlot.start_time).where(
            models.SessionSlot.specialist_id == specialist_id,
            models.SessionSlot.date == slot_date,
        )
    ))

    new_slots = [
        models.SessionSlot(
            specialist_id=specialist_id,
            date=slot_date,
            start_time=start,
            end_time=end,
            status=models.SlotStatus.AVAILABLE.value,
        )
        for start, end in working_hours(slot_date)
        if start not in existing
    ]
    db.add_all(new_slots)
    db.flush()
    return new_slots


def is_duplicate_slot(error: StoreFailureError) -> bool:
    """True when the failure is another writer having inserted the same hour first"""
    return isinstance(error.__cause__, IntegrityError)


def generate_daily_slots(db: Session, specialist_id: int, slot_date: date) -> List[models.SessionSlot]:
    """
    Generate a specialist's slots for one date.

    Idempotent: an already generated day yields an empty list, also when a
    concurrent call generated it first. The batch is all-or-nothing.
    """
    try:
        with transaction(db):
            get_specialist(db, specialist_id)
            new_slots = insert_missing_slots(db, specialist_id, slot_date)
    except StoreFailureError as e:
        if not is_duplicate_slot(e):
            raise
        logger.info(f"Slots for specialist {specialist_id} on {slot_date} generated concurrently")
        return []

    if new_slots:
        logger.info(f"Generated {len(new_slots)} slots for specialist {specialist_id} on {slot_date}")
    else:
        logger.info(f"Slots for specialist {specialist_id} on {slot_date} already exist")
    return new_slots


def _starts_after(moment: datetime):
    return or_(
        models.SessionSlot.date > moment.date(),
        and_(
            models.SessionSlot.date == moment.date(),
            models.SessionSlot.start_time > moment.time().replace(microsecond=0),
        ),
    )


def list_available_slots(
    db: Session,
    specialist_id: int,
    start_from: datetime,
    require_verified: bool = False,
) -> List[models.SessionSlot]:
    """Reservable slots of a specialist starting after `start_from`"""
    specialist = get_specialist(db, specialist_id)

    if specialist.availability != models.Availability.AVAILABLE.value:
        return []
    if require_verified and not (specialist.verification and specialist.verification.is_verified):
        return []

    return list(db.scalars(
        select(models.SessionSlot)
        .where(
            models.SessionSlot.specialist_id == specialist_id,
            models.SessionSlot.status == models.SlotStatus.AVAILABLE.value,
            _starts_after(start_from),
        )
        .order_by(models.SessionSlot.date, models.SessionSlot.start_time)
    ))


def list_own_slots(db: Session, specialist_id: int, now: Optional[datetime] = None) -> List[models.SessionSlot]:
    """Today's upcoming slots of a specialist, any status"""
    now = now or datetime.now()
    return list(db.scalars(
        select(models.SessionSlot)
        .where(
            models.SessionSlot.specialist_id == specialist_id,
            models.SessionSlot.date == now.date(),
            models.SessionSlot.start_time > now.time().replace(microsecond=0),
        )
        .order_by(models.SessionSlot.start_time)
    ))
