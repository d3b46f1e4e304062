"""
Booking lifecycle after reservation.

    pending --accept--> accepted --cancel--> cancelled
    pending --reject--> rejected
    pending --cancel--> cancelled

Every transition updates the booking and its slot in one transaction. The
booking row is moved with a conditional UPDATE on its current status, so
two competing decisions on the same booking cannot both apply.
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, joinedload

from . import models
from .database import transaction
from .exceptions import ForbiddenError, InvalidTransitionError, NotFoundError

logger = logging.getLogger(__name__)

PENDING = models.BookingStatus.PENDING.value
ACCEPTED = models.BookingStatus.ACCEPTED.value
REJECTED = models.BookingStatus.REJECTED.value
CANCELLED = models.BookingStatus.CANCELLED.value

# decision -> (allowed source statuses, target status, slot released)
DECISIONS = {
    "accept": ((PENDING,), ACCEPTED, False),
    "reject": ((PENDING,), REJECTED, True),
}
CANCEL = ((PENDING, ACCEPTED), CANCELLED, True)


def get_booking(db: Session, booking_id: int) -> models.Booking:
    booking = db.scalars(
        select(models.Booking)
        .options(joinedload(models.Booking.slot))
        .where(models.Booking.id == booking_id)
    ).first()
    if booking is None:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


def _apply(db: Session, booking: models.Booking, rule) -> None:
    sources, target, release_slot = rule

    result = db.execute(
        update(models.Booking)
        .where(models.Booking.id == booking.id, models.Booking.status.in_(sources))
        .values(status=target, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidTransitionError(
            f"Booking {booking.id} is {booking.status}, cannot become {target}"
        )

    slot_status = models.SlotStatus.AVAILABLE if release_slot else models.SlotStatus.BOOKED
    db.execute(
        update(models.SessionSlot)
        .where(models.SessionSlot.id == booking.slot_id)
        .values(status=slot_status.value)
        .execution_options(synchronize_session=False)
    )
    logger.info(
        f"Booking {booking.id}: {booking.status} -> {target}, slot {booking.slot_id} {slot_status.value}"
    )


def decide_booking(db: Session, booking_id: int, specialist_id: int, decision: str) -> models.Booking:
    """Accept or reject a pending booking on behalf of the slot's specialist"""
    if decision not in DECISIONS:
        raise ValueError(f"Unknown decision: {decision}")

    with transaction(db):
        booking = get_booking(db, booking_id)
        if booking.slot.specialist_id != specialist_id:
            raise ForbiddenError(f"Booking {booking_id} belongs to another specialist")
        _apply(db, booking, DECISIONS[decision])

    db.refresh(booking)
    return booking


def accept_booking(db: Session, booking_id: int, specialist_id: int) -> models.Booking:
    return decide_booking(db, booking_id, specialist_id, "accept")


def reject_booking(db: Session, booking_id: int, specialist_id: int) -> models.Booking:
    return decide_booking(db, booking_id, specialist_id, "reject")


def cancel_booking(db: Session, booking_id: int, client_id: int) -> models.Booking:
    """Cancel a pending or accepted booking on behalf of its client"""
    with transaction(db):
        booking = get_booking(db, booking_id)
        if booking.client_id != client_id:
            raise ForbiddenError(f"Booking {booking_id} belongs to another client")
        _apply(db, booking, CANCEL)

    db.refresh(booking)
    return booking


def cancel_booking_as_admin(db: Session, booking_id: int) -> models.Booking:
    """Platform-initiated cancellation, no ownership check"""
    with transaction(db):
        booking = get_booking(db, booking_id)
        _apply(db, booking, CANCEL)

    db.refresh(booking)
    return booking


def _with_slot():
    return (
        select(models.Booking)
        .join(models.Booking.slot)
        .options(joinedload(models.Booking.slot))
    )


def list_specialist_bookings(db: Session, specialist_id: int) -> List[models.Booking]:
    return list(db.scalars(
        _with_slot()
        .where(models.SessionSlot.specialist_id == specialist_id)
        .order_by(models.SessionSlot.date.desc(), models.SessionSlot.start_time.desc())
    ))


def list_client_bookings(db: Session, client_id: int) -> List[models.Booking]:
    return list(db.scalars(
        _with_slot()
        .where(models.Booking.client_id == client_id)
        .order_by(models.SessionSlot.date.desc(), models.SessionSlot.start_time.desc())
    ))


def list_bookings(
    db: Session,
    status: Optional[str] = None,
    on_date: Optional[date] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[models.Booking], int]:
    """Admin listing with filters and pagination; returns (page items, total)"""
    filters = []
    if status:
        filters.append(models.Booking.status == status)
    if on_date:
        filters.append(models.SessionSlot.date == on_date)

    total = db.scalar(
        select(func.count(models.Booking.id)).join(models.Booking.slot).where(*filters)
    )
    items = db.scalars(
        _with_slot()
        .where(*filters)
        .order_by(models.SessionSlot.date.desc(), models.SessionSlot.start_time.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).all()
    return list(items), total
