"""
Slot reservation.

The slot is claimed with a single conditional UPDATE
(status 'available' -> 'booked') and the booking row is inserted in the
same transaction. The database decides the winner, so two requests for
the same slot can never both succeed, whichever process serves them.
"""
import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from . import models
from .database import transaction
from .exceptions import NotFoundError, SlotUnavailableError

logger = logging.getLogger(__name__)


def _claim_slot(db: Session, slot_id: int) -> bool:
    """Flip the slot to booked if it is still free; True when this call won"""
    open_specialists = select(models.Specialist.id).where(
        models.Specialist.availability == models.Availability.AVAILABLE.value
    )
    result = db.execute(
        update(models.SessionSlot)
        .where(
            models.SessionSlot.id == slot_id,
            models.SessionSlot.status == models.SlotStatus.AVAILABLE.value,
            models.SessionSlot.specialist_id.in_(open_specialists),
        )
        .values(status=models.SlotStatus.BOOKED.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def reserve_slot(db: Session, slot_id: int, client_id: int) -> models.Booking:
    """
    Reserve a slot for a client.

    Returns the new pending booking. Raises SlotUnavailableError when the slot
    is taken (or its specialist went unavailable); the caller should refresh
    its slot list rather than retry.
    """
    with transaction(db):
        if not _claim_slot(db, slot_id):
            if db.get(models.SessionSlot, slot_id) is None:
                raise NotFoundError(f"Slot {slot_id} not found")
            logger.info(f"Client {client_id} lost slot {slot_id}: no longer available")
            raise SlotUnavailableError(f"Slot {slot_id} is no longer available")

        booking = models.Booking(
            client_id=client_id,
            slot_id=slot_id,
            status=models.BookingStatus.PENDING.value,
        )
        db.add(booking)

    db.refresh(booking)
    logger.info(f"Client {client_id} reserved slot {slot_id}, booking {booking.id} pending")
    return booking
