from fastapi import APIRouter, Depends, Query, BackgroundTasks
from sqlalchemy.orm import Session
from typing import List, Literal, Optional
from datetime import datetime

from .. import schemas
from ..auth import Actor, get_current_client
from .. import config
from ..database import get_db
from .. import booking_service, reservation_service, slot_service, specialist_service, verification_service
from ..telegram_service import telegram_notifier
from .specialist import booking_event

router = APIRouter(prefix="/api/clients", tags=["Client"])


@router.get("/specialists", response_model=List[schemas.SpecialistResponse])
def get_specialists(
    services: Optional[str] = Query(None),
    experience: Optional[int] = Query(None, ge=0),
    availability: Optional[Literal["morning", "afternoon", "evening"]] = Query(None),
    db: Session = Depends(get_db)
):
    """Пошук доступних спеціалістів"""
    return specialist_service.list_bookable_specialists(
        db,
        services=services,
        experience=experience,
        window=availability,
        require_verified=config.REQUIRE_VERIFIED_SPECIALISTS,
    )


@router.get("/specialists/{specialist_id}/slots", response_model=List[schemas.SlotResponse])
def get_specialist_slots(
    specialist_id: int,
    start_from: Optional[datetime] = Query(None, alias="from"),
    db: Session = Depends(get_db)
):
    """Вільні сесії спеціаліста, що починаються після вказаного часу"""
    return slot_service.list_available_slots(
        db,
        specialist_id,
        start_from or datetime.now(),
        require_verified=config.REQUIRE_VERIFIED_SPECIALISTS,
    )


@router.get("/specialists/{specialist_id}/verification-status", response_model=schemas.PublicVerificationStatus)
def get_specialist_verification_status(
    specialist_id: int,
    db: Session = Depends(get_db)
):
    """Публічний статус верифікації (без причини відмови)"""
    slot_service.get_specialist(db, specialist_id)
    verification_status, _ = verification_service.status_of(db, specialist_id)
    return schemas.PublicVerificationStatus(
        status=verification_status,
        is_verified=verification_service.is_verified(db, specialist_id)
    )


@router.post("/bookings", response_model=schemas.BookingResponse, status_code=201)
def create_booking(
    data: schemas.BookingCreate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_client),
    db: Session = Depends(get_db)
):
    """Забронювати сесію"""
    booking = reservation_service.reserve_slot(db, data.slot_id, actor.user_id)

    # 🤖 Сповіщення адмінам (в фоновому режимі)
    event = booking_event(booking)
    background_tasks.add_task(
        telegram_notifier.send_new_booking_notification,
        booking_id=booking.id,
        client_id=actor.user_id,
        specialist_id=booking.slot.specialist_id,
        slot_date=event["slot_date"],
        start_time=event["start_time"],
        end_time=event["end_time"],
    )
    return booking


@router.get("/bookings", response_model=List[schemas.BookingResponse])
def get_bookings(
    actor: Actor = Depends(get_current_client),
    db: Session = Depends(get_db)
):
    """Бронювання поточного клієнта"""
    return booking_service.list_client_bookings(db, actor.user_id)


@router.post("/bookings/{booking_id}/cancel", response_model=schemas.BookingResponse)
def cancel_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_client),
    db: Session = Depends(get_db)
):
    """Скасувати бронювання"""
    booking = booking_service.cancel_booking(db, booking_id, actor.user_id)

    background_tasks.add_task(
        telegram_notifier.send_booking_status_notification,
        **booking_event(booking)
    )
    return booking
