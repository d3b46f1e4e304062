from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks
from sqlalchemy.orm import Session
from typing import List

from .. import models, schemas
from ..auth import Actor, get_current_specialist_user
from ..database import get_db
from .. import availability_service, booking_service, slot_service, specialist_service, verification_service
from ..telegram_service import telegram_notifier

router = APIRouter(prefix="/api/specialist", tags=["Specialist"])


def get_current_specialist(
    actor: Actor = Depends(get_current_specialist_user),
    db: Session = Depends(get_db)
) -> models.Specialist:
    """Профіль поточного спеціаліста"""
    specialist = specialist_service.get_by_user(db, actor.user_id)
    if specialist is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Профіль спеціаліста не створено"
        )
    return specialist


def profile_details(db: Session, specialist: models.Specialist) -> schemas.SpecialistDetailResponse:
    verification_status, _ = verification_service.status_of(db, specialist.id)
    return schemas.SpecialistDetailResponse(
        id=specialist.id,
        user_id=specialist.user_id,
        services=specialist.services,
        skills=specialist.skills,
        experience=specialist.experience,
        availability=specialist.availability,
        created_at=specialist.created_at,
        email=specialist.email,
        verification_status=verification_status,
        is_verified=verification_service.is_verified(db, specialist.id),
    )


def booking_event(booking: models.Booking) -> dict:
    return dict(
        booking_id=booking.id,
        status=booking.status,
        slot_date=str(booking.slot.date),
        start_time=str(booking.slot.start_time),
        end_time=str(booking.slot.end_time),
    )


@router.put("/profile", response_model=schemas.SpecialistDetailResponse)
def update_profile(
    profile: schemas.ProfileUpdate,
    actor: Actor = Depends(get_current_specialist_user),
    db: Session = Depends(get_db)
):
    """Створити або оновити профіль спеціаліста"""
    specialist = specialist_service.upsert_profile(
        db,
        user_id=actor.user_id,
        services=profile.services,
        experience=profile.experience,
        skills=profile.skills,
        email=profile.email,
    )
    return profile_details(db, specialist)


@router.get("/profile", response_model=schemas.SpecialistDetailResponse)
def get_profile(
    specialist: models.Specialist = Depends(get_current_specialist),
    db: Session = Depends(get_db)
):
    """Отримати профіль зі статусом верифікації"""
    return profile_details(db, specialist)


@router.post("/availability", response_model=schemas.SpecialistDetailResponse)
def update_availability(
    data: schemas.AvailabilityUpdate,
    specialist: models.Specialist = Depends(get_current_specialist),
    db: Session = Depends(get_db)
):
    """Змінити доступність; на сьогодні генеруються або знімаються сесії"""
    specialist = availability_service.set_availability(db, specialist.id, data.status)
    return profile_details(db, specialist)


@router.post("/slots/generate", response_model=List[schemas.SlotResponse], status_code=201)
def generate_slots(
    data: schemas.GenerateSlotsRequest,
    specialist: models.Specialist = Depends(get_current_specialist),
    db: Session = Depends(get_db)
):
    """Згенерувати сесії на дату (повторний виклик нічого не додає)"""
    return slot_service.generate_daily_slots(db, specialist.id, data.date)


@router.get("/slots", response_model=List[schemas.SlotResponse])
def get_own_slots(
    specialist: models.Specialist = Depends(get_current_specialist),
    db: Session = Depends(get_db)
):
    """Сьогоднішні майбутні сесії спеціаліста"""
    return slot_service.list_own_slots(db, specialist.id)


@router.get("/bookings", response_model=List[schemas.BookingResponse])
def get_bookings(
    specialist: models.Specialist = Depends(get_current_specialist),
    db: Session = Depends(get_db)
):
    """Всі бронювання сесій спеціаліста"""
    return booking_service.list_specialist_bookings(db, specialist.id)


@router.post("/bookings/{booking_id}/{decision}", response_model=schemas.BookingResponse)
def decide_booking(
    booking_id: int,
    decision: str,
    background_tasks: BackgroundTasks,
    specialist: models.Specialist = Depends(get_current_specialist),
    db: Session = Depends(get_db)
):
    """Прийняти (accept) або відхилити (reject) бронювання"""
    if decision not in booking_service.DECISIONS:
        raise HTTPException(status_code=404, detail="Невідома дія")

    booking = booking_service.decide_booking(db, booking_id, specialist.id, decision)

    background_tasks.add_task(
        telegram_notifier.send_booking_status_notification,
        **booking_event(booking)
    )
    return booking


@router.post("/verification", response_model=schemas.VerificationResponse, status_code=201)
def submit_verification(
    documents: schemas.VerificationSubmit,
    background_tasks: BackgroundTasks,
    specialist: models.Specialist = Depends(get_current_specialist),
    db: Session = Depends(get_db)
):
    """Подати документи на верифікацію (повторна подача замінює попередні)"""
    record = verification_service.submit(
        db, specialist.id, documents.front_document, documents.back_document
    )

    background_tasks.add_task(
        telegram_notifier.send_verification_submitted_notification,
        verification_id=record.id,
        specialist_id=specialist.id
    )
    return record


@router.get("/verification", response_model=schemas.VerificationStatusResponse)
def get_verification_status(
    specialist: models.Specialist = Depends(get_current_specialist),
    db: Session = Depends(get_db)
):
    """Статус верифікації з причиною відмови"""
    verification_status, reason = verification_service.status_of(db, specialist.id)
    return schemas.VerificationStatusResponse(status=verification_status, rejection_reason=reason)
