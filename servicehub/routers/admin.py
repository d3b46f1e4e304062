from fastapi import APIRouter, Depends, Query, BackgroundTasks
from sqlalchemy.orm import Session
from typing import List, Literal, Optional
from datetime import date

from .. import schemas
from ..auth import Actor, get_current_admin
from ..database import get_db
from .. import booking_service, verification_service
from ..email_service import send_verification_result_email
from ..telegram_service import telegram_notifier
from .specialist import booking_event

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/verifications", response_model=List[schemas.VerificationResponse])
def get_verifications(
    status: Optional[Literal["pending", "approved", "rejected"]] = Query("pending"),
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """Заявки на верифікацію (за замовчуванням ті, що очікують)"""
    return verification_service.list_verifications(db, status)


@router.get("/verifications/{verification_id}", response_model=schemas.VerificationResponse)
def get_verification(
    verification_id: int,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """Отримати заявку на верифікацію по ID"""
    return verification_service.get_verification(db, verification_id)


@router.put("/verifications/{verification_id}", response_model=schemas.VerificationResponse)
def adjudicate_verification(
    verification_id: int,
    decision: schemas.VerificationDecision,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """Підтвердити або відхилити документи спеціаліста"""
    record = verification_service.adjudicate(
        db, verification_id, decision.status, decision.rejection_reason
    )

    email = record.specialist.email
    if email:
        background_tasks.add_task(
            send_verification_result_email,
            email,
            record.status,
            record.rejection_reason
        )
    return record


@router.get("/bookings", response_model=schemas.BookingPage)
def get_bookings(
    status: Optional[Literal["pending", "accepted", "rejected", "cancelled"]] = Query(None),
    booking_date: Optional[date] = Query(None, alias="date"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """Всі бронювання з фільтрами та пагінацією"""
    bookings, total = booking_service.list_bookings(
        db, status=status, on_date=booking_date, page=page, limit=limit
    )
    return schemas.BookingPage(
        bookings=[schemas.BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=page,
        limit=limit
    )


@router.put("/bookings/{booking_id}/cancel", response_model=schemas.BookingResponse)
def cancel_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_current_admin)
):
    """Скасувати бронювання від імені платформи"""
    booking = booking_service.cancel_booking_as_admin(db, booking_id)

    background_tasks.add_task(
        telegram_notifier.send_booking_status_notification,
        **booking_event(booking)
    )
    return booking
