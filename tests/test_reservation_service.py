import threading

import pytest
from sqlalchemy import select

from servicehub import models
from servicehub.exceptions import NotFoundError, SlotUnavailableError
from servicehub.reservation_service import reserve_slot
from servicehub.slot_service import generate_daily_slots

from conftest import TUESDAY


@pytest.fixture
def slot_id(db, make_specialist):
    specialist = make_specialist()
    slots = generate_daily_slots(db, specialist.id, TUESDAY)
    slot_id = slots[1].id
    db.rollback()
    return slot_id


def test_reserve_creates_pending_booking_and_books_slot(db, slot_id, check_slot_invariant):
    booking = reserve_slot(db, slot_id, client_id=11)

    assert booking.status == "pending"
    assert booking.client_id == 11
    assert booking.slot_id == slot_id
    assert booking.created_at is not None
    assert db.get(models.SessionSlot, slot_id).status == "booked"
    check_slot_invariant()


def test_second_reservation_of_same_slot_fails(db, slot_id, check_slot_invariant):
    reserve_slot(db, slot_id, client_id=11)

    with pytest.raises(SlotUnavailableError):
        reserve_slot(db, slot_id, client_id=12)

    bookings = db.scalars(select(models.Booking).where(models.Booking.slot_id == slot_id)).all()
    assert [(b.client_id, b.status) for b in bookings] == [(11, "pending")]
    check_slot_invariant()


def test_retrying_the_same_slot_keeps_failing(db, slot_id):
    reserve_slot(db, slot_id, client_id=11)

    for _ in range(3):
        with pytest.raises(SlotUnavailableError):
            reserve_slot(db, slot_id, client_id=12)


def test_reserve_unknown_slot(db):
    with pytest.raises(NotFoundError):
        reserve_slot(db, 12345, client_id=11)


def test_concurrent_reservations_have_exactly_one_winner(session_factory, slot_id, db, check_slot_invariant):
    attempts = 8
    barrier = threading.Barrier(attempts)
    outcomes = []
    outcomes_lock = threading.Lock()

    def attempt(client_id):
        session = session_factory()
        try:
            barrier.wait()
            booking = reserve_slot(session, slot_id, client_id)
            outcome = ("won", booking.id)
        except SlotUnavailableError:
            outcome = ("lost", None)
        except Exception as e:
            outcome = ("error", repr(e))
        finally:
            session.close()
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt, args=(100 + i,)) for i in range(attempts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    kinds = sorted(kind for kind, _ in outcomes)
    assert kinds == ["lost"] * (attempts - 1) + ["won"], outcomes

    db.expire_all()
    assert db.get(models.SessionSlot, slot_id).status == "booked"
    bookings = db.scalars(select(models.Booking).where(models.Booking.slot_id == slot_id)).all()
    assert len(bookings) == 1
    assert bookings[0].status == "pending"
    check_slot_invariant()
