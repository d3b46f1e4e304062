from datetime import date, datetime, time

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import IntegrityError

from servicehub import models
from servicehub.exceptions import NotFoundError
from servicehub.slot_service import (
    generate_daily_slots,
    list_available_slots,
    list_own_slots,
    working_hours,
)

from conftest import SUNDAY, TUESDAY


def test_working_hours_on_a_weekday_skip_lunch():
    hours = working_hours(TUESDAY)

    assert [start.hour for start, _ in hours] == [8, 9, 10, 11, 12, 14, 15, 16, 17]
    assert all(end.hour == start.hour + 1 for start, end in hours)


def test_working_hours_on_sunday_start_after_lunch():
    assert [start.hour for start, _ in working_hours(SUNDAY)] == [14, 15, 16, 17]


def test_generate_creates_available_hourly_slots(db, make_specialist):
    specialist = make_specialist()

    slots = generate_daily_slots(db, specialist.id, TUESDAY)

    assert len(slots) == 9
    assert {slot.status for slot in slots} == {"available"}
    assert {slot.date for slot in slots} == {TUESDAY}
    assert slots[0].start_time == time(8, 0)
    assert slots[-1].end_time == time(18, 0)


def test_generate_twice_is_a_no_op(db, make_specialist):
    specialist = make_specialist()

    first = generate_daily_slots(db, specialist.id, TUESDAY)
    first_ids = {slot.id for slot in first}
    second = generate_daily_slots(db, specialist.id, TUESDAY)

    assert second == []
    stored = db.scalars(
        select(models.SessionSlot).where(models.SessionSlot.specialist_id == specialist.id)
    ).all()
    assert {slot.id for slot in stored} == first_ids


def test_generate_fills_only_missing_hours(db, make_specialist):
    specialist = make_specialist()
    db.add(models.SessionSlot(
        specialist_id=specialist.id, date=TUESDAY, start_time=time(9, 0), end_time=time(10, 0),
    ))
    db.commit()

    created = generate_daily_slots(db, specialist.id, TUESDAY)

    assert time(9, 0) not in {slot.start_time for slot in created}
    assert len(created) == 8
    total = db.scalar(select(func.count(models.SessionSlot.id)))
    assert total == 9


def test_generate_for_unknown_specialist(db):
    with pytest.raises(NotFoundError):
        generate_daily_slots(db, 999, TUESDAY)


def test_one_slot_per_hour_bucket_is_enforced_by_the_store(db, make_specialist):
    specialist = make_specialist()
    generate_daily_slots(db, specialist.id, TUESDAY)

    db.add(models.SessionSlot(
        specialist_id=specialist.id, date=TUESDAY, start_time=time(8, 0), end_time=time(9, 0),
    ))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_list_available_slots_starts_after_the_given_moment(db, make_specialist):
    specialist = make_specialist()
    generate_daily_slots(db, specialist.id, TUESDAY)

    slots = list_available_slots(db, specialist.id, datetime(2025, 1, 7, 12, 30))

    assert [slot.start_time.hour for slot in slots] == [14, 15, 16, 17]


def test_list_available_slots_skips_booked_slots(db, make_specialist):
    specialist = make_specialist()
    slots = generate_daily_slots(db, specialist.id, TUESDAY)
    slots[0].status = models.SlotStatus.BOOKED.value
    db.commit()

    listed = list_available_slots(db, specialist.id, datetime(2025, 1, 7, 0, 0))

    assert len(listed) == 8
    assert listed[0].start_time == time(9, 0)


def test_list_available_slots_includes_later_days(db, make_specialist):
    specialist = make_specialist()
    generate_daily_slots(db, specialist.id, TUESDAY)
    generate_daily_slots(db, specialist.id, date(2025, 1, 8))

    listed = list_available_slots(db, specialist.id, datetime(2025, 1, 7, 17, 30))

    assert [(slot.date.day, slot.start_time.hour) for slot in listed][:2] == [(8, 8), (8, 9)]


def test_unavailable_specialist_lists_nothing(db, make_specialist):
    specialist = make_specialist()
    generate_daily_slots(db, specialist.id, TUESDAY)
    specialist.availability = models.Availability.NOT_AVAILABLE.value
    db.commit()

    assert list_available_slots(db, specialist.id, datetime(2025, 1, 7)) == []


def test_verification_gate_hides_unverified_specialists(db, make_specialist):
    unverified = make_specialist()
    verified = make_specialist(verified=True)
    generate_daily_slots(db, unverified.id, TUESDAY)
    generate_daily_slots(db, verified.id, TUESDAY)

    moment = datetime(2025, 1, 7)
    assert list_available_slots(db, unverified.id, moment, require_verified=True) == []
    assert len(list_available_slots(db, verified.id, moment, require_verified=True)) == 9
    assert len(list_available_slots(db, unverified.id, moment, require_verified=False)) == 9


def test_own_slots_are_today_and_upcoming_in_any_status(db, make_specialist):
    specialist = make_specialist()
    slots = generate_daily_slots(db, specialist.id, TUESDAY)
    slots[-1].status = models.SlotStatus.BOOKED.value
    db.commit()

    own = list_own_slots(db, specialist.id, now=datetime(2025, 1, 7, 15, 10))

    assert [(slot.start_time.hour, slot.status) for slot in own] == [(16, "available"), (17, "booked")]


def test_generation_that_loses_a_race_is_a_no_op(db, session_factory, make_specialist):
    specialist_id = make_specialist().id

    def generate_elsewhere(session, flush_context, instances):
        other = session_factory()
        try:
            generate_daily_slots(other, specialist_id, TUESDAY)
        finally:
            other.close()

    event.listen(db, "before_flush", generate_elsewhere, once=True)

    assert generate_daily_slots(db, specialist_id, TUESDAY) == []
    assert db.scalar(select(func.count(models.SessionSlot.id))) == 9
