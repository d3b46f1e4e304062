"""
Pytest configuration and fixtures.
"""
import os
import tempfile
from datetime import date
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

_import_dir = tempfile.mkdtemp(prefix="servicehub-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_import_dir, 'import.db')}")
os.environ["REQUIRE_VERIFIED_SPECIALISTS"] = "false"
os.environ["MAIL_ENABLED"] = "false"
os.environ["TELEGRAM_BOT_TOKEN"] = ""

from servicehub import models  # noqa: E402
from servicehub.auth import create_access_token  # noqa: E402
from servicehub.database import Base, get_db, make_engine  # noqa: E402

TUESDAY = date(2025, 1, 7)
SUNDAY = date(2025, 1, 5)


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite file database per test."""
    engine = make_engine(f"sqlite:///{tmp_path / 'servicehub.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_specialist(db):
    """Create specialist profiles directly in the store."""
    user_ids = count(1000)

    def _make(availability="available", verified=False, services="haircut, coloring", experience=5, email=None):
        specialist = models.Specialist(
            user_id=next(user_ids),
            services=services,
            skills="",
            experience=experience,
            availability=availability,
            email=email,
        )
        db.add(specialist)
        db.flush()
        if verified:
            db.add(models.SpecialistVerification(
                specialist_id=specialist.id,
                front_document="docs/front.jpg",
                back_document="docs/back.jpg",
                status=models.VerificationStatus.APPROVED.value,
            ))
        db.commit()
        db.refresh(specialist)
        return specialist

    return _make


@pytest.fixture
def app(session_factory):
    """The FastAPI app bound to the per-test database."""
    from servicehub.main import app as main_app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    main_app.dependency_overrides[get_db] = override_get_db
    yield main_app
    main_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth():
    """Build Authorization headers for a user id and role."""

    def _headers(user_id: int, role: str) -> dict:
        token = create_access_token({"sub": str(user_id), "role": role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def check_slot_invariant(db):
    """Assert: slot booked <=> exactly one pending/accepted booking references it."""

    def _check():
        db.expire_all()
        for slot in db.scalars(select(models.SessionSlot)).all():
            live = [b for b in slot.bookings if b.status in models.LIVE_BOOKING_STATUSES]
            if slot.status == models.SlotStatus.BOOKED.value:
                assert len(live) == 1, f"slot {slot.id} booked with {len(live)} live bookings"
            else:
                assert live == [], f"slot {slot.id} available with live bookings"

    return _check


@pytest.fixture
def fail_statement(engine):
    """Make the store fail on every statement that starts with the given SQL."""
    listeners = []

    def _fail(prefix: str):
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            if statement.lstrip().upper().startswith(prefix.upper()):
                raise OperationalError(statement, parameters, Exception("disk I/O error"))

        event.listen(engine, "before_cursor_execute", before_cursor_execute)
        listeners.append(before_cursor_execute)

    yield _fail
    for listener in listeners:
        event.remove(engine, "before_cursor_execute", listener)
