"""Shared fixtures: a file-backed SQLite database and an authenticated TestClient.

The bearer token sent by tests is taken as the caller's Firebase uid; the
request context is then resolved from the database exactly as in production.
"""

import os
from datetime import datetime
from decimal import Decimal
from pathlib import Path

OUT_DIR = Path(__file__).resolve().parent.parent / "out"
OUT_DIR.mkdir(exist_ok=True)
DB_PATH = OUT_DIR / "tests.db"

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"
os.environ["DEBUG"] = "true"
os.environ["FIREBASE_PROJECT_ID"] = "test"
os.environ["ALLOWED_ORIGINS"] = "http://localhost"
os.environ.pop("GOOGLE_APPLICATION_CREDENTIALS", None)

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.core.database import Base, get_db
from app.core.errors import Unauthenticated
from app.core.security import FirebaseIdentity, security, verify_firebase_token
from app.main import app
from app.models import (
    Aircraft,
    AircraftRate,
    AircraftTechLog,
    Booking,
    FlightType,
    Lesson,
    Organization,
    OrgMembership,
    User,
)
from app.models.enums import OrgRole

sync_engine = create_engine(f"sqlite:///{DB_PATH}")
SyncSession = sessionmaker(bind=sync_engine, expire_on_commit=False)

# NullPool: TestClient runs each request on its own event loop.
async_engine = create_async_engine(os.environ["DATABASE_URL"], poolclass=NullPool)
AsyncTestSession = async_sessionmaker(async_engine, expire_on_commit=False, autoflush=False)

Base.metadata.drop_all(bind=sync_engine)
Base.metadata.create_all(bind=sync_engine)


async def override_get_db():
    async with AsyncTestSession() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def override_verify_firebase_token(bearer=Depends(security)) -> FirebaseIdentity:
    if bearer is None or not bearer.credentials:
        raise Unauthenticated("Unauthorized")
    return FirebaseIdentity(uid=bearer.credentials)


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[verify_firebase_token] = override_verify_firebase_token

client = TestClient(app)

DAY = datetime(2026, 11, 2)


def at(hour: int, minute: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute)


def auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {user.firebase_uid}"}


@pytest.fixture(autouse=True)
def clear_db():
    yield
    with sync_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture
def db():
    session = SyncSession()
    try:
        yield session
    finally:
        session.close()


def _user(db, org, uid, name, role, is_staff=False):
    user = User(firebase_uid=uid, email=f"{uid}@example.org", name=name, is_staff=is_staff)
    db.add(user)
    db.flush()
    if org is not None:
        db.add(OrgMembership(org_id=org.id, user_id=user.id, role=role))
    return user


@pytest.fixture
def club(db):
    """One aero club with an instructor, a student, an aircraft and its rate."""
    org = Organization(name="Wairarapa Aero Club", slug="wairarapa")
    other_org = Organization(name="Other Club", slug="other")
    db.add_all([org, other_org])
    db.flush()

    instructor = _user(db, org, "instructor-uid", "Ina Structor", OrgRole.INSTRUCTOR, is_staff=True)
    student = _user(db, org, "student-uid", "Stu Dent", OrgRole.STUDENT)
    outsider = _user(db, other_org, "outsider-uid", "Out Sider", OrgRole.OWNER)
    orphan = _user(db, None, "orphan-uid", "No Club", None)

    dual = FlightType(organization_id=org.id, name="Dual", is_instructional=True)
    other_type = FlightType(organization_id=other_org.id, name="Rental")
    db.add_all([dual, other_type])
    db.flush()

    aircraft = Aircraft(
        organization_id=org.id,
        registration="ZK-ABC",
        aircraft_type="C172",
        record_hobbs=True,
        record_tacho=False,
    )
    other_aircraft = Aircraft(organization_id=other_org.id, registration="ZK-XYZ")
    db.add_all([aircraft, other_aircraft])
    db.flush()

    rate = AircraftRate(aircraft_id=aircraft.id, flight_type_id=dual.id, rate=Decimal("250.00"))
    tech_log = AircraftTechLog(
        aircraft_id=aircraft.id,
        current_hobbs=100.0,
        current_tacho=80.0,
        created_at=datetime(2000, 1, 1),
    )
    lesson = Lesson(organization_id=org.id, name="Effects of Controls", objective="Primary controls")
    db.add_all([rate, tech_log, lesson])
    db.commit()

    return {
        "org": org,
        "other_org": other_org,
        "instructor": instructor,
        "student": student,
        "outsider": outsider,
        "orphan": orphan,
        "flight_type": dual,
        "other_flight_type": other_type,
        "aircraft": aircraft,
        "other_aircraft": other_aircraft,
        "rate": rate,
        "tech_log": tech_log,
        "lesson": lesson,
    }


def seed_booking(db, club, start, end, status="confirmed", **fields):
    booking = Booking(
        organization_id=fields.pop("organization_id", club["org"].id),
        start_time=start,
        end_time=end,
        aircraft_id=fields.pop("aircraft_id", club["aircraft"].id),
        user_id=fields.pop("user_id", club["student"].id),
        flight_type_id=fields.pop("flight_type_id", club["flight_type"].id),
        status=status,
        briefing_completed=fields.pop("briefing_completed", False),
        debrief_completed=fields.pop("debrief_completed", False),
        **fields,
    )
    db.add(booking)
    db.commit()
    return booking
