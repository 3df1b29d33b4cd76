from datetime import datetime, timedelta
from itertools import product

import pytest

import asyncio

from app.core.errors import ValidationFailed
from app.core.security import RequestContext
from app.models.enums import OrgRole, ResourceKind
from app.services.overlap import find_conflicts, has_conflict, intervals_overlap, validate_interval
from tests.conftest import AsyncTestSession, at, seed_booking

BASE = datetime(2026, 11, 2, 9)


def hours(start, end):
    return BASE + timedelta(hours=start), BASE + timedelta(hours=end)


def test_overlap_is_symmetric():
    intervals = [hours(0, 1), hours(0.5, 1.5), hours(1, 2), hours(2.5, 3), hours(-1, 4)]
    for a, b in product(intervals, repeat=2):
        assert intervals_overlap(*a, *b) == intervals_overlap(*b, *a)


def test_touching_intervals_overlap():
    assert intervals_overlap(*hours(0, 1), *hours(1, 2))


def test_separate_intervals_do_not_overlap():
    one_minute = timedelta(minutes=1)
    start, end = hours(0, 1)
    assert not intervals_overlap(start, end, end + one_minute, end + timedelta(hours=1))


def test_inverted_interval_is_a_validation_error():
    with pytest.raises(ValidationFailed):
        validate_interval(*hours(2, 1))
    with pytest.raises(ValidationFailed):
        validate_interval(*hours(1, 1))


def _ctx(club, org_key="org"):
    return RequestContext(
        user_id=club["instructor"].id,
        organization_id=club[org_key].id,
        role=OrgRole.INSTRUCTOR.value,
        firebase_uid="instructor-uid",
    )


def _aircraft_conflict(ctx, aircraft_id, start, end, exclude=None):
    async def run():
        async with AsyncTestSession() as session:
            return await has_conflict(
                session, ctx, ResourceKind.AIRCRAFT, aircraft_id, start, end, exclude
            )

    return asyncio.run(run())


def test_only_confirmed_bookings_conflict(db, club):
    seed_booking(db, club, at(9), at(10), status="CONFIRMED")
    seed_booking(db, club, at(11), at(12), status="cancelled")
    aircraft_id = club["aircraft"].id

    assert _aircraft_conflict(_ctx(club), aircraft_id, at(9, 30), at(10, 30))
    assert not _aircraft_conflict(_ctx(club), aircraft_id, at(11), at(12))


def test_conflict_check_excludes_own_booking_and_other_clubs(db, club):
    booking = seed_booking(db, club, at(9), at(10))
    aircraft_id = club["aircraft"].id

    assert not _aircraft_conflict(_ctx(club), aircraft_id, at(9), at(10), exclude=booking.id)
    assert not _aircraft_conflict(_ctx(club, "other_org"), aircraft_id, at(9), at(10))


def test_find_conflicts_returns_the_blocking_bookings(db, club):
    booking = seed_booking(db, club, at(9), at(10))

    async def run():
        async with AsyncTestSession() as session:
            return await find_conflicts(
                session, _ctx(club), ResourceKind.AIRCRAFT, club["aircraft"].id, at(10), at(11)
            )

    conflicts = asyncio.run(run())
    assert [conflict.id for conflict in conflicts] == [booking.id]
