import asyncio
from datetime import datetime
from uuid import UUID

from fastapi import status

from app.core.config import get_settings
from app.core.errors import SlotUnavailable
from app.models import Booking
from app.models.enums import SchedulerStatus
from app.services.aggregator import SchedulerBooking
from app.services.timeline import SchedulerBoard, TimelineConfig
from tests.conftest import DAY, at, auth, client, seed_booking


def test_day_view_positions_bookings(club, db):
    booking = seed_booking(db, club, at(9, 30), at(11), description="Navex")
    response = client.get(
        "/api/scheduler", params={"date": DAY.date().isoformat()}, headers=auth(club["instructor"])
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()

    assert [slot["label"] for slot in data["time_slots"]][:2] == ["08:00", "09:00"]
    kinds = [row["kind"] for row in data["resources"]]
    assert kinds == ["staff", "aircraft"]

    [placed] = data["bookings"]
    assert placed["uuid"] == str(booking.id)
    assert placed["left"] == 150
    assert placed["width"] == 150
    assert placed["status"] == "confirmed"
    assert placed["title"] == "Navex"
    assert placed["aircraft_registration"] == "ZK-ABC"


def test_day_view_normalizes_legacy_status(club, db):
    seed_booking(db, club, at(9), at(10), status="IN_PROGRESS")
    response = client.get(
        "/api/scheduler", params={"date": DAY.date().isoformat()}, headers=auth(club["instructor"])
    )
    assert response.json()["bookings"][0]["status"] == "flying"


def test_scheduler_requires_staff_role(club):
    response = client.get(
        "/api/scheduler", params={"date": DAY.date().isoformat()}, headers=auth(club["student"])
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_drag_proposal_does_not_write(club, db):
    booking = seed_booking(db, club, at(10), at(11))
    response = client.post(
        "/api/scheduler/proposals",
        json={"booking_id": str(booking.id), "pixel_delta_x": 150},
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_200_OK
    proposal = response.json()["proposal"]
    assert proposal["hours_delta"] == 2
    assert proposal["new_start"] == "2026-11-02T12:00:00"
    assert proposal["new_end"] == "2026-11-02T13:00:00"

    db.expire_all()
    assert db.get(Booking, booking.id).start_time == at(10)


def test_small_drag_has_no_proposal(club, db):
    booking = seed_booking(db, club, at(10), at(11))
    response = client.post(
        "/api/scheduler/proposals",
        json={"booking_id": str(booking.id), "pixel_delta_x": 30},
        headers=auth(club["instructor"]),
    )
    assert response.json() == {"proposal": None}


def test_confirm_reschedule(club, db):
    booking = seed_booking(db, club, at(10), at(11))
    response = client.post(
        "/api/scheduler/reschedule",
        json={
            "booking_id": str(booking.id),
            "new_start": "2026-11-02T12:00:00",
            "new_end": "2026-11-02T13:00:00",
        },
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["start_time"] == "2026-11-02T12:00:00"


def test_confirm_reschedule_into_conflict_leaves_booking_unchanged(club, db):
    booking = seed_booking(db, club, at(10), at(11))
    blocker = seed_booking(db, club, at(12), at(12, 30))

    response = client.post(
        "/api/scheduler/reschedule",
        json={
            "booking_id": str(booking.id),
            "new_start": "2026-11-02T12:00:00",
            "new_end": "2026-11-02T13:00:00",
        },
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert [UUID(c["id"]) for c in response.json()["conflicts"]] == [blocker.id]

    db.expire_all()
    stored = db.get(Booking, booking.id)
    assert (stored.start_time, stored.end_time) == (at(10), at(11))


def test_confirm_reschedule_rejects_changed_duration(club, db):
    booking = seed_booking(db, club, at(10), at(11))
    response = client.post(
        "/api/scheduler/reschedule",
        json={
            "booking_id": str(booking.id),
            "new_start": "2026-11-02T12:00:00",
            "new_end": "2026-11-02T14:00:00",
        },
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def _api_board(club):
    headers = auth(club["instructor"])

    async def loader():
        response = client.get("/api/scheduler", params={"date": DAY.date().isoformat()}, headers=headers)
        return [
            SchedulerBooking(
                uuid=UUID(item["uuid"]),
                start_date_time=datetime.fromisoformat(item["start_date_time"]),
                end_date_time=datetime.fromisoformat(item["end_date_time"]),
                status=SchedulerStatus(item["status"]),
                title=item["title"],
            )
            for item in response.json()["bookings"]
        ]

    async def confirmer(proposal):
        response = client.post(
            "/api/scheduler/reschedule",
            json={
                "booking_id": str(proposal.booking_id),
                "new_start": proposal.new_start.isoformat(),
                "new_end": proposal.new_end.isoformat(),
            },
            headers=headers,
        )
        if response.status_code == status.HTTP_409_CONFLICT:
            raise SlotUnavailable(response.json()["error"])

    board = SchedulerBoard(config=TimelineConfig.from_settings(get_settings()), loader=loader)
    asyncio.run(board.refresh())
    return board, confirmer


def test_board_over_api_moves_booking_and_reloads_day(club, db):
    booking = seed_booking(db, club, at(10), at(11))
    board, confirmer = _api_board(club)

    board.drag_end(booking.id, 2 * board.config.hour_width)
    assert asyncio.run(board.confirm(confirmer)) is True
    assert board.pending is None
    assert board.bookings[0].start_date_time == at(12)


def test_board_over_api_cancel_and_conflict_leave_day_unchanged(club, db):
    booking = seed_booking(db, club, at(10), at(11))
    seed_booking(db, club, at(12), at(13))
    board, confirmer = _api_board(club)

    board.drag_end(booking.id, 2 * board.config.hour_width)
    board.cancel()
    assert board.pending is None

    board.drag_end(booking.id, 2 * board.config.hour_width)
    assert asyncio.run(board.confirm(confirmer)) is False
    assert board.pending is None
    assert board.error
    db.expire_all()
    assert db.get(Booking, booking.id).start_time == at(10)
