from fastapi import status

from app.models import AircraftTechLog, Booking, LessonDebrief
from tests.conftest import at, auth, client, seed_booking


def test_briefing_then_checkout_for_lesson_booking(club, db):
    booking = seed_booking(db, club, at(9), at(10), lesson_id=club["lesson"].id)
    headers = auth(club["instructor"])
    checkout = {"route": "Local, Masterton circuit", "passengers": 0}

    response = client.post(f"/api/bookings/{booking.id}/checkout", json=checkout, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Briefing must be completed before checkout"

    response = client.post(f"/api/bookings/{booking.id}/briefing", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["briefing_completed"] is True

    response = client.post(f"/api/bookings/{booking.id}/checkout", json=checkout, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "flying"
    assert data["details"]["route"] == "Local, Masterton circuit"


def test_rental_checkout_needs_no_briefing(club, db):
    booking = seed_booking(db, club, at(9), at(10))
    response = client.post(
        f"/api/bookings/{booking.id}/checkout",
        json={"route": "Wairarapa"},
        headers=auth(club["student"]),
    )
    assert response.status_code == status.HTTP_200_OK


def test_briefing_is_staff_only(club, db):
    booking = seed_booking(db, club, at(9), at(10), lesson_id=club["lesson"].id)
    response = client.post(f"/api/bookings/{booking.id}/briefing", headers=auth(club["student"]))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_checkin_below_epsilon_is_rejected(club, db):
    booking = seed_booking(db, club, at(9), at(10), status="flying")
    response = client.post(
        f"/api/bookings/{booking.id}/checkin",
        json={"end_hobbs": 100.05},
        headers=auth(club["student"]),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    db.expire_all()
    stored = db.get(Booking, booking.id)
    assert stored.status == "flying"
    assert stored.booking_flight_times_id is None
    assert db.query(AircraftTechLog).count() == 1


def test_checkin_records_flight_time_and_tech_log(club, db):
    booking = seed_booking(db, club, at(9), at(10), status="flying")
    response = client.post(
        f"/api/bookings/{booking.id}/checkin",
        json={"end_hobbs": 100.2},
        headers=auth(club["student"]),
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["flight_time"] == 0.2
    assert data["booking"]["status"] == "complete"
    assert data["booking"]["flight_times"]["start_hobbs"] == 100.0
    assert data["booking"]["flight_times"]["rate_id"] == str(club["rate"].id)
    assert data["tech_log"]["current_hobbs"] == 100.2
    assert data["tech_log"]["current_tacho"] == 80.0

    response = client.get(
        "/api/aircraft/tech-log",
        params={"aircraft_id": str(club["aircraft"].id)},
        headers=auth(club["student"]),
    )
    assert response.json()["current_hobbs"] == 100.2


def test_checkin_rejects_meter_running_backwards(club, db):
    club["aircraft"].record_tacho = True
    db.commit()
    booking = seed_booking(db, club, at(9), at(10), status="flying")

    response = client.post(
        f"/api/bookings/{booking.id}/checkin",
        json={"end_hobbs": 50.0, "end_tacho": 81.0},
        headers=auth(club["student"]),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Hobbs reading is below the last tech log entry"

    db.expire_all()
    assert db.get(Booking, booking.id).status == "flying"
    assert db.query(AircraftTechLog).count() == 1


def test_checkin_carries_over_meter_without_advance(club, db):
    booking = seed_booking(db, club, at(9), at(10), status="flying")
    response = client.post(
        f"/api/bookings/{booking.id}/checkin",
        json={"end_hobbs": 101.0, "end_tacho": 80.05},
        headers=auth(club["student"]),
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["flight_time"] == 1.0
    assert data["tacho_delta"] is None
    assert data["tech_log"]["current_hobbs"] == 101.0
    assert data["tech_log"]["current_tacho"] == 80.0


def test_checkin_requires_flying_booking(club, db):
    booking = seed_booking(db, club, at(9), at(10))
    response = client.post(
        f"/api/bookings/{booking.id}/checkin",
        json={"end_hobbs": 101.0},
        headers=auth(club["student"]),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_checkin_rate_must_belong_to_aircraft(club, db):
    booking = seed_booking(db, club, at(9), at(10), status="flying")
    response = client.post(
        f"/api/bookings/{booking.id}/checkin",
        json={"end_hobbs": 101.0, "rate_id": str(club["org"].id)},
        headers=auth(club["student"]),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Rate does not belong to this aircraft"


def test_debrief_without_graded_items_writes_nothing(club, db):
    booking = seed_booking(db, club, at(9), at(10), status="complete", lesson_id=club["lesson"].id)
    response = client.post(
        f"/api/bookings/{booking.id}/debrief",
        json={
            "outcome": "PASS",
            "performances": [{"item": "Lookout", "grade": 0}, {"item": "Radio", "grade": 0}],
        },
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Grade at least one performance item before submitting"
    assert db.query(LessonDebrief).count() == 0


def test_debrief_submission(club, db):
    booking = seed_booking(db, club, at(9), at(10), status="complete", lesson_id=club["lesson"].id)
    response = client.post(
        f"/api/bookings/{booking.id}/debrief",
        json={
            "outcome": "PASS",
            "comments": "Good lookout",
            "performances": [{"item": "Lookout", "grade": 4}, {"item": "Radio", "grade": 0}],
        },
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["outcome"] == "PASS"
    assert len(data["performances"]) == 2

    db.expire_all()
    stored = db.get(Booking, booking.id)
    assert stored.debrief_completed is True
    assert stored.status == "complete"

    response = client.get(f"/api/debriefs/{data['id']}", headers=auth(club["student"]))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["comments"] == "Good lookout"
