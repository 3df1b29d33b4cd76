from fastapi import status

from app.models import Lesson, StudentLesson
from tests.conftest import auth, client


def _lesson(db, club, name, prerequisites=None):
    lesson = Lesson(organization_id=club["org"].id, name=name, prerequisites=prerequisites)
    db.add(lesson)
    db.commit()
    return lesson


def test_lesson_without_prerequisites(club):
    response = client.get(
        "/api/bookings/check-prerequisites",
        params={"student_id": str(club["student"].id), "lesson_id": str(club["lesson"].id)},
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "success"


def test_missing_prerequisites_are_listed(club, db):
    stalls = _lesson(db, club, "Stalling")
    circuits = _lesson(db, club, "Circuits")
    solo = _lesson(db, club, "First Solo", prerequisites=[{"prerequisites": [str(stalls.id), str(circuits.id)]}])
    db.add(StudentLesson(student_id=club["student"].id, lesson_id=stalls.id))
    db.commit()

    response = client.get(
        "/api/bookings/check-prerequisites",
        params={"student_id": str(club["student"].id), "lesson_id": str(solo.id)},
        headers=auth(club["instructor"]),
    )
    data = response.json()
    assert data["status"] == "error"
    assert [lesson["name"] for lesson in data["missing_prerequisites"]] == ["Circuits"]


def test_completed_prerequisites_pass(club, db):
    stalls = _lesson(db, club, "Stalling")
    solo = _lesson(db, club, "First Solo", prerequisites=[str(stalls.id)])
    db.add(StudentLesson(student_id=club["student"].id, lesson_id=stalls.id))
    db.commit()

    response = client.get(
        "/api/bookings/check-prerequisites",
        params={"student_id": str(club["student"].id), "lesson_id": str(solo.id)},
        headers=auth(club["instructor"]),
    )
    assert response.json() == {
        "status": "success",
        "message": "All prerequisites completed",
        "missing_prerequisites": [],
    }


def test_missing_parameters_are_bad_request(club):
    response = client.get("/api/bookings/check-prerequisites", headers=auth(club["instructor"]))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
