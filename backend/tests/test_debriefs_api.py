from fastapi import status

from app.models import LessonDebriefPerformance
from tests.conftest import at, auth, client, seed_booking


def submit_debrief(club, db):
    booking = seed_booking(db, club, at(9), at(10), status="complete", lesson_id=club["lesson"].id)
    response = client.post(
        f"/api/bookings/{booking.id}/debrief",
        json={
            "outcome": "INCOMPLETE",
            "performances": [{"item": "Lookout", "grade": 3}, {"item": "Radio", "grade": 0}],
        },
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def performance_id(debrief, item):
    return next(p["id"] for p in debrief["performances"] if p["item"] == item)


def test_update_debrief_outcome_and_comments(club, db):
    debrief = submit_debrief(club, db)
    response = client.patch(
        f"/api/debriefs/{debrief['id']}",
        json={"outcome": "pass", "comments": "Solo ready"},
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["outcome"] == "PASS"
    assert response.json()["comments"] == "Solo ready"


def test_update_debrief_rejects_unknown_outcome(club, db):
    debrief = submit_debrief(club, db)
    response = client.patch(
        f"/api/debriefs/{debrief['id']}", json={"outcome": "MAYBE"}, headers=auth(club["instructor"])
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_debrief_edits_are_staff_only(club, db):
    debrief = submit_debrief(club, db)
    response = client.patch(
        f"/api/debriefs/{debrief['id']}", json={"comments": "Mine"}, headers=auth(club["student"])
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_add_performance(club, db):
    debrief = submit_debrief(club, db)
    response = client.post(
        f"/api/debriefs/{debrief['id']}/performance",
        json={"item": "Circuit spacing", "grade": 2, "comment": "Wide downwind"},
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_200_OK
    items = {p["item"]: p["grade"] for p in response.json()["performances"]}
    assert items == {"Lookout": 3, "Radio": 0, "Circuit spacing": 2}


def test_regrade_performance(club, db):
    debrief = submit_debrief(club, db)
    radio = performance_id(debrief, "Radio")
    response = client.patch(
        f"/api/debriefs/{debrief['id']}/performance/{radio}",
        json={"grade": 4},
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_200_OK
    assert {p["item"]: p["grade"] for p in response.json()["performances"]}["Radio"] == 4


def test_regrade_cannot_leave_every_item_ungraded(club, db):
    debrief = submit_debrief(club, db)
    lookout = performance_id(debrief, "Lookout")
    response = client.patch(
        f"/api/debriefs/{debrief['id']}/performance/{lookout}",
        json={"grade": 0},
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Grade at least one performance item before submitting"

    db.expire_all()
    stored = db.query(LessonDebriefPerformance).filter_by(item="Lookout").one()
    assert stored.grade == 3


def test_regrade_unknown_performance_is_not_found(club, db):
    debrief = submit_debrief(club, db)
    response = client.patch(
        f"/api/debriefs/{debrief['id']}/performance/{club['lesson'].id}",
        json={"grade": 2},
        headers=auth(club["instructor"]),
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_debrief_of_another_club_is_not_found(club, db):
    debrief = submit_debrief(club, db)
    response = client.patch(
        f"/api/debriefs/{debrief['id']}", json={"comments": "x"}, headers=auth(club["outsider"])
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
