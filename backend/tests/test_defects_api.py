from fastapi import status

from app.models import AuditLog, Defect
from app.models.enums import AuditAction
from tests.conftest import auth, client


def report(club, user, aircraft_key="aircraft", name="Flat nose tyre"):
    return client.post(
        "/api/defects",
        json={"aircraft_id": str(club[aircraft_key].id), "name": name, "description": "Found on preflight"},
        headers=auth(club[user]),
    )


def test_report_defect(club, db):
    response = report(club, "student")
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "open"
    assert data["aircraft"]["registration"] == "ZK-ABC"
    assert data["user"]["name"] == "Stu Dent"

    entry = db.query(AuditLog).one()
    assert entry.action == AuditAction.DEFECT_REPORTED


def test_cannot_report_defect_on_another_clubs_aircraft(club, db):
    response = report(club, "student", aircraft_key="other_aircraft")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert db.query(Defect).count() == 0


def test_list_defects_filters_by_aircraft_and_organization(club, db):
    report(club, "student", name="Flat nose tyre")
    report(club, "instructor", name="Landing light u/s")
    report(club, "outsider", aircraft_key="other_aircraft", name="Oil leak")

    response = client.get("/api/defects", headers=auth(club["student"]))
    assert response.status_code == status.HTTP_200_OK
    assert sorted(d["name"] for d in response.json()) == ["Flat nose tyre", "Landing light u/s"]

    response = client.get(
        "/api/defects",
        params={"aircraft_id": str(club["other_aircraft"].id)},
        headers=auth(club["student"]),
    )
    assert response.json() == []


def test_defect_status_moves(club, db):
    defect_id = report(club, "student").json()["id"]
    headers = auth(club["instructor"])

    response = client.patch(f"/api/defects/{defect_id}", json={"status": "pending"}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "pending"

    response = client.patch(f"/api/defects/{defect_id}", json={"status": "closed"}, headers=headers)
    assert response.json()["status"] == "closed"

    response = client.patch(f"/api/defects/{defect_id}", json={"status": "pending"}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Cannot move a closed defect to pending"

    response = client.patch(f"/api/defects/{defect_id}", json={"status": "open"}, headers=headers)
    assert response.json()["status"] == "open"


def test_defect_of_another_club_is_not_found(club, db):
    defect_id = report(club, "outsider", aircraft_key="other_aircraft").json()["id"]
    response = client.patch(
        f"/api/defects/{defect_id}", json={"status": "closed"}, headers=auth(club["instructor"])
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
