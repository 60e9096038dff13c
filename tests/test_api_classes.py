from datetime import date, time

from classbook.db import models
from factories import add_reservation, auth_headers, create_class, create_user


def test_admin_manages_classes(api_client):
    client, SessionLocal = api_client
    with SessionLocal() as db:
        admin = create_user(db, name="Admin", role=models.UserRole.admin)

    created = client.post(
        "/api/v1/classes",
        json={
            "title": "WOD",
            "coach_name": "Coach Ana",
            "date": "2026-03-10",
            "time": "07:00:00",
            "capacity": 8,
            "segments": [{"title": "Metcon", "details": "AMRAP 12"}],
        },
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    class_id = created.json()["id"]
    assert created.json()["available_seats"] == 8

    listed = client.get("/api/v1/classes", params={"date": "2026-03-10"})
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [class_id]
    assert listed.json()[0]["segments"][0]["title"] == "Metcon"

    patched = client.patch(
        f"/api/v1/classes/{class_id}",
        json={"capacity": 10},
        headers=auth_headers(admin),
    )
    assert patched.status_code == 200
    assert patched.json()["capacity"] == 10

    deleted = client.delete(f"/api/v1/classes/{class_id}", headers=auth_headers(admin))
    assert deleted.status_code == 204
    assert client.get(f"/api/v1/classes/{class_id}").status_code == 404


def test_students_cannot_manage_classes(api_client):
    client, SessionLocal = api_client
    with SessionLocal() as db:
        student = create_user(db, name="Joana")
        cls = create_class(db)

    response = client.post(
        "/api/v1/classes",
        json={"title": "WOD", "date": "2026-03-10", "time": "07:00:00", "capacity": 8},
        headers=auth_headers(student),
    )
    assert response.status_code == 403
    assert client.delete(f"/api/v1/classes/{cls.id}", headers=auth_headers(student)).status_code == 403


def test_create_class_validates_payload(api_client):
    client, SessionLocal = api_client
    with SessionLocal() as db:
        admin = create_user(db, name="Admin", role=models.UserRole.admin)

    response = client.post(
        "/api/v1/classes",
        json={"title": "WOD", "date": "2026-03-10", "time": "07:00:00", "capacity": 0},
        headers=auth_headers(admin),
    )

    assert response.status_code == 422


def test_attendees_and_count(api_client):
    client, SessionLocal = api_client
    with SessionLocal() as db:
        admin = create_user(db, name="Admin", role=models.UserRole.admin)
        cls = create_class(db, class_date=date(2026, 3, 10), class_time=time(9, 0))
        add_reservation(db, create_user(db, name="Joana"), cls)
        add_reservation(db, create_user(db, name="Pedro"), cls, models.ReservationStatus.checked_in)

    count = client.get(f"/api/v1/classes/{cls.id}/reservations/count")
    assert count.json() == {"count": 2}

    attendees = client.get(f"/api/v1/classes/{cls.id}/reservations", headers=auth_headers(admin))
    assert attendees.status_code == 200
    assert {item["user_name"] for item in attendees.json()} == {"Joana", "Pedro"}
