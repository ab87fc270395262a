"""
Tests for the directory HTTP routes.
"""


def test_directory_requires_authentication(client):
    assert client.get("/api/v1/directory/practices").status_code == 401


def test_create_practice_and_list(client, staff_headers):
    response = client.post(
        "/api/v1/directory/practices",
        json={"name": "Harbor Pediatrics", "phone": "555-0100"},
        headers=staff_headers,
    )
    assert response.status_code == 201
    practice_id = response.json()["id"]

    listing = client.get("/api/v1/directory/practices", headers=staff_headers).json()
    assert listing[0]["id"] == practice_id
    assert listing[0]["referral_count"] == 0
    assert listing[0]["locations"] == []


def test_create_practice_validation_error_shape(client, staff_headers):
    response = client.post("/api/v1/directory/practices", json={"name": ""}, headers=staff_headers)
    assert response.status_code == 422
    assert response.json() == {
        "detail": "Validation error",
        "errors": {"name": ["Practice name is required"]},
    }


def test_delete_blocked_practice_is_409(client, factory, staff_headers):
    practice = factory.practice()
    factory.referral(referring_practice_id=practice.id)

    response = client.delete(f"/api/v1/directory/practices/{practice.id}", headers=staff_headers)

    assert response.status_code == 409
    assert response.json()["count"] == 1


def test_delete_unknown_practice_is_404(client, staff_headers):
    response = client.delete("/api/v1/directory/practices/404", headers=staff_headers)
    assert response.status_code == 404


def test_eligible_doctors_route(client, factory, staff_headers):
    practice = factory.practice()
    north = factory.location(practice, name="North")
    alice = factory.doctor(practice, name="Alice", title="Dr.", locations=[north])
    factory.doctor(practice, name="Bob")

    response = client.get(
        f"/api/v1/directory/practices/{practice.id}/doctors",
        params={"location_id": north.id},
        headers=staff_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert [doctor["id"] for doctor in data] == [alice.id]
    assert data[0]["display_name"] == "Dr. Alice"


def test_doctor_detail_route(client, factory, staff_headers):
    practice = factory.practice()
    doctor = factory.doctor(practice, name="Alice")
    older = factory.referral(first="Old", referring_practice_id=practice.id, referring_doctor_id=doctor.id)
    newer = factory.referral(
        first="New",
        referring_practice_id=practice.id,
        referring_doctor_id=doctor.id,
        referral_date=older.referral_date.replace(year=2025),
    )

    response = client.get(f"/api/v1/directory/doctors/{doctor.id}", headers=staff_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["practice"]["id"] == practice.id
    assert [referral["id"] for referral in data["referrals"]] == [newer.id, older.id]
    assert data["notes"] == []


def test_note_routes(client, factory, staff_headers):
    practice = factory.practice()
    doctor = factory.doctor(practice)

    empty = client.post(
        f"/api/v1/directory/doctors/{doctor.id}/notes",
        json={"content": "  "},
        headers=staff_headers,
    )
    assert empty.status_code == 400
    assert empty.json()["detail"] == "Note cannot be empty"

    created = client.post(
        f"/api/v1/directory/doctors/{doctor.id}/notes",
        json={"content": "Sends faxes after 5pm"},
        headers=staff_headers,
    )
    assert created.status_code == 201
    note_id = created.json()["id"]

    other = factory.doctor(practice, name="Someone Else")
    mismatched = client.put(
        f"/api/v1/directory/doctors/{other.id}/notes/{note_id}",
        json={"content": "moved"},
        headers=staff_headers,
    )
    assert mismatched.status_code == 404

    deleted = client.delete(f"/api/v1/directory/doctors/{doctor.id}/notes/{note_id}", headers=staff_headers)
    assert deleted.status_code == 200
