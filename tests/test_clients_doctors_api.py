"""API tests for /clients, /doctors, /initial-data and health checks"""

import pytest


# ============================================================================
# CLIENTS
# ============================================================================


def test_create_client_normalizes_fields(api, staff_headers):
    response = api.post(
        "/clients",
        json={"name": "  Carla Ruiz ", "phone": "11 4444-5555", "national_id": "27.999.000"},
        headers=staff_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Carla Ruiz"
    assert body["phone"] == "1144445555"
    assert body["national_id"] == "27999000"
    assert body["active"] is True


def test_duplicate_client(api, staff_headers, client_record):
    response = api.post(
        "/clients",
        json={"name": "Juan Otro", "national_id": client_record.national_id},
        headers=staff_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "client_already_exists"


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "Jo", "national_id": "30111333"},
        {"name": "Juan Pérez", "national_id": "123"},
        {"name": "Juan Pérez", "national_id": "30111333", "phone": "123"},
    ],
)
def test_invalid_client_payloads(api, staff_headers, payload):
    response = api.post("/clients", json=payload, headers=staff_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_toggle_client_flags(api, staff_headers, client_record):
    response = api.patch(
        f"/clients/{client_record.id}",
        json={"active": False, "needs_secretary": True},
        headers=staff_headers,
    )

    assert response.status_code == 200
    assert response.json()["active"] is False
    assert response.json()["needs_secretary"] is True


def test_update_client_requires_fields(api, staff_headers, client_record):
    response = api.patch(f"/clients/{client_record.id}", json={}, headers=staff_headers)

    assert response.status_code == 400


def test_update_missing_client(api, staff_headers):
    response = api.patch("/clients/999", json={"active": False}, headers=staff_headers)

    assert response.status_code == 404


def test_list_clients(api, staff_headers, client_record):
    response = api.get("/clients", headers=staff_headers)

    assert [c["id"] for c in response.json()] == [client_record.id]


# ============================================================================
# DOCTORS
# ============================================================================


def test_doctor_management_requires_admin(api, staff_headers):
    response = api.post(
        "/doctors",
        json={"name": "Dr. House", "work_start": "09:00", "work_end": "18:00"},
        headers=staff_headers,
    )

    assert response.status_code == 403


def test_admin_creates_and_updates_doctor(api, admin_headers):
    created = api.post(
        "/doctors",
        json={
            "name": "Dr. House",
            "specialty": "Diagnóstico",
            "work_start": "09:00",
            "work_end": "18:00",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201

    doctor_id = created.json()["id"]
    updated = api.patch(
        f"/doctors/{doctor_id}", json={"work_end": "20:00", "active": False}, headers=admin_headers
    )

    assert updated.status_code == 200
    assert updated.json()["work_end"] == "20:00"
    assert updated.json()["active"] is False
    assert updated.json()["work_start"] == "09:00"


@pytest.mark.parametrize("work_start", ["9:00", "24:00", "09:60", "nine"])
def test_invalid_working_hours(api, admin_headers, work_start):
    response = api.post(
        "/doctors",
        json={"name": "Dr. House", "work_start": work_start, "work_end": "18:00"},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_update_missing_doctor(api, admin_headers):
    response = api.patch("/doctors/999", json={"active": False}, headers=admin_headers)

    assert response.status_code == 404


def test_staff_can_list_doctors(api, staff_headers, doctor, other_doctor):
    response = api.get("/doctors", headers=staff_headers)

    assert response.status_code == 200
    assert {d["id"] for d in response.json()} == {doctor.id, other_doctor.id}


# ============================================================================
# DASHBOARD / HEALTH
# ============================================================================


def test_initial_data(api, staff_headers, doctor, client_record):
    api.post(
        "/appointments",
        json={
            "doctor_id": doctor.id,
            "client_id": client_record.id,
            "starts_at": "2025-11-03T14:00:00Z",
        },
        headers=staff_headers,
    )

    response = api.get("/initial-data", headers=staff_headers)

    assert response.status_code == 200
    body = response.json()
    assert [d["id"] for d in body["doctors"]] == [doctor.id]
    assert [c["id"] for c in body["clients"]] == [client_record.id]
    assert len(body["appointments"]) == 1
    assert body["appointments"][0]["doctor"]["name"] == doctor.name


def test_initial_data_requires_token(api):
    assert api.get("/initial-data").status_code == 401


def test_health(api):
    assert api.get("/health").json() == {"status": "healthy"}
