import uuid

from physio_booking.core.security import create_access_token

from tests.conftest import api, auth_headers
from tests.fakes import add_booking, add_patient, add_user, add_waiting


def booking_body(patient, day, **extra):
    body = {
        "patientId": str(patient.id),
        "date": day.isoformat(),
        "time": "09:00",
        "duration": 30,
        "appointmentType": "initial-assessment",
        "room": "Room A",
    }
    body.update(extra)
    return body


async def test_root_and_health(client):
    assert (await client.get("/")).status_code == 200
    resp = await client.get(api("/health"))
    assert resp.json() == {"status": "ok"}


async def test_missing_or_bad_token_is_401(client, therapist):
    resp = await client.get(api("/appointments"))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "missing_token"

    resp = await client.get(api("/appointments"), headers={"Authorization": "Bearer nope"})
    assert resp.json()["detail"] == "invalid_token"

    ghost = create_access_token(subject=str(uuid.uuid4()))
    resp = await client.get(api("/appointments"), headers={"Authorization": f"Bearer {ghost}"})
    assert resp.json()["detail"] == "user_not_found"


async def test_book_then_fetch(client, therapist, patient, day):
    resp = await client.post(
        api("/appointments"), json=booking_body(patient, day), headers=auth_headers(therapist)
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "pending"
    assert body["date"] == day.isoformat()
    assert body["therapistName"] == "Dana Reyes"

    resp = await client.get(api(f"/appointments/{body['id']}"), headers=auth_headers(therapist))
    assert resp.status_code == 200
    assert resp.json()["patientName"] == patient.full_name


async def test_conflict_body_is_flat_camel_case(client, store, therapist, other_therapist, patient, day):
    add_booking(store, other_therapist, patient, day=day, time="09:00", duration=45, room="Room A")

    resp = await client.post(
        api("/appointments"),
        json=booking_body(patient, day, time="09:30"),
        headers=auth_headers(therapist),
    )

    assert resp.status_code == 409
    body = resp.json()
    assert body["error"] == "Time slot not available"
    assert body["reason"] == "room_conflict"
    assert body["conflictingAppointment"]["therapist"] == "Lee Moss"
    assert body["alternativeTimes"] == ["08:30", "10:30", "11:30"]
    assert body["alternativeRooms"] == ["Room B", "Room C"]


async def test_malformed_time_is_400(client, therapist, patient, day):
    resp = await client.post(
        api("/appointments"), json=booking_body(patient, day, time="9am"), headers=auth_headers(therapist)
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "invalid_time_format"


async def test_availability_endpoint(client, store, therapist, patient, day):
    add_booking(store, therapist, patient, day=day, time="09:00", room="Room B")
    params = {"date": day.isoformat(), "time": "09:00", "duration": 30, "room": "Room A"}

    resp = await client.get(api("/availability"), params=params, headers=auth_headers(therapist))

    assert resp.status_code == 200
    body = resp.json()
    assert body["isAvailable"] is False
    assert body["reason"] == "therapist_conflict"
    assert body["conflictingAppointment"]["room"] == "Room B"
    assert "therapist" not in body["conflictingAppointment"]


async def test_completed_booking_cannot_be_updated(client, store, therapist, patient, day):
    appt = add_booking(store, therapist, patient, day=day, time="09:00", status="completed")
    resp = await client.put(
        api(f"/appointments/{appt.id}"), json={"medicalNotes": "late edit"}, headers=auth_headers(therapist)
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "cannot_modify_completed_appointment"


async def test_cancel_over_http_notifies_promoted_patient(client, store, therapist, patient, notifier, day):
    appt = add_booking(store, therapist, patient, day=day, time="14:00")
    waiting_patient = add_patient(store, mrn="MRN-W", phone="+15550999")
    add_waiting(store, therapist, waiting_patient, day=day, priority=1)

    resp = await client.put(
        api(f"/appointments/{appt.id}"), json={"status": "cancelled"}, headers=auth_headers(therapist)
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert [phone for phone, _ in notifier.sent] == ["+15550999"]


async def test_delete_returns_message(client, store, therapist, patient, day):
    appt = add_booking(store, therapist, patient, day=day, time="09:00")
    resp = await client.delete(api(f"/appointments/{appt.id}"), headers=auth_headers(therapist))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Appointment deleted successfully"}
    assert appt.id not in store.bookings


async def test_other_therapist_gets_403(client, store, therapist, other_therapist, patient, day):
    appt = add_booking(store, therapist, patient, day=day, time="09:00")
    resp = await client.get(api(f"/appointments/{appt.id}"), headers=auth_headers(other_therapist))
    assert resp.status_code == 403


async def test_waiting_list_flow(client, store, therapist, patient, day):
    headers = auth_headers(therapist)
    resp = await client.post(
        api("/waiting-list"),
        json={
            "patientId": str(patient.id),
            "desiredDate": day.isoformat(),
            "desiredTime": "10:00",
            "appointmentType": "follow-up",
            "duration": 30,
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    entry = resp.json()
    assert entry["priorityNumber"] == 1

    resp = await client.post(
        api(f"/waiting-list/{entry['id']}/promote"),
        json={"date": day.isoformat(), "time": "10:00", "room": "Room B"},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["room"] == "Room B"
    assert (await client.get(api("/waiting-list"), headers=headers)).json() == []


async def test_patients_create_and_search(client, therapist):
    headers = auth_headers(therapist)
    body = {
        "medicalRecordNumber": "MRN-77",
        "firstName": "Iris",
        "lastName": "Vale",
        "dateOfBirth": "1990-02-03",
        "phoneNumber": "+15557777",
        "email": "Iris@Example.com",
    }
    resp = await client.post(api("/patients"), json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    assert resp.json()["email"] == "iris@example.com"

    assert (await client.post(api("/patients"), json=body, headers=headers)).status_code == 409

    resp = await client.get(api("/patients"), params={"q": "vale"}, headers=headers)
    assert [p["medicalRecordNumber"] for p in resp.json()] == ["MRN-77"]


async def test_rooms_are_admin_managed(client, therapist, admin):
    body = {"name": "Gym", "capacity": 4, "equipment": ["treadmill"]}
    assert (await client.post(api("/rooms"), json=body, headers=auth_headers(therapist))).status_code == 403

    resp = await client.post(api("/rooms"), json=body, headers=auth_headers(admin))
    assert resp.status_code == 201
    assert resp.json()["isActive"] is True

    names = [r["name"] for r in (await client.get(api("/rooms"), headers=auth_headers(therapist))).json()]
    assert names == ["Gym", "Room A", "Room B", "Room C"]


async def test_admin_user_management(client, store, admin):
    pending = add_user(store, status="pending", first_name="New")
    resp = await client.put(
        api("/admin/users"),
        json={"userId": str(pending.id), "action": "approve"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"

    resp = await client.put(
        api("/admin/users"),
        json={"userId": str(admin.id), "action": "demote"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 400

    resp = await client.get(api("/users/me"), headers=auth_headers(pending))
    assert resp.json()["status"] == "approved"
