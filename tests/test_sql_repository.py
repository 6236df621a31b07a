"""
SqlSchedulingRepository against a real database.

Runs on a per-test SQLite file through aiosqlite so the partial unique
index, savepoints and ordering are exercised by an actual engine. The
engine hooks below hand BEGIN to SQLAlchemy, which SAVEPOINT needs on
this driver.
"""
import datetime as dt
import uuid
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from physio_booking.core.errors import ConflictError
from physio_booking.models import (
    Appointment,
    AuditLog,
    Base,
    Patient,
    PatientHistoryEntry,
    Room,
    UserProfile,
    WaitingListEntry,
)
from physio_booking.modules.appointments.schemas import AppointmentUpdateRequest
from physio_booking.modules.appointments.service import (
    delete_appointment_svc,
    update_appointment_svc,
)
from physio_booking.modules.scheduling.repository import SqlSchedulingRepository, _lock_key

from tests.fakes import caller_for

DAY = dt.date(2024, 6, 10)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'scheduling.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _no_driver_begin(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSession(engine, expire_on_commit=False) as s:
        yield s


@pytest.fixture
def repo(session) -> SqlSchedulingRepository:
    return SqlSchedulingRepository(session)


async def _add(session, *rows):
    session.add_all(rows)
    await session.flush()
    return rows[0] if len(rows) == 1 else rows


@pytest.fixture
async def db_therapist(session) -> UserProfile:
    return await _add(
        session,
        UserProfile(
            email="dana@clinic.test",
            first_name="Dana",
            last_name="Reyes",
            role="therapist",
            status="active",
            total_appointments=0,
        ),
    )


@pytest.fixture
async def db_patient(session) -> Patient:
    return await _add(session, _patient("MRN-100", "Sam"))


@pytest.fixture
async def db_rooms(session):
    return await _add(
        session,
        *(Room(name=name, capacity=1, equipment=[], is_active=True) for name in ("Room A", "Room B")),
    )


def _patient(mrn, first_name):
    return Patient(
        medical_record_number=mrn,
        first_name=first_name,
        last_name="Hale",
        date_of_birth=dt.date(1990, 1, 1),
        phone_number="+15550100",
    )


def _booking(therapist, patient, *, time="09:00", room="Room A", duration=30, status="pending", day=DAY):
    return Appointment(
        therapist_id=therapist.id,
        therapist_name=therapist.full_name,
        patient_id=patient.id,
        patient_name=patient.full_name,
        patient_phone=patient.phone_number,
        appointment_date=day,
        time=time,
        duration=duration,
        appointment_type="follow-up",
        room=room,
        status=status,
    )


def _waiting(therapist, patient, *, priority, added, day=DAY):
    return WaitingListEntry(
        therapist_id=therapist.id,
        patient_id=patient.id,
        patient_name=patient.full_name,
        patient_phone=patient.phone_number,
        desired_date=day,
        desired_time="09:00",
        appointment_type="follow-up",
        duration=30,
        priority_number=priority,
        date_added=added,
    )


async def _count(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


# BOOKINGS


async def test_second_live_booking_in_the_same_slot_is_a_conflict(repo, session, db_therapist, db_patient):
    await repo.create_booking(_booking(db_therapist, db_patient))

    with pytest.raises(ConflictError) as exc:
        await repo.create_booking(_booking(db_therapist, db_patient))

    assert exc.value.code == "slot_already_taken"
    # The savepoint absorbed the failure; the session keeps working
    assert await _count(session, Appointment) == 1


@pytest.mark.parametrize("released", ["no-show", "cancelled"])
async def test_released_booking_does_not_block_insert(repo, session, db_therapist, db_patient, released):
    await repo.create_booking(_booking(db_therapist, db_patient, status=released))

    refill = await repo.create_booking(_booking(db_therapist, db_patient))

    assert refill.status == "pending"
    assert refill.created_at is not None
    assert await _count(session, Appointment) == 2


async def test_cancelled_rows_are_excluded_from_day_queries(repo, db_therapist, db_patient):
    kept = await repo.create_booking(_booking(db_therapist, db_patient, time="10:00"))
    no_show = await repo.create_booking(_booking(db_therapist, db_patient, time="09:00", status="no-show"))
    await repo.create_booking(_booking(db_therapist, db_patient, time="11:00", status="cancelled"))
    await repo.create_booking(_booking(db_therapist, db_patient, time="10:00", day=DAY + dt.timedelta(days=1)))

    by_room = await repo.find_bookings_by_room_and_date("Room A", DAY)
    by_therapist = await repo.find_bookings_by_therapist_and_date(db_therapist.id, DAY)

    assert [b.id for b in by_room] == [no_show.id, kept.id]
    assert [b.id for b in by_therapist] == [no_show.id, kept.id]
    assert await repo.count_active_bookings(db_therapist.id, DAY) == 2
    assert await repo.count_active_bookings(db_therapist.id, DAY, exclude_booking_id=kept.id) == 1


async def test_delete_booking_reports_whether_a_row_went(repo, db_therapist, db_patient):
    booking = await repo.create_booking(_booking(db_therapist, db_patient))

    assert await repo.delete_booking(booking.id) is True
    assert await repo.delete_booking(booking.id) is False


async def test_list_bookings_filters_by_range(repo, db_therapist, db_patient):
    await repo.create_booking(_booking(db_therapist, db_patient, day=DAY))
    later = await repo.create_booking(_booking(db_therapist, db_patient, day=DAY + dt.timedelta(days=3)))

    rows = await repo.list_bookings(therapist_id=db_therapist.id, start=DAY + dt.timedelta(days=1))

    assert [b.id for b in rows] == [later.id]


async def test_only_active_rooms_are_listed(repo, session, db_rooms):
    db_rooms[1].is_active = False
    await session.flush()

    assert [r.name for r in await repo.list_active_rooms()] == ["Room A"]
    assert (await repo.get_room("Room B")).is_active is False
    assert await repo.get_room("Room Z") is None


async def test_therapist_counter_increments_in_sql(repo, session, db_therapist):
    await repo.increment_therapist_appointments(db_therapist.id)
    await repo.increment_therapist_appointments(db_therapist.id)
    await session.refresh(db_therapist)

    assert db_therapist.total_appointments == 2


# WAITING LIST


async def test_waiting_entries_come_back_by_priority_then_date_added(repo, session, db_therapist, db_patient):
    other = await _add(session, _patient("MRN-101", "Ana"))
    base = dt.datetime(2024, 6, 1, 8, 0)
    third = await repo.add_waiting_entry(_waiting(db_therapist, db_patient, priority=2, added=base))
    first = await repo.add_waiting_entry(_waiting(db_therapist, other, priority=1, added=base + dt.timedelta(hours=2)))
    # Same priority on another day never collides
    await repo.add_waiting_entry(
        _waiting(db_therapist, other, priority=1, added=base, day=DAY + dt.timedelta(days=1))
    )

    entries = await repo.find_waiting_entries(db_therapist.id, DAY)

    assert [e.id for e in entries] == [first.id, third.id]
    assert await repo.max_priority_number(db_therapist.id, DAY) == 2
    assert await repo.max_priority_number(db_therapist.id, DAY + dt.timedelta(days=2)) == 0


async def test_taken_priority_number_maps_to_conflict(repo, session, db_therapist, db_patient):
    await repo.add_waiting_entry(_waiting(db_therapist, db_patient, priority=1, added=dt.datetime(2024, 6, 1)))

    with pytest.raises(ConflictError) as exc:
        await repo.add_waiting_entry(_waiting(db_therapist, db_patient, priority=1, added=dt.datetime(2024, 6, 2)))

    assert exc.value.code == "waiting_priority_taken"
    assert await _count(session, WaitingListEntry) == 1


# TRANSACTIONS, LOCKS, AUDIT


async def test_savepoint_rolls_back_only_inner_writes(repo, session, db_therapist, db_patient):
    await repo.create_booking(_booking(db_therapist, db_patient, time="09:00"))

    with pytest.raises(RuntimeError):
        async with repo.savepoint():
            await repo.create_booking(_booking(db_therapist, db_patient, time="10:00"))
            raise RuntimeError("boom")

    assert [b.time for b in await repo.list_bookings()] == ["09:00"]


async def test_lock_slot_is_a_no_op_outside_postgresql(repo, session):
    async with repo.lock_slot(uuid.uuid4(), "Room A", DAY):
        assert await _count(session, Appointment) == 0


class _RecordingSession:
    def __init__(self, dialect):
        self.bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect))
        self.params = []

    async def execute(self, stmt, params=None):
        assert "pg_advisory_xact_lock" in str(stmt)
        self.params.append(params["k"])


async def test_lock_slot_takes_sorted_advisory_locks_on_postgresql():
    session = _RecordingSession("postgresql")
    therapist_id = uuid.uuid4()

    async with SqlSchedulingRepository(session).lock_slot(therapist_id, "Room A", DAY):
        pass

    expected = sorted({_lock_key("therapist", therapist_id, DAY), _lock_key("room", "Room A", DAY)})
    assert session.params == expected


def test_lock_key_is_stable_and_fits_bigint():
    key = _lock_key("room", "Room A", DAY)
    assert key == _lock_key("room", "Room A", DAY)
    assert key != _lock_key("room", "Room B", DAY)
    assert -(2 ** 63) <= key < 2 ** 63


async def test_record_audit_writes_a_row(repo, session, db_therapist):
    await repo.record_audit(
        "appointment_created",
        performed_by=db_therapist.id,
        target_user_id=db_therapist.id,
        new_value={"time": "09:00"},
        details="Booked Sam Hale",
    )

    row = (await session.execute(select(AuditLog))).scalar_one()
    assert row.action == "appointment_created"
    assert row.new_value == {"time": "09:00"}
    assert row.performed_by == db_therapist.id


# SERVICES OVER SQL


async def test_no_show_is_refilled_next_to_its_own_row(repo, session, db_therapist, db_patient, db_rooms):
    waiting_patient = await _add(session, _patient("MRN-102", "Ana"))
    booking = await repo.create_booking(_booking(db_therapist, db_patient, time="14:00", room="Room B"))
    entry = await repo.add_waiting_entry(
        _waiting(db_therapist, waiting_patient, priority=1, added=dt.datetime(2024, 6, 1))
    )

    await update_appointment_svc(
        repo, booking.id, AppointmentUpdateRequest(status="no-show"), caller_for(db_therapist)
    )

    rows = await repo.find_bookings_by_room_and_date("Room B", DAY)
    assert sorted(b.status for b in rows) == ["no-show", "pending"]
    assert await repo.get_waiting_entry(entry.id) is None
    history = (await session.execute(select(PatientHistoryEntry))).scalars().all()
    assert [h.patient_id for h in history] == [waiting_patient.id]
    await session.refresh(db_therapist)
    assert db_therapist.total_appointments == 1


async def test_deleting_no_show_promotes_over_sql(repo, session, db_therapist, db_patient, db_rooms):
    waiting_patient = await _add(session, _patient("MRN-103", "Ben"))
    no_show = await repo.create_booking(
        _booking(db_therapist, db_patient, time="11:00", room="Room A", status="no-show")
    )
    await repo.add_waiting_entry(_waiting(db_therapist, waiting_patient, priority=1, added=dt.datetime(2024, 6, 1)))

    outcome = await delete_appointment_svc(repo, no_show.id, caller_for(db_therapist))

    assert outcome.promoted is not None
    assert await repo.get_booking(no_show.id) is None
    [refill] = await repo.find_bookings_by_room_and_date("Room A", DAY)
    assert (refill.patient_id, refill.time, refill.status) == (waiting_patient.id, "11:00", "pending")
    assert await _count(session, WaitingListEntry) == 0
