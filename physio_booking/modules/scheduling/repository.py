# physio_booking/modules/scheduling/repository.py
from __future__ import annotations

import hashlib
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, AsyncIterator, Optional, Protocol, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from physio_booking.core.errors import ConflictError
from physio_booking.modules.appointments.models import Appointment, ApptStatus
from physio_booking.modules.patients.models import Patient, PatientHistoryEntry
from physio_booking.modules.rooms.models import Room
from physio_booking.modules.log import write_audit_log
from physio_booking.modules.users.models import UserProfile
from physio_booking.modules.waiting_list.models import WaitingListEntry

logger = logging.getLogger(__name__)


class SchedulingRepository(Protocol):
    """
    Everything the availability checker, booking mutator and promotion
    engine need from storage. Passed in explicitly so the engine can run
    against the SQL implementation below or an in-memory fake.
    """

    # bookings
    async def get_booking(self, booking_id: UUID) -> Optional[Appointment]: ...
    async def find_bookings_by_room_and_date(self, room: str, day: date) -> Sequence[Appointment]: ...
    async def find_bookings_by_therapist_and_date(self, therapist_id: UUID, day: date) -> Sequence[Appointment]: ...
    async def count_active_bookings(
        self, therapist_id: UUID, day: date, exclude_booking_id: Optional[UUID] = None
    ) -> int: ...
    async def list_bookings(
        self,
        *,
        therapist_id: Optional[UUID] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[Appointment]: ...
    async def create_booking(self, booking: Appointment) -> Appointment: ...
    async def save_booking(self, booking: Appointment) -> Appointment: ...
    async def delete_booking(self, booking_id: UUID) -> bool: ...

    # rooms
    async def get_room(self, name: str) -> Optional[Room]: ...
    async def list_active_rooms(self) -> Sequence[Room]: ...

    # patients / therapists
    async def get_patient(self, patient_id: UUID) -> Optional[Patient]: ...
    async def append_patient_history(self, entry: PatientHistoryEntry) -> None: ...
    async def get_therapist(self, therapist_id: UUID) -> Optional[UserProfile]: ...
    async def increment_therapist_appointments(self, therapist_id: UUID) -> None: ...

    # waiting list
    async def get_waiting_entry(self, entry_id: UUID) -> Optional[WaitingListEntry]: ...
    async def find_waiting_entries(self, therapist_id: UUID, day: date) -> Sequence[WaitingListEntry]: ...
    async def list_waiting_entries(self, therapist_id: Optional[UUID] = None) -> Sequence[WaitingListEntry]: ...
    async def max_priority_number(self, therapist_id: UUID, day: date) -> int: ...
    async def add_waiting_entry(self, entry: WaitingListEntry) -> WaitingListEntry: ...
    async def delete_waiting_entry(self, entry_id: UUID) -> bool: ...

    # audit sink
    async def record_audit(
        self,
        action: str,
        *,
        performed_by: Optional[UUID],
        target_user_id: Optional[UUID] = None,
        old_value: Optional[dict[str, Any]] = None,
        new_value: Optional[dict[str, Any]] = None,
        details: Optional[str] = None,
    ) -> None: ...

    # concurrency
    def lock_slot(self, therapist_id: UUID, room: str, day: date) -> Any: ...
    def savepoint(self) -> Any: ...


def _lock_key(*parts: object) -> int:
    """
    Stable signed 64-bit key for pg_advisory_xact_lock.
    """
    digest = hashlib.blake2b("|".join(str(p) for p in parts).encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


_live = Appointment.status != ApptStatus.CANCELLED.value


class SqlSchedulingRepository:
    """
    SchedulingRepository backed by the request's AsyncSession.
    Writes are flushed, never committed: get_session owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------ bookings

    async def get_booking(self, booking_id: UUID) -> Optional[Appointment]:
        return await self.session.get(Appointment, booking_id)

    async def find_bookings_by_room_and_date(self, room: str, day: date) -> Sequence[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.room == room, Appointment.appointment_date == day, _live)
            .order_by(Appointment.time)
        )
        return (await self.session.execute(stmt)).scalars().all()

    async def find_bookings_by_therapist_and_date(
        self, therapist_id: UUID, day: date
    ) -> Sequence[Appointment]:
        stmt = (
            select(Appointment)
            .where(
                Appointment.therapist_id == therapist_id,
                Appointment.appointment_date == day,
                _live,
            )
            .order_by(Appointment.time)
        )
        return (await self.session.execute(stmt)).scalars().all()

    async def count_active_bookings(
        self, therapist_id: UUID, day: date, exclude_booking_id: Optional[UUID] = None
    ) -> int:
        conditions = [
            Appointment.therapist_id == therapist_id,
            Appointment.appointment_date == day,
            _live,
        ]
        if exclude_booking_id is not None:
            conditions.append(Appointment.id != exclude_booking_id)
        stmt = select(func.count()).select_from(Appointment).where(*conditions)
        return (await self.session.execute(stmt)).scalar_one()

    async def list_bookings(
        self,
        *,
        therapist_id: Optional[UUID] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[Appointment]:
        conditions = []
        if therapist_id is not None:
            conditions.append(Appointment.therapist_id == therapist_id)
        if start is not None:
            conditions.append(Appointment.appointment_date >= start)
        if end is not None:
            conditions.append(Appointment.appointment_date <= end)
        stmt = (
            select(Appointment)
            .where(*conditions)
            .order_by(Appointment.appointment_date, Appointment.time)
        )
        return (await self.session.execute(stmt)).scalars().all()

    async def create_booking(self, booking: Appointment) -> Appointment:
        try:
            # Own savepoint: a unique-index hit leaves the request transaction usable
            async with self.session.begin_nested():
                self.session.add(booking)
        except IntegrityError as exc:
            message = str(exc.orig).lower() if exc.orig else str(exc).lower()
            if "uq_appointments_room_day_time_live" in message or "unique" in message:
                raise ConflictError("slot_already_taken", "Room is already booked at this time") from exc
            raise
        await self.session.refresh(booking)
        return booking

    async def save_booking(self, booking: Appointment) -> Appointment:
        await self.session.flush()
        await self.session.refresh(booking)
        return booking

    async def delete_booking(self, booking_id: UUID) -> bool:
        res = await self.session.execute(delete(Appointment).where(Appointment.id == booking_id))
        return bool(res.rowcount)

    # --------------------------------------------------------------------- rooms

    async def get_room(self, name: str) -> Optional[Room]:
        stmt = select(Room).where(Room.name == name)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def list_active_rooms(self) -> Sequence[Room]:
        stmt = select(Room).where(Room.is_active.is_(True)).order_by(Room.name)
        return (await self.session.execute(stmt)).scalars().all()

    # ------------------------------------------------------- patients/therapists

    async def get_patient(self, patient_id: UUID) -> Optional[Patient]:
        return await self.session.get(Patient, patient_id)

    async def append_patient_history(self, entry: PatientHistoryEntry) -> None:
        self.session.add(entry)
        await self.session.flush()

    async def get_therapist(self, therapist_id: UUID) -> Optional[UserProfile]:
        return await self.session.get(UserProfile, therapist_id)

    async def increment_therapist_appointments(self, therapist_id: UUID) -> None:
        await self.session.execute(
            update(UserProfile)
            .where(UserProfile.id == therapist_id)
            .values(total_appointments=UserProfile.total_appointments + 1)
        )

    # -------------------------------------------------------------- waiting list

    async def get_waiting_entry(self, entry_id: UUID) -> Optional[WaitingListEntry]:
        return await self.session.get(WaitingListEntry, entry_id)

    async def find_waiting_entries(self, therapist_id: UUID, day: date) -> Sequence[WaitingListEntry]:
        stmt = (
            select(WaitingListEntry)
            .where(
                WaitingListEntry.therapist_id == therapist_id,
                WaitingListEntry.desired_date == day,
            )
            .order_by(WaitingListEntry.priority_number, WaitingListEntry.date_added)
        )
        return (await self.session.execute(stmt)).scalars().all()

    async def list_waiting_entries(self, therapist_id: Optional[UUID] = None) -> Sequence[WaitingListEntry]:
        stmt = select(WaitingListEntry).order_by(
            WaitingListEntry.priority_number, WaitingListEntry.date_added
        )
        if therapist_id is not None:
            stmt = stmt.where(WaitingListEntry.therapist_id == therapist_id)
        return (await self.session.execute(stmt)).scalars().all()

    async def max_priority_number(self, therapist_id: UUID, day: date) -> int:
        stmt = select(func.max(WaitingListEntry.priority_number)).where(
            WaitingListEntry.therapist_id == therapist_id,
            WaitingListEntry.desired_date == day,
        )
        return (await self.session.execute(stmt)).scalar_one_or_none() or 0

    async def add_waiting_entry(self, entry: WaitingListEntry) -> WaitingListEntry:
        try:
            async with self.session.begin_nested():
                self.session.add(entry)
        except IntegrityError as exc:
            # Two writers took the same max+1 priority
            raise ConflictError("waiting_priority_taken", "Waiting list changed, retry") from exc
        await self.session.refresh(entry)
        return entry

    async def delete_waiting_entry(self, entry_id: UUID) -> bool:
        res = await self.session.execute(delete(WaitingListEntry).where(WaitingListEntry.id == entry_id))
        return bool(res.rowcount)

    # --------------------------------------------------------------------- audit

    async def record_audit(
        self,
        action: str,
        *,
        performed_by: Optional[UUID],
        target_user_id: Optional[UUID] = None,
        old_value: Optional[dict[str, Any]] = None,
        new_value: Optional[dict[str, Any]] = None,
        details: Optional[str] = None,
    ) -> None:
        await write_audit_log(
            self.session,
            action,
            performed_by=performed_by,
            target_user_id=target_user_id,
            old_value=old_value,
            new_value=new_value,
            details=details,
        )

    # --------------------------------------------------------------- concurrency

    @asynccontextmanager
    async def lock_slot(self, therapist_id: UUID, room: str, day: date) -> AsyncIterator[None]:
        """
        Serialise writers touching the same (therapist, day) or (room, day).
        Transaction-scoped advisory locks on PostgreSQL, released at commit or
        rollback; other dialects rely on the unique index alone.
        """
        if self.session.bind.dialect.name == "postgresql":
            # Sorted so two writers never take the pair in opposite order
            for key in sorted({_lock_key("therapist", therapist_id, day), _lock_key("room", room, day)}):
                await self.session.execute(text("SELECT pg_advisory_xact_lock(:k)"), {"k": key})
        yield

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """
        SAVEPOINT around a side effect so its failure rolls back only its own
        writes, not the enclosing request transaction.
        """
        async with self.session.begin_nested():
            yield
