# physio_booking/modules/appointments/persistence.py
from __future__ import annotations

from physio_booking.modules.appointments.models import Appointment
from physio_booking.modules.patients.models import PatientHistoryEntry
from physio_booking.modules.scheduling.repository import SchedulingRepository


async def persist_new_booking(repo: SchedulingRepository, booking: Appointment) -> Appointment:
    """
    Insert a booking and apply its bookkeeping: patient history line and
    the therapist's running appointment counter.
    Callers must have run the availability check first.
    """
    booking = await repo.create_booking(booking)
    await repo.append_patient_history(
        PatientHistoryEntry(
            patient_id=booking.patient_id,
            appointment_id=booking.id,
            date=booking.appointment_date,
            therapist=booking.therapist_name,
            type=booking.appointment_type,
            status=booking.status,
        )
    )
    await repo.increment_therapist_appointments(booking.therapist_id)
    return booking
