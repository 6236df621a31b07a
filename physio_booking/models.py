# physio_booking/models.py
# Import every ORM model so Base.metadata knows all tables
# (used by init_db, init_db.py and the Alembic environment).
from physio_booking.db.base import Base
from physio_booking.modules.users.models import AuditLog, UserProfile
from physio_booking.modules.patients.models import Patient, PatientHistoryEntry
from physio_booking.modules.rooms.models import Room
from physio_booking.modules.appointments.models import Appointment
from physio_booking.modules.waiting_list.models import WaitingListEntry

__all__ = [
    "Base",
    "AuditLog",
    "UserProfile",
    "Patient",
    "PatientHistoryEntry",
    "Room",
    "Appointment",
    "WaitingListEntry",
]
