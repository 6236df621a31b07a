# physio_booking/routers/__init__.py
from . import admin
from . import appointments
from . import availability
from . import health
from . import patients
from . import rooms
from . import users
from . import waiting_list

__all__ = [
    "admin",
    "appointments",
    "availability",
    "health",
    "patients",
    "rooms",
    "users",
    "waiting_list",
]
