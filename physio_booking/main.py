# physio_booking/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from physio_booking.core.config import settings
from physio_booking.core.logging_config import configure_logging
from physio_booking.db.sql import get_engine
from physio_booking.routers import (
    admin,
    appointments,
    availability,
    health,
    patients,
    rooms,
    users,
    waiting_list,
)

logger = logging.getLogger(__name__)


# Define lifespan event
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    The lifespan function is used to manage the FastAPI application lifecycle.
    Schema creation is done by Alembic / init_db.py, not at startup.
    """
    configure_logging()
    logger.info("Starting %s (env=%s)", app.title, settings.APP_ENV)
    yield
    # Close pooled connections only if the engine was ever created
    if get_engine.cache_info().currsize:
        await get_engine().dispose()


app = FastAPI(
    title="Physiotherapy Appointment Scheduling",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Routing
app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(availability.router, prefix=settings.API_PREFIX)
app.include_router(appointments.router, prefix=settings.API_PREFIX)
app.include_router(waiting_list.router, prefix=settings.API_PREFIX)
app.include_router(rooms.router, prefix=settings.API_PREFIX)
app.include_router(patients.router, prefix=settings.API_PREFIX)
app.include_router(users.router, prefix=settings.API_PREFIX)
app.include_router(admin.router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    return {"message": "Physiotherapy scheduling API running successfully"}
