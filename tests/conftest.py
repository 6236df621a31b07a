"""
Test configuration and fixtures.

Provides:
- In-memory store standing in for every SQL repository
- JWT token minting for authenticated API tests
- HTTPX AsyncClient against the ASGI app with repositories overridden
"""
import datetime as dt
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from physio_booking.core.config import settings
from physio_booking.core.security import create_access_token
from physio_booking.dependencies import (
    get_patient_repository,
    get_repository,
    get_room_repository,
    get_user_repository,
)
from physio_booking.main import app
from physio_booking.modules.notifications import get_notifier

from tests.fakes import (
    InMemoryStore,
    RecordingNotifier,
    add_patient,
    add_room,
    add_user,
    caller_for,
)

DAY = dt.date(2024, 3, 11)


@pytest.fixture
def day() -> dt.date:
    return DAY


@pytest.fixture
def store() -> InMemoryStore:
    s = InMemoryStore()
    for name in ("Room A", "Room B", "Room C"):
        add_room(s, name)
    return s


@pytest.fixture
def therapist(store):
    return add_user(store, first_name="Dana", last_name="Reyes")


@pytest.fixture
def other_therapist(store):
    return add_user(store, first_name="Lee", last_name="Moss")


@pytest.fixture
def admin(store):
    return add_user(store, role="admin", status="active", first_name="Ada", last_name="Boss")


@pytest.fixture
def patient(store):
    return add_patient(store)


@pytest.fixture
def therapist_caller(therapist):
    return caller_for(therapist)


@pytest.fixture
def admin_caller(admin):
    return caller_for(admin)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def client(store, notifier) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX client against the app, with every repository backed by `store`.
    """
    app.dependency_overrides[get_repository] = lambda: store
    app.dependency_overrides[get_patient_repository] = lambda: store
    app.dependency_overrides[get_room_repository] = lambda: store
    app.dependency_overrides[get_user_repository] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    token = create_access_token(subject=str(user.id), email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def api(path: str) -> str:
    return f"{settings.API_PREFIX}{path}"
