# physio_booking/modules/scheduling/suggestions.py
"""
Alternative slots offered when a booking request is rejected.

Suggestions are hints, not guarantees: nothing here re-runs the full
availability check on what it proposes.
"""
from __future__ import annotations

from datetime import date
from typing import List

from physio_booking.core.config import settings
from physio_booking.modules.scheduling.intervals import as_day, parse_hhmm
from physio_booking.modules.scheduling.repository import SchedulingRepository

HOUR_OFFSETS = (-2, -1, 1, 2)


def suggest_alternative_times(day: date, time: str, duration: int) -> List[str]:
    """
    Same minute, hour shifted by -2, -1, +1, +2 (in that order), kept only
    when the hour falls inside the operating window; first three win.
    """
    requested = parse_hhmm(time)
    alternatives: List[str] = []
    for offset in HOUR_OFFSETS:
        hour = requested.hour + offset
        if settings.OPERATING_START_HOUR <= hour < settings.OPERATING_END_HOUR:
            alternatives.append(f"{hour:02d}:{requested.minute:02d}")
    return alternatives[: settings.MAX_ALTERNATIVE_TIMES]


async def suggest_alternative_rooms(
    repo: SchedulingRepository,
    day: date,
    time: str,
    duration: int,
    current_room: str,
) -> List[str]:
    """
    Active rooms, other than `current_room`, with no live booking that day
    starting at exactly `time`.

    Only the start string is compared, not the interval: a room holding a
    09:15 booking is still offered for 09:00.
    """
    day = as_day(day)
    available: List[str] = []
    for room in await repo.list_active_rooms():
        if room.name == current_room:
            continue
        bookings = await repo.find_bookings_by_room_and_date(room.name, day)
        if not any(b.time == time for b in bookings):
            available.append(room.name)
    return available
