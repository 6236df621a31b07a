# physio_booking/modules/scheduling/intervals.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Union

from physio_booking.core.errors import ValidationError

TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> time:
    """
    Parse a 24h "HH:MM" string. Raises ValidationError on anything else.
    """
    match = TIME_RE.fullmatch(value or "")
    if not match:
        raise ValidationError("invalid_time_format", "Time must be HH:MM (24h)")
    return time(int(match.group(1)), int(match.group(2)))


def as_day(value: Union[date, datetime]) -> date:
    """Calendar day used for bucketing; any time-of-day component is dropped."""
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class TimeInterval:
    """
    Half-open interval [start, end). Touching endpoints do not overlap.
    """

    start: datetime
    end: datetime

    @classmethod
    def for_slot(cls, day: Union[date, datetime], hhmm: str, duration_minutes: int) -> "TimeInterval":
        start = datetime.combine(as_day(day), parse_hhmm(hhmm))
        return cls(start, start + timedelta(minutes=duration_minutes))

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and self.end > other.start

    def expanded(self, minutes: int) -> "TimeInterval":
        pad = timedelta(minutes=minutes)
        return TimeInterval(self.start - pad, self.end + pad)

    def overlaps_buffered(self, other: "TimeInterval", buffer_minutes: int) -> bool:
        """
        Expand this interval by `buffer_minutes` on both sides, then test
        against `other` as-is.
        """
        return self.expanded(buffer_minutes).overlaps(other)
