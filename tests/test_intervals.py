import datetime as dt

import pytest

from physio_booking.core.errors import ValidationError
from physio_booking.modules.scheduling.intervals import TimeInterval, as_day, parse_hhmm

DAY = dt.date(2024, 3, 11)


@pytest.mark.parametrize("value", ["00:00", "09:05", "19:59", "23:59"])
def test_parse_hhmm_accepts_24h(value):
    parsed = parse_hhmm(value)
    assert f"{parsed.hour:02d}:{parsed.minute:02d}" == value


@pytest.mark.parametrize("value", ["24:00", "9:00", "09:60", "0900", "", "09:00\n", "ab:cd"])
def test_parse_hhmm_rejects_malformed(value):
    with pytest.raises(ValidationError) as exc:
        parse_hhmm(value)
    assert exc.value.code == "invalid_time_format"


def test_as_day_truncates_datetime():
    assert as_day(dt.datetime(2024, 3, 11, 17, 45)) == DAY
    assert as_day(DAY) == DAY


def test_slot_interval_end_is_start_plus_duration():
    interval = TimeInterval.for_slot(DAY, "09:45", 45)
    assert interval.start == dt.datetime(2024, 3, 11, 9, 45)
    assert interval.end == dt.datetime(2024, 3, 11, 10, 30)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (("09:00", 60), ("09:30", 30), True),   # contained
        (("09:00", 60), ("08:30", 60), True),   # straddles start
        (("09:00", 30), ("09:30", 30), False),  # touching end
        (("09:30", 30), ("09:00", 30), False),  # touching start
        (("09:00", 30), ("11:00", 30), False),
    ],
)
def test_overlap_is_half_open(a, b, expected):
    first = TimeInterval.for_slot(DAY, *a)
    second = TimeInterval.for_slot(DAY, *b)
    assert first.overlaps(second) is expected
    assert second.overlaps(first) is expected


def test_buffer_pads_only_the_requested_interval():
    existing = TimeInterval.for_slot(DAY, "09:00", 45)  # ends 09:45
    # 09:50 padded back to 09:35 reaches into the existing booking
    assert TimeInterval.for_slot(DAY, "09:50", 30).overlaps_buffered(existing, 15)
    # 10:00 padded back to 09:45 only touches it
    assert not TimeInterval.for_slot(DAY, "10:00", 30).overlaps_buffered(existing, 15)
