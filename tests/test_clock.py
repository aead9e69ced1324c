from datetime import time

import pytest

from app.core.exceptions import TimeFormatError
from app.utils.clock import (
    add_minutes,
    format_time,
    from_minutes,
    intervals_overlap,
    parse_time,
    service_window,
    to_minutes,
    window_end,
)


@pytest.mark.parametrize(
    'value, expected',
    [
        ('19:00', time(19, 0)),
        ('19:00:00', time(19, 0)),
        ('08:05:30', time(8, 5, 30)),
        (time(12, 30), time(12, 30)),
    ],
)
def test_parse_time_accepts_short_and_full_forms(value, expected):
    assert parse_time(value) == expected


@pytest.mark.parametrize(
    'value',
    ['', '7:00', '24:00', '12:60', '12:00:61', '12-00', 'noon', None, 1900],
)
def test_parse_time_rejects_malformed_values(value):
    with pytest.raises(TimeFormatError):
        parse_time(value)


def test_to_minutes_and_back():
    assert to_minutes('19:00:00') == 1140
    assert from_minutes(1140) == '19:00:00'
    assert format_time('09:00') == '09:00:00'


def test_add_minutes_uses_service_duration_arithmetic():
    assert add_minutes('19:00', 105) == '20:45:00'
    assert add_minutes('12:00:00', 105) == '13:45:00'


def test_add_minutes_does_not_wrap_past_midnight():
    with pytest.raises(TimeFormatError):
        add_minutes('22:30', 105)


def test_intervals_touching_at_boundary_do_not_overlap():
    assert not intervals_overlap(1140, 1245, 1245, 1350)
    assert not intervals_overlap(1245, 1350, 1140, 1245)
    assert intervals_overlap(1140, 1245, 1244, 1349)


def test_service_window_may_extend_past_midnight():
    assert service_window('22:59') == (1379, 1484)


def test_window_end_is_capped_at_end_of_day():
    assert window_end('19:00') == time(20, 45)
    assert window_end('22:30') == time(23, 59, 59)
