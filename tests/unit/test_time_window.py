from datetime import UTC, date, datetime

import pytest

from garage_api.core.exceptions import BadRequestError
from garage_api.core.time_window import (
    days_until,
    normalize_time,
    parse_time_to_minutes,
    validate_opening_hours,
    validate_reservation_window,
)


@pytest.mark.parametrize("value,expected", [("00:00", 0), ("9:05", 545), ("23:59", 1439)])
def test_parse_time_to_minutes(value, expected):
    assert parse_time_to_minutes(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "1200", ""])
def test_parse_time_rejects_malformed_values(value):
    with pytest.raises(BadRequestError):
        parse_time_to_minutes(value)


def test_normalize_time_pads_hours():
    assert normalize_time("8:30") == "08:30"
    assert normalize_time("18:00") == "18:00"


def test_start_must_be_before_end():
    with pytest.raises(BadRequestError) as exc_info:
        validate_reservation_window("10:00", "09:30", min_duration_minutes=30)
    assert exc_info.value.detail == "Start time must be before end time"


def test_window_below_minimum_duration_is_rejected():
    with pytest.raises(BadRequestError) as exc_info:
        validate_reservation_window("10:00", "10:20", min_duration_minutes=30)
    assert exc_info.value.detail == "Minimum duration is 30 minutes"


def test_window_of_exactly_minimum_duration_is_accepted():
    assert validate_reservation_window("10:00", "10:30", min_duration_minutes=30) == ("10:00", "10:30")


def test_window_must_fit_opening_hours():
    with pytest.raises(BadRequestError):
        validate_reservation_window("07:30", "09:00", 30, opening_time="08:00", closing_time="18:00")
    with pytest.raises(BadRequestError):
        validate_reservation_window("17:30", "18:30", 30, opening_time="08:00", closing_time="18:00")

    assert validate_reservation_window("8:00", "18:00", 30, opening_time="08:00", closing_time="18:00") == (
        "08:00",
        "18:00",
    )


def test_opening_hours_must_be_ordered():
    assert validate_opening_hours("8:00", "18:00") == ("08:00", "18:00")
    with pytest.raises(BadRequestError):
        validate_opening_hours("18:00", "08:00")


def test_days_until_counts_from_midnight_utc():
    now = datetime(2030, 5, 1, 12, 0, tzinfo=UTC)

    assert days_until(date(2030, 5, 3), now=now) == 1.5
    assert days_until(date(2030, 5, 1), now=now) == -0.5
