"""Clock-time helpers for the "HH:MM" values stored on bays and reservations.

Times are persisted zero-padded so that string comparison in SQL matches
chronological order.
"""

import re
from datetime import UTC, date, datetime, time, timedelta

from garage_api.core.exceptions import BadRequestError

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
MINUTES_PER_DAY = 24 * 60


def parse_time_to_minutes(value: str) -> int:
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise BadRequestError(f"Invalid time format '{value}' (expected HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


def normalize_time(value: str) -> str:
    minutes = parse_time_to_minutes(value)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def validate_opening_hours(opening_time: str, closing_time: str) -> tuple[str, str]:
    opening = normalize_time(opening_time)
    closing = normalize_time(closing_time)
    if opening >= closing:
        raise BadRequestError("Opening time must be before closing time")
    return opening, closing


def validate_reservation_window(
    start_time: str,
    end_time: str,
    min_duration_minutes: int,
    opening_time: str | None = None,
    closing_time: str | None = None,
) -> tuple[str, str]:
    start_minutes = parse_time_to_minutes(start_time)
    end_minutes = parse_time_to_minutes(end_time)

    if start_minutes >= end_minutes:
        raise BadRequestError("Start time must be before end time")
    if end_minutes - start_minutes < min_duration_minutes:
        raise BadRequestError(f"Minimum duration is {min_duration_minutes} minutes")

    if opening_time and closing_time:
        if start_minutes < parse_time_to_minutes(opening_time) or end_minutes > parse_time_to_minutes(closing_time):
            raise BadRequestError(f"Garage is open from {opening_time} to {closing_time}")

    return normalize_time(start_time), normalize_time(end_time)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def today_utc(now: datetime | None = None) -> date:
    return (now or datetime.now(UTC)).astimezone(UTC).date()


def days_until(day: date, now: datetime | None = None) -> float:
    current_time = now or datetime.now(UTC)
    return (start_of_day(day) - current_time) / timedelta(days=1)
