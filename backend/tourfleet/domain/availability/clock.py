"""Wall-clock arithmetic for blocks that live inside a single calendar day.

Times are handled as minutes since midnight. A block never crosses midnight, so
any result outside ``0..1440`` is rejected rather than wrapped.
"""

from __future__ import annotations

from datetime import time

MINUTES_PER_DAY = 24 * 60


def parse_time(value: str | time) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    text = value.strip()
    parts = text.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"invalid_time:{value}")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"invalid_time:{value}") from exc
    if not 0 <= minutes < 60:
        raise ValueError(f"invalid_time:{value}")
    return minutes_to_time(hours * 60 + minutes)


def format_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def time_to_minutes(value: str | time) -> int:
    parsed = parse_time(value) if isinstance(value, str) else value
    return parsed.hour * 60 + parsed.minute


def minutes_to_time(minutes: int) -> time:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"time_out_of_day:{minutes}")
    return time(hour=minutes // 60, minute=minutes % 60)


def add_minutes(value: str | time, minutes: int) -> time:
    return minutes_to_time(time_to_minutes(value) + minutes)


def subtract_minutes(value: str | time, minutes: int) -> time:
    return minutes_to_time(time_to_minutes(value) - minutes)


def add_hours(value: str | time, hours: float) -> time:
    return add_minutes(value, hours_to_minutes(hours))


def hours_to_minutes(hours: float) -> int:
    return int(round(hours * 60))


def is_within_operating_hours(
    start_minutes: int,
    end_minutes: int,
    day_start: str | time,
    day_end: str | time,
) -> bool:
    return start_minutes >= time_to_minutes(day_start) and end_minutes <= time_to_minutes(day_end)
