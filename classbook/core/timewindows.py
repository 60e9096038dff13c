"""Schedule rules evaluated on naive gym wall-clock datetimes.

Class date and time are stored without a timezone; every comparison here
combines them as-is and compares against ``local_now()``, which is the
current time in the configured studio timezone with tzinfo dropped.
"""
from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum
from zoneinfo import ZoneInfo

from ..config import get_settings
from .constants import (
    BOOKING_CLOSES_BEFORE,
    BOOKING_OPENS_BEFORE,
    CHECK_IN_GRACE,
    CLASS_DURATION,
)


class BookingWindowState(str, Enum):
    pending = "pending"
    open = "open"
    closed = "closed"


def local_now() -> datetime:
    settings = get_settings()
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None, microsecond=0)


def class_start(class_date: date, class_time: time) -> datetime:
    return datetime.combine(class_date, class_time.replace(second=0, microsecond=0))


def class_end(class_date: date, class_time: time) -> datetime:
    return class_start(class_date, class_time) + CLASS_DURATION


def check_in_deadline(class_date: date, class_time: time) -> datetime:
    return class_start(class_date, class_time) + CHECK_IN_GRACE


def is_check_in_window_open(class_date: date, class_time: time, now: datetime) -> bool:
    """Advisory UI predicate; self check-in only enforces the deadline."""
    start = class_start(class_date, class_time)
    return start <= now <= start + CHECK_IN_GRACE


def booking_opens_at(class_date: date, class_time: time) -> datetime:
    return class_start(class_date, class_time) - BOOKING_OPENS_BEFORE


def booking_closes_at(class_date: date, class_time: time) -> datetime:
    return class_start(class_date, class_time) - BOOKING_CLOSES_BEFORE


def booking_window_state(class_date: date, class_time: time, now: datetime) -> BookingWindowState:
    if now < booking_opens_at(class_date, class_time):
        return BookingWindowState.pending
    if now > booking_closes_at(class_date, class_time):
        return BookingWindowState.closed
    return BookingWindowState.open


def is_class_over(class_date: date | None, class_time: time | None, now: datetime) -> bool:
    """History rule: rows missing schedule data are treated as finished."""
    if class_date is None or class_time is None:
        return True
    return now > class_end(class_date, class_time)


def is_active_booking(class_date: date | None, class_time: time | None, now: datetime) -> bool:
    """Single-active-booking rule: rows missing schedule data stay active."""
    if class_date is None or class_time is None:
        return True
    return now <= class_end(class_date, class_time)
