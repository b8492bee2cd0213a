"""
GymClock Schedule Validator

Booking window rules for new classes, reservations and workouts:
- Nothing in the past
- Clock time between opening (04:00) and closing (20:00)
- 20:00 itself is allowed, 20:01 is not

Pure functions. "now" is injectable everywhere for testability.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import List, Optional

from gymclock.core.config import CLOSING_HOUR, OPENING_HOUR


class RejectionReason(Enum):
    IN_PAST = "in_past"
    BEFORE_OPENING = "before_opening"
    AFTER_CLOSING = "after_closing"


@dataclass(frozen=True)
class BookingRejection:
    """Why a candidate time cannot be booked"""
    reason: RejectionReason
    message: str


@dataclass(frozen=True)
class BookingWindow:
    """Derived window for a given "now". Never cached."""
    earliest: datetime
    opens: time
    closes: time


def _opening_on(day: date) -> datetime:
    return datetime.combine(day, time(OPENING_HOUR, 0))


def minimum_bookable_instant(now: Optional[datetime] = None) -> datetime:
    """
    Earliest date-time a picker should offer.

    Before opening: today at opening time.
    At or after closing hour: tomorrow at opening time.
    Otherwise: now.
    """
    if now is None:
        now = datetime.now()

    if now.hour < OPENING_HOUR:
        return _opening_on(now.date())
    if now.hour >= CLOSING_HOUR:
        # Handles month and year ends
        return _opening_on(now.date() + timedelta(days=1))
    return now


def booking_window(now: Optional[datetime] = None) -> BookingWindow:
    return BookingWindow(
        earliest=minimum_bookable_instant(now),
        opens=time(OPENING_HOUR, 0),
        closes=time(CLOSING_HOUR, 0),
    )


def check_booking_window(
    candidate: datetime,
    now: Optional[datetime] = None
) -> Optional[BookingRejection]:
    """
    Validate a candidate booking time.

    Args:
        candidate: Requested start (naive, local time)
        now: Current time (default: datetime.now())

    Returns:
        None if bookable, otherwise a BookingRejection
    """
    if now is None:
        now = datetime.now()

    if candidate < now:
        return BookingRejection(
            RejectionReason.IN_PAST,
            "Schedule time must be in the future",
        )

    hour, minute = candidate.hour, candidate.minute
    if hour < OPENING_HOUR:
        return BookingRejection(
            RejectionReason.BEFORE_OPENING,
            f"Schedule time must be between {_hour_label(OPENING_HOUR)} and {_hour_label(CLOSING_HOUR)}",
        )
    if hour > CLOSING_HOUR or (hour == CLOSING_HOUR and minute > 0):
        return BookingRejection(
            RejectionReason.AFTER_CLOSING,
            f"Schedule time must be between {_hour_label(OPENING_HOUR)} and {_hour_label(CLOSING_HOUR)}",
        )
    return None


def is_within_booking_window(candidate: datetime, now: Optional[datetime] = None) -> bool:
    """True if the candidate can be booked. Never raises."""
    return check_booking_window(candidate, now) is None


def _hour_label(hour: int) -> str:
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display}{suffix}"


def format_for_input(dt: datetime) -> str:
    """datetime-local input value: YYYY-MM-DDTHH:MM"""
    return dt.strftime("%Y-%m-%dT%H:%M")


def format_clock(dt: datetime) -> str:
    """12-hour clock label, e.g. 09:00 AM"""
    return dt.strftime("%I:%M %p")


def next_seven_days(start: date) -> List[date]:
    """The start day and the six days after it."""
    return [start + timedelta(days=i) for i in range(7)]
