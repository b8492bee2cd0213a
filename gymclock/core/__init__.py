"""
GymClock Core - Scheduling Rules

Booking-window validation. The class filter lives in
gymclock.core.filters and is imported from there directly.
"""

from .schedule import (
    BookingRejection,
    BookingWindow,
    RejectionReason,
    booking_window,
    check_booking_window,
    is_within_booking_window,
    minimum_bookable_instant,
)

__all__ = [
    'BookingRejection',
    'BookingWindow',
    'RejectionReason',
    'booking_window',
    'check_booking_window',
    'is_within_booking_window',
    'minimum_bookable_instant',
]
