"""
GymClock Agents - Reminder and Booking Services
"""

from .reminder_poller import ReminderPoller
from .booking_agent import BookingAgent, BookingResult

__all__ = [
    'ReminderPoller',
    'BookingAgent',
    'BookingResult',
]
