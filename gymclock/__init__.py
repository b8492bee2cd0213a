"""
GymClock - Class Scheduling and Reminder Client

Booking-window validation, class filtering and one-shot event alarms
for the gym management API.
"""

__version__ = "0.1.0"
