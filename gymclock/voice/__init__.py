"""
GymClock Voice - Alarm Banner and Audio Cue
"""

from .alarm_output import AlarmNotifier, Notification

__all__ = [
    'AlarmNotifier',
    'Notification',
]
