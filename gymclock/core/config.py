"""
GymClock Configuration - Constants and Environment Setup

Values can be overridden through environment variables or a .env file
at the project root.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent.parent
load_dotenv(PROJECT_ROOT / ".env")

# ============================================================================
# Remote API
# ============================================================================

API_BASE = os.environ.get("GYMCLOCK_API_BASE", "http://127.0.0.1:8000")
HTTP_TIMEOUT = float(os.environ.get("GYMCLOCK_HTTP_TIMEOUT", "15"))

# ============================================================================
# Local storage
# ============================================================================

STORAGE_PATH = Path(
    os.environ.get("GYMCLOCK_STORAGE", str(Path.home() / ".gymclock" / "storage.json"))
)

TOKEN_KEY = "token"
USER_KEY = "user"
FIRED_ALARMS_KEY = "triggeredAlarms"
REWARDED_CLASSES_KEY = "rewardedClasses"

# ============================================================================
# Booking window (clock hours, local time)
# ============================================================================

OPENING_HOUR = 4
CLOSING_HOUR = 20

# Time-of-day buckets: inclusive start-hour ranges
MORNING_HOURS = (4, 10)
AFTERNOON_HOURS = (11, 16)
EVENING_HOURS = (17, 20)

# ============================================================================
# Reminders
# ============================================================================

CLASS_LEAD_MINUTES = 60
WORKOUT_LEAD_MINUTES = 30

ALARM_CHECK_INTERVAL = float(os.environ.get("GYMCLOCK_ALARM_CHECK_INTERVAL", "0.5"))
EVENT_REFRESH_INTERVAL = float(os.environ.get("GYMCLOCK_EVENT_REFRESH_INTERVAL", "300"))
ALARM_ACCEPT_SECONDS = int(os.environ.get("GYMCLOCK_ALARM_ACCEPT_SECONDS", "60"))

TTS_RATE = int(os.environ.get("GYMCLOCK_TTS_RATE", "175"))
DISMISS_HOTKEY = os.environ.get("GYMCLOCK_DISMISS_HOTKEY", "ctrl+shift+d")
