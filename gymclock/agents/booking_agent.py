"""
GymClock Booking Agent - Pure Utility Service

Responsibilities:
- Validate booking times locally before anything hits the network
- Submit reservations and workout plans
- Cancel events, removing them from reminders immediately
- Award class points at most once per class

No timers and no background work. Every network failure is converted
into a BookingResult the caller can show as-is.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Optional

from gymclock.agents.reminder_poller import ReminderPoller
from gymclock.api.gateway import (
    DEFAULT_FAILURE_MESSAGE,
    GatewayError,
    GatewayResponseError,
    RemoteDataGateway,
    Reservation,
)
from gymclock.core.schedule import check_booking_window
from gymclock.memory.event_models import EventKind, IncompleteEvent, workout_plan_to_event
from gymclock.memory.fired_alarms import RewardedClassStore

logger = logging.getLogger(__name__)

DIFFICULTY_POINTS = {
    "easy": 1,
    "hard": 2,
    "difficult": 3,
    "challenging": 4,
}


def points_for_difficulty(difficulty: str) -> int:
    return DIFFICULTY_POINTS.get((difficulty or "").strip().lower(), 0)


@dataclass
class BookingResult:
    """Outcome of a write, ready for display"""
    ok: bool
    message: str
    data: Optional[Any] = None


class BookingAgent:
    """
    Write-side operations for the member and admin screens.

    Does NOT inherit from anything and owns no threads.
    """

    def __init__(
        self,
        gateway: RemoteDataGateway,
        poller: Optional[ReminderPoller] = None,
        rewarded_store: Optional[RewardedClassStore] = None
    ):
        """
        Args:
            gateway: API client
            poller: Reminder poller to keep in sync (optional)
            rewarded_store: Classes already awarded (optional; needed for awards)
        """
        self.gateway = gateway
        self.poller = poller
        self.rewarded_store = rewarded_store
        if self.rewarded_store is not None:
            self.rewarded_store.load()
        logger.info("BookingAgent initialized")

    def submit_reservation(self, reservation: Reservation, now: Optional[datetime] = None) -> BookingResult:
        rejection = check_booking_window(reservation.starts_at, now)
        if rejection:
            logger.info(f"Reservation rejected locally: {rejection.reason.value}")
            return BookingResult(False, rejection.message)

        try:
            data = self.gateway.submit_reservation(reservation)
        except GatewayResponseError as e:
            logger.error(f"Error submitting reservation: {e}")
            return BookingResult(False, e.message or DEFAULT_FAILURE_MESSAGE)
        except GatewayError as e:
            logger.error(f"Error submitting reservation: {e}")
            return BookingResult(False, DEFAULT_FAILURE_MESSAGE)

        return BookingResult(True, "Reservation successful!", data)

    def add_workout(
        self,
        name: str,
        on_date: date,
        at_time: Optional[time],
        now: Optional[datetime] = None
    ) -> BookingResult:
        """Create a workout plan and start reminding about it."""
        if now is None:
            now = datetime.now()

        if not name or not name.strip():
            return BookingResult(False, "Please enter a workout name.")
        if at_time is None:
            return BookingResult(False, "Please select a time.")
        if on_date < now.date():
            return BookingResult(False, "Cannot add a workout plan to a past date.")

        starts_at = datetime.combine(on_date, at_time)
        try:
            record = self.gateway.create_workout_plan(name.strip(), starts_at)
        except GatewayError as e:
            logger.error(f"Error adding workout plan: {e}")
            return BookingResult(False, "Failed to add workout plan.")

        event = workout_plan_to_event(record)
        if isinstance(event, IncompleteEvent):
            logger.warning(f"Created workout plan is incomplete: {event.reason}")
            return BookingResult(False, "New workout plan does not include a schedule time.")

        if self.poller is not None:
            self.poller.add_event(event)
        return BookingResult(True, "Workout plan added successfully", event)

    def cancel_event(self, kind: EventKind, event_id: int) -> BookingResult:
        try:
            if kind == EventKind.CLASS:
                self.gateway.cancel_class_registration(event_id)
            else:
                self.gateway.delete_workout_plan(event_id)
        except GatewayError as e:
            logger.error(f"Error cancelling {kind.value} {event_id}: {e}")
            return BookingResult(False, f"Failed to cancel {kind.value}.")

        if self.poller is not None:
            self.poller.remove_event(kind, event_id)
        return BookingResult(True, f"{kind.value.capitalize()} cancelled")

    def award_class_points(self, show_class_id: int, difficulty: str) -> BookingResult:
        if self.rewarded_store is None:
            raise RuntimeError("BookingAgent has no rewarded-class store")

        key = str(show_class_id)
        if self.rewarded_store.has(key):
            return BookingResult(False, "Users for this class have already been rewarded.")

        points = points_for_difficulty(difficulty)
        try:
            self.gateway.award_points(show_class_id, points)
        except GatewayError as e:
            logger.error(f"Error awarding points: {e}")
            return BookingResult(False, "Failed to award points.")

        self.rewarded_store.add(key)
        logger.info(f"Awarded {points} points for class {show_class_id}")
        return BookingResult(True, "Points awarded successfully!", points)
