"""
GymClock Reminder Poller - Background Alarm Service

Responsibilities:
- Keep the member's class and workout lists fresh (coarse refresh loop)
- Check every event against its alarm time (fine check loop)
- Fire each alarm at most once, ever, via the fired-alarm store
- Hand notifications to the sink

Per-event state: PENDING -> FIRED. FIRED is terminal.

An alarm fires when
    0 <= now - (start_time - lead_time) < acceptance window
A tick that misses the whole window (machine asleep, process stopped)
means that reminder never fires. There is no catch-up.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from gymclock.api.gateway import GatewayError, RemoteDataGateway
from gymclock.core.config import (
    ALARM_ACCEPT_SECONDS,
    ALARM_CHECK_INTERVAL,
    EVENT_REFRESH_INTERVAL,
)
from gymclock.memory.event_models import EventKind, ScheduledEvent, lead_time
from gymclock.memory.fired_alarms import FiredAlarmStore
from gymclock.voice.alarm_output import Notification

logger = logging.getLogger(__name__)


def describe_lead_time(kind: EventKind) -> str:
    minutes = int(lead_time(kind).total_seconds() // 60)
    if minutes == 60:
        return "in one hour"
    if minutes % 60 == 0:
        return f"in {minutes // 60} hours"
    return f"in {minutes} minutes"


def reminder_message(event: ScheduledEvent) -> str:
    return f'Your {event.kind.value} "{event.title}" is scheduled {describe_lead_time(event.kind)}.'


class ReminderPoller:
    """
    Long-lived reminder service owning its timer threads.

    Use start() on session start and stop() on teardown. tick() and
    refresh() can also be driven directly (tests, single-shot checks).
    """

    def __init__(
        self,
        sink,
        alarm_store: FiredAlarmStore,
        gateway: Optional[RemoteDataGateway] = None,
        user_id: Optional[int] = None,
        check_interval: float = ALARM_CHECK_INTERVAL,
        refresh_interval: float = EVENT_REFRESH_INTERVAL,
        acceptance_window: timedelta = timedelta(seconds=ALARM_ACCEPT_SECONDS),
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Args:
            sink: Object with notify(Notification)
            alarm_store: Fired-alarm de-duplication store (loaded here)
            gateway: Source of events; None means events are pushed in
            user_id: Current member (filters class registrations)
            check_interval: Seconds between alarm checks
            refresh_interval: Seconds between event refreshes
            acceptance_window: How late an alarm may still fire
            clock: Current-time provider
        """
        self.sink = sink
        self.alarm_store = alarm_store
        self.gateway = gateway
        self.user_id = user_id
        self.check_interval = check_interval
        self.refresh_interval = refresh_interval
        self.acceptance_window = acceptance_window
        self.clock = clock

        self._lock = threading.RLock()
        self._events: Dict[EventKind, List[ScheduledEvent]] = {kind: [] for kind in EventKind}
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

        self.alarm_store.load()
        logger.info(
            f"ReminderPoller initialized (check={check_interval}s, "
            f"refresh={refresh_interval}s, window={acceptance_window.total_seconds():.0f}s)"
        )

    # ------------------------------------------------------------------
    # Event lists
    # ------------------------------------------------------------------

    def set_events(self, kind: EventKind, events: List[ScheduledEvent]):
        """Replace the list for one kind."""
        with self._lock:
            self._events[kind] = [e for e in events if e.kind == kind]

    def add_event(self, event: ScheduledEvent):
        with self._lock:
            current = self._events[event.kind]
            self._events[event.kind] = [e for e in current if e.id != event.id] + [event]

    def remove_event(self, kind: EventKind, event_id: int) -> bool:
        """Drop a cancelled event. Returns False if it was not listed."""
        with self._lock:
            current = self._events[kind]
            kept = [e for e in current if e.id != event_id]
            self._events[kind] = kept
            removed = len(kept) != len(current)
        if removed:
            logger.info(f"Removed {kind.value} event {event_id} from reminders")
        return removed

    def events(self, kind: Optional[EventKind] = None) -> List[ScheduledEvent]:
        with self._lock:
            if kind is not None:
                return list(self._events[kind])
            return [e for kind_events in self._events.values() for e in kind_events]

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self) -> bool:
        """
        Re-fetch both lists. A failed source keeps its last list.

        Class registrations are only fetched for a known user; without
        one the class list is cleared.

        Returns:
            True if both sources refreshed
        """
        if self.gateway is None:
            return False

        ok = True
        fetchers = {EventKind.WORKOUT: self.gateway.fetch_workout_events}
        if self.user_id is None:
            logger.warning("No current user, skipping class registrations")
            self.set_events(EventKind.CLASS, [])
            ok = False
        else:
            user_id = self.user_id
            fetchers[EventKind.CLASS] = lambda: self.gateway.fetch_class_events(user_id)

        for kind, fetch in fetchers.items():
            try:
                self.set_events(kind, fetch())
            except GatewayError as e:
                logger.error(f"Error fetching {kind.value} events: {e}")
                ok = False
        return ok

    # ------------------------------------------------------------------
    # Alarm check
    # ------------------------------------------------------------------

    def is_alarm_due(self, event: ScheduledEvent, now: datetime) -> bool:
        late_by = now - event.alarm_at
        return timedelta(0) <= late_by < self.acceptance_window

    def tick(self, now: Optional[datetime] = None) -> List[ScheduledEvent]:
        """
        One alarm check.

        Returns:
            Events that fired on this tick
        """
        if now is None:
            now = self.clock()

        fired = []
        for event in self.events():
            if self.alarm_store.has(event.alarm_key):
                continue
            if not self.is_alarm_due(event, now):
                continue
            # add() is the only PENDING -> FIRED transition
            if not self.alarm_store.add(event.alarm_key):
                continue

            logger.info(f"Alarm triggered for event: {event.title}")
            fired.append(event)
            notification = Notification(
                title="Event Reminder",
                message=reminder_message(event),
                key=event.alarm_key,
            )
            notification.dismiss_handler = self._dismiss_handler(notification)
            try:
                self.sink.notify(notification)
            except Exception as e:
                logger.error(f"Notification failed for {event.alarm_key}: {e}", exc_info=True)
        return fired

    def _dismiss_handler(self, notification: Notification) -> Callable[[], None]:
        """Handler that asks the sink to dismiss, if it can."""
        def dismiss():
            sink_dismiss = getattr(self.sink, "dismiss", None)
            if sink_dismiss is not None:
                sink_dismiss(notification)
            logger.info(f"Reminder dismissed: {notification.key}")
        return dismiss

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self):
        if self.running:
            logger.warning("ReminderPoller already running")
            return

        self._stop.clear()
        self._threads = [
            threading.Thread(target=self._refresh_loop, daemon=True, name="GymClock-Refresh"),
            threading.Thread(target=self._check_loop, daemon=True, name="GymClock-Alarms"),
        ]
        for thread in self._threads:
            thread.start()
        logger.info("ReminderPoller started")

    def _refresh_loop(self):
        while not self._stop.is_set():
            try:
                self.refresh()
            except Exception as e:
                logger.error(f"Refresh loop error: {e}", exc_info=True)
            self._stop.wait(self.refresh_interval)

    def _check_loop(self):
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Alarm check error: {e}", exc_info=True)
            self._stop.wait(self.check_interval)

    def stop(self):
        logger.info("Stopping ReminderPoller")
        self._stop.set()
        for thread in self._threads:
            if thread.is_alive():
                thread.join(timeout=2.0)
                if thread.is_alive():
                    logger.warning(f"{thread.name} did not stop cleanly")
        self._threads = []
        logger.info("ReminderPoller stopped")
