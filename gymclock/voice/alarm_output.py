"""
GymClock Alarm Output - Serialized Banner + Audio Cue

Responsibilities:
- Show a dismissible reminder banner
- Speak the reminder as an audio cue, one at a time
- Stop the current cue when the user dismisses
- Never raise into the caller (the reminder poller)

Architecture:
- Caller thread: notify() shows the banner and queues the cue
- Alarm thread: consumes the queue and speaks with pyttsx3
"""

import logging
import threading
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Callable, List, Optional

import pyttsx3

from gymclock.core.config import TTS_RATE

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """What the poller hands to the sink"""
    title: str
    message: str
    dismiss_handler: Optional[Callable[[], None]] = None
    key: Optional[str] = None


def print_banner(notification: Notification):
    width = max(len(notification.message), len(notification.title)) + 4
    print("\n" + "=" * width)
    print(f"⏰ {notification.title}")
    print(f"  {notification.message}")
    print("  (type 'dismiss' to stop the alarm)")
    print("=" * width + "\n")


class AlarmNotifier:
    """
    Notification sink with a single audio worker.

    Two alarms in the same tick are both shown immediately, but their
    cues play one after the other.
    """

    def __init__(
        self,
        rate: int = TTS_RATE,
        banner: Callable[[Notification], None] = print_banner,
        engine_factory: Callable[[], object] = pyttsx3.init
    ):
        """
        Args:
            rate: Speech rate (words per minute)
            banner: Renders a notification on screen
            engine_factory: Creates the TTS engine (in the worker thread)
        """
        self._rate = rate
        self._banner = banner
        self._engine_factory = engine_factory
        self._queue: Queue = Queue()
        self._shutdown = threading.Event()
        self._lock = threading.Lock()
        self._engine = None
        self._current: Optional[Notification] = None
        self._active: List[Notification] = []
        self._thread: Optional[threading.Thread] = None
        self._audio_failed = False

        logger.info(f"AlarmNotifier initialized (rate={rate})")

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._shutdown.clear()
        self._thread = threading.Thread(
            target=self._alarm_worker,
            daemon=True,
            name="GymClock-Alarm"
        )
        self._thread.start()

    def notify(self, notification: Notification):
        """Show the banner and queue the cue (non-blocking)."""
        if notification.dismiss_handler is None:
            notification.dismiss_handler = lambda: self.dismiss(notification)

        with self._lock:
            self._active.append(notification)

        try:
            self._banner(notification)
        except Exception as e:
            logger.error(f"Banner failed: {e}", exc_info=True)

        with self._lock:
            if self._audio_failed:
                logger.warning(f"No audio engine, banner only: {notification.title}")
                return
            self._queue.put(notification)
        logger.info(f"Queued alarm: {notification.title}")

    @property
    def audio_available(self) -> bool:
        """False once the audio engine has failed to start"""
        with self._lock:
            return not self._audio_failed

    @property
    def active(self) -> List[Notification]:
        """Notifications shown and not yet dismissed"""
        with self._lock:
            return list(self._active)

    def dismiss(self, notification: Optional[Notification] = None):
        """
        Dismiss a notification and stop its cue if it is playing.

        Args:
            notification: Which one (default: the oldest visible)
        """
        with self._lock:
            if notification is None:
                if not self._active:
                    return
                notification = self._active[0]
            remaining = [n for n in self._active if n is not notification]
            if len(remaining) == len(self._active):
                return
            self._active = remaining
            logger.info(f"Alarm dismissed: {notification.title}")
            engine = self._engine if self._current is notification else None

        if engine is not None:
            try:
                engine.stop()
                logger.info("Alarm stopped by user.")
            except Exception as e:
                logger.error(f"Error stopping alarm sound: {e}")

    def dismiss_all(self):
        self.clear_queue()
        for notification in self.active:
            self.dismiss(notification)

    def is_playing(self) -> bool:
        with self._lock:
            return self._current is not None

    def clear_queue(self):
        """Drop cues that have not started yet"""
        while not self._queue.empty():
            try:
                self._queue.get_nowait()
            except Empty:
                break

    def _alarm_worker(self):
        engine = None
        try:
            engine = self._engine_factory()
            engine.setProperty('rate', self._rate)
            with self._lock:
                self._engine = engine
            logger.info("Alarm audio engine initialized")

            while not self._shutdown.is_set():
                try:
                    notification = self._queue.get(timeout=0.5)
                except Empty:
                    continue

                self._play(engine, notification)

        except Exception as e:
            logger.error(f"Alarm worker initialization failed: {e}", exc_info=True)
            with self._lock:
                self._audio_failed = True
                self.clear_queue()

        finally:
            if engine is not None:
                try:
                    engine.stop()
                except Exception as e:
                    logger.debug(f"Engine stop on shutdown failed: {e}")
            logger.info("Alarm worker shutting down")

    def _play(self, engine, notification: Notification):
        with self._lock:
            if not any(n is notification for n in self._active):
                # Dismissed before its turn
                return
            self._current = notification

        try:
            logger.info(f"Playing alarm: {notification.title}")
            engine.say(f"Reminder. {notification.message}")
            engine.runAndWait()
        except Exception as e:
            logger.error(f"Error playing alarm sound: {e}", exc_info=True)
        finally:
            with self._lock:
                self._current = None

    def shutdown(self):
        logger.info("Shutting down AlarmNotifier")
        self._shutdown.set()
        self.dismiss_all()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
            if self._thread.is_alive():
                logger.warning("Alarm worker thread did not stop cleanly")

        logger.info("AlarmNotifier shutdown complete")
