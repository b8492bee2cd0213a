"""
GymClock Start - Console Entry Point

Wires together:
- Remote Data Gateway (REST API, bearer token from local storage)
- Reminder Poller (background alarm checks + event refresh)
- Alarm Notifier (banner + spoken cue, one at a time)
- Booking Agent (reservations, workouts, cancellations)

The poller runs for the whole session and is stopped explicitly on exit.
"""

import logging
import shlex
from datetime import date, datetime, time
from typing import List

import keyboard

from gymclock.agents import BookingAgent, ReminderPoller
from gymclock.api import GatewayError, RemoteDataGateway, Reservation
from gymclock.core import booking_window
from gymclock.core.config import DISMISS_HOTKEY, TOKEN_KEY
from gymclock.core.filters import FilterCriteria, TimeOfDay, filter_events, group_by_time_of_day
from gymclock.core.schedule import format_for_input
from gymclock.memory import (
    EventKind,
    FiredAlarmStore,
    KeyValueStore,
    RewardedClassStore,
    ScheduledEvent,
    SessionStore,
)
from gymclock.voice import AlarmNotifier

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# Output helpers
# ============================================================================

def print_events(events: List[ScheduledEvent], empty_text: str):
    if not events:
        print(f"\n📭 {empty_text}\n")
        return
    print()
    for event in events:
        when = event.start_time.strftime("%a %b %d")
        print(f"  [{event.kind.value}:{event.id}] {when}  {event.title}")
    print()


def print_grouped(events: List[ScheduledEvent]):
    groups = group_by_time_of_day(events)
    for bucket in TimeOfDay:
        print(f"\n{bucket.value.capitalize()}:")
        if groups[bucket]:
            for event in groups[bucket]:
                print(f"  [{event.id}] {event.title}  {event.difficulty or ''} {event.duration or ''}")
        else:
            print(f"  No classes available in the {bucket.value}.")
    print()


def parse_when(day_text: str, time_text: str) -> datetime:
    return datetime.combine(date.fromisoformat(day_text), time.fromisoformat(time_text))


# ============================================================================
# MAIN
# ============================================================================

def main():
    print("=" * 70)
    print("GymClock - Classes, Workouts and Reminders")
    print("=" * 70)
    print()

    try:
        logger.info("Initializing GymClock...")

        kv = KeyValueStore()
        session = SessionStore(kv)
        gateway = RemoteDataGateway(session)

        if not session.token:
            print("No session found. Log in first with: login <token>")

        notifier = AlarmNotifier()
        poller = ReminderPoller(
            sink=notifier,
            alarm_store=FiredAlarmStore(kv),
            gateway=gateway,
            user_id=session.current_user_id(),
        )
        booking = BookingAgent(gateway, poller=poller, rewarded_store=RewardedClassStore(kv))

        notifier.start()
        poller.start()
        print("✓ GymClock is ready")

    except Exception as e:
        logger.error(f"Failed to initialize GymClock: {e}", exc_info=True)
        print(f"\n❌ Error: {e}")
        return 1

    hotkey_registered = False
    try:
        keyboard.add_hotkey(DISMISS_HOTKEY, notifier.dismiss)
        hotkey_registered = True
        print(f"✓ Dismiss hotkey ready ({DISMISS_HOTKEY})")
    except Exception as e:
        # Needs root on Linux
        logger.warning(f"Hotkey registration failed: {e}")

    print()
    print("Commands:")
    print("  - 'login <token>'                     - Store token and fetch your profile")
    print("  - 'events'                            - Your upcoming classes and workouts")
    print("  - 'classes [YYYY-MM-DD] [search]'     - Browse scheduled classes")
    print("  - 'book YYYY-MM-DD HH:MM [facility]'  - Reserve a slot")
    print("  - 'workout YYYY-MM-DD HH:MM <name>'   - Add a workout plan")
    print("  - 'cancel class|workout <id>'         - Cancel an event")
    print("  - 'window'                            - Show the booking window")
    print("  - 'dismiss'                           - Stop the current alarm")
    print("  - 'quit'                              - Exit")
    print()

    while True:
        try:
            line = input("You: ").strip()
            if not line:
                continue

            parts = shlex.split(line)
            command, args = parts[0].lower(), parts[1:]

            if command in ["quit", "exit", "q"]:
                print("\nGoodbye!")
                break

            if command == "login" and args:
                kv.set(TOKEN_KEY, args[0])
                try:
                    user = gateway.fetch_current_user()
                except GatewayError as e:
                    session.logout()
                    print(f"\n❌ Login failed: {e}\n")
                    continue
                session.login(args[0], user)
                poller.user_id = user["id"]
                poller.refresh()
                print(f"\n✓ Logged in as {user.get('name', user['id'])}\n")
                continue

            if command == "events":
                upcoming = filter_events(poller.events(), FilterCriteria(archived=False))
                print_events(upcoming, "No upcoming classes or workouts")
                continue

            if command == "classes":
                on_date = None
                if args:
                    try:
                        on_date = date.fromisoformat(args[0])
                        args = args[1:]
                    except ValueError:
                        pass
                criteria = FilterCriteria(search=" ".join(args), archived=False, on_date=on_date)
                try:
                    listings = gateway.fetch_class_listings()
                except GatewayError as e:
                    logger.error(f"Error fetching classes: {e}")
                    print("\n❌ Error fetching classes\n")
                    continue
                print_grouped(filter_events([listing.to_event() for listing in listings], criteria))
                continue

            if command == "book" and len(args) >= 2:
                facility = int(args[2]) if len(args) > 2 else None
                when = parse_when(args[0], args[1])
                result = booking.submit_reservation(
                    Reservation(when.date(), when.time(), facility_id=facility)
                )
                print(f"\n{'✓' if result.ok else '❌'} {result.message}\n")
                continue

            if command == "workout" and len(args) >= 3:
                when = parse_when(args[0], args[1])
                result = booking.add_workout(" ".join(args[2:]), when.date(), when.time())
                print(f"\n{'✓' if result.ok else '❌'} {result.message}\n")
                continue

            if command == "cancel" and len(args) == 2:
                kind = EventKind(args[0].lower())
                result = booking.cancel_event(kind, int(args[1]))
                print(f"\n{'✓' if result.ok else '❌'} {result.message}\n")
                continue

            if command == "window":
                window = booking_window()
                print(f"\nEarliest booking: {format_for_input(window.earliest)}")
                print(f"Open hours: {window.opens:%H:%M} - {window.closes:%H:%M}\n")
                continue

            if command == "dismiss":
                notifier.dismiss()
                continue

            print("\nUnknown command. Type 'quit' to exit.\n")

        except ValueError as e:
            print(f"\n❌ Invalid input: {e}\n")
        except KeyboardInterrupt:
            print("\n\nInterrupted. Goodbye!")
            break
        except Exception as e:
            logger.error(f"Error in main loop: {e}", exc_info=True)
            print(f"\nError: {e}\n")

    # Clean shutdown
    poller.stop()
    notifier.shutdown()

    if hotkey_registered:
        try:
            keyboard.remove_all_hotkeys()
        except Exception as e:
            logger.debug(f"Hotkey cleanup failed: {e}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
