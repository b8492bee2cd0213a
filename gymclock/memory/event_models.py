"""
GymClock Event Models

Data structures for the things a member gets reminded about.

Records from the API are loosely shaped. They are converted once, here,
into either a ScheduledEvent (fully populated) or an IncompleteEvent
(excluded from display and reminders). Nothing downstream deals with
missing nested fields.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from gymclock.core.config import CLASS_LEAD_MINUTES, WORKOUT_LEAD_MINUTES

logger = logging.getLogger(__name__)

NO_NAME = "No Name"


class EventKind(Enum):
    """What kind of activity an event is"""
    CLASS = "class"
    WORKOUT = "workout"


LEAD_TIMES = {
    EventKind.CLASS: timedelta(minutes=CLASS_LEAD_MINUTES),
    EventKind.WORKOUT: timedelta(minutes=WORKOUT_LEAD_MINUTES),
}


def lead_time(kind: EventKind) -> timedelta:
    """Reminder lead time for an event kind."""
    return LEAD_TIMES[kind]


def parse_schedule_time(value: str) -> datetime:
    """
    Parse an API schedule string.

    Accepts "YYYY-MM-DD HH:MM[:SS]" and the ISO "T" form.
    Returns a naive local datetime.

    Raises:
        ValueError: If the string cannot be parsed
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("schedule time is empty")
    parsed = datetime.fromisoformat(value.strip().replace(" ", "T"))
    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed


def format_event_title(name: str, start_time: datetime) -> str:
    """Display title: name plus 12-hour clock time."""
    return f"{name} ({start_time.strftime('%I:%M %p')})"


@dataclass
class ScheduledEvent:
    """
    One class or workout on the member's schedule.

    The optional fields come from the joined class data and are only
    used for search and categorical filtering.
    """
    id: int
    title: str
    start_time: datetime  # Naive datetime in local time
    kind: EventKind
    name: str = ""
    class_type: Optional[str] = None
    class_type_id: Optional[int] = None
    difficulty: Optional[str] = None
    duration: Optional[str] = None
    trainer_name: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.id, int) or isinstance(self.id, bool):
            raise TypeError("id must be int")
        if not self.title:
            raise ValueError("Event title cannot be empty")
        if not isinstance(self.start_time, datetime):
            raise TypeError("start_time must be datetime")
        if not isinstance(self.kind, EventKind):
            raise TypeError("kind must be EventKind")
        if not self.name:
            self.name = self.title

    @property
    def alarm_key(self) -> str:
        """Identity in the fired-alarm store (ids are only unique per kind)."""
        return f"{self.kind.value}:{self.id}"

    @property
    def alarm_at(self) -> datetime:
        return self.start_time - lead_time(self.kind)

    @property
    def schedule_string(self) -> str:
        """Schedule time in the API's own format."""
        return self.start_time.strftime("%Y-%m-%d %H:%M:%S")


@dataclass
class IncompleteEvent:
    """A fetched record that cannot be shown or reminded about."""
    raw: Dict[str, Any]
    reason: str
    kind: EventKind = EventKind.CLASS


FetchedEvent = Union[ScheduledEvent, IncompleteEvent]


@dataclass
class ClassListing:
    """A scheduled class offering (a show_classes record)."""
    id: int
    start_time: datetime
    name: str = NO_NAME
    class_type_id: Optional[int] = None
    class_type: Optional[str] = None
    difficulty: str = ""
    duration: str = ""
    description: str = ""
    trainer_name: Optional[str] = None
    max_participants: Optional[Any] = None

    def to_event(self) -> ScheduledEvent:
        return ScheduledEvent(
            id=self.id,
            title=format_event_title(self.name, self.start_time),
            start_time=self.start_time,
            kind=EventKind.CLASS,
            name=self.name,
            class_type=self.class_type,
            class_type_id=self.class_type_id,
            difficulty=self.difficulty,
            duration=self.duration,
            trainer_name=self.trainer_name,
        )


def _nested(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Nested object under key, or {} when it is missing or not an object."""
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _trainer_name(data: Dict[str, Any]) -> Optional[str]:
    trainer = _nested(data, "trainer")
    user = _nested(trainer, "user")
    return user.get("name")


def registration_to_event(record: Dict[str, Any], user_id: Optional[int] = None) -> FetchedEvent:
    """
    Convert a class-registration record.

    The record must carry show_class.schedule_time and
    show_class.class_data.name. Records for other users are
    reported as incomplete when user_id is given.
    """
    if user_id is not None and record.get("user_id") != user_id:
        return IncompleteEvent(record, "belongs to another user")

    show_class = _nested(record, "show_class")
    class_data = _nested(show_class, "class_data")
    schedule = show_class.get("schedule_time")
    name = class_data.get("name")

    if not show_class:
        return IncompleteEvent(record, "missing show_class")
    if not schedule:
        return IncompleteEvent(record, "missing schedule_time")
    if not name:
        return IncompleteEvent(record, "missing class name")

    try:
        start_time = parse_schedule_time(schedule)
        class_type = _nested(class_data, "class_type")
        return ScheduledEvent(
            id=record["id"],
            title=format_event_title(name, start_time),
            start_time=start_time,
            kind=EventKind.CLASS,
            name=name,
            class_type=class_type.get("name"),
            class_type_id=class_data.get("class_type_id"),
            difficulty=class_data.get("difficulty"),
            duration=class_data.get("duration"),
            trainer_name=_trainer_name(class_data),
        )
    except (KeyError, TypeError, ValueError) as e:
        return IncompleteEvent(record, f"invalid record: {e}")


def workout_plan_to_event(record: Dict[str, Any]) -> FetchedEvent:
    """Convert a workout-plan record ({id, name, schedule_time})."""
    schedule = record.get("schedule_time")
    if not schedule:
        return IncompleteEvent(record, "missing schedule_time", EventKind.WORKOUT)

    try:
        start_time = parse_schedule_time(schedule)
        name = record.get("name") or NO_NAME
        return ScheduledEvent(
            id=record["id"],
            title=format_event_title(name, start_time),
            start_time=start_time,
            kind=EventKind.WORKOUT,
            name=name,
        )
    except (KeyError, TypeError, ValueError) as e:
        return IncompleteEvent(record, f"invalid record: {e}", EventKind.WORKOUT)


def show_class_to_listing(record: Dict[str, Any]) -> Optional[ClassListing]:
    """Convert a show_classes record, or None when it has no usable schedule time."""
    try:
        start_time = parse_schedule_time(record.get("schedule_time"))
        class_data = _nested(record, "class_data")
        class_type = _nested(class_data, "class_type")
        return ClassListing(
            id=record["id"],
            start_time=start_time,
            name=class_data.get("name") or NO_NAME,
            class_type_id=class_data.get("class_type_id"),
            class_type=class_type.get("name"),
            difficulty=class_data.get("difficulty") or "",
            duration=class_data.get("duration") or "",
            description=class_data.get("description") or "",
            trainer_name=_trainer_name(class_data),
            max_participants=class_data.get("max_participants"),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.debug(f"Skipping show_class record: {e}")
        return None


def complete_only(fetched: List[FetchedEvent]) -> List[ScheduledEvent]:
    """Drop incomplete records, logging why."""
    events = []
    for item in fetched:
        if isinstance(item, ScheduledEvent):
            events.append(item)
        else:
            logger.debug(f"Excluded {item.kind.value} record {item.raw.get('id')}: {item.reason}")
    return events
