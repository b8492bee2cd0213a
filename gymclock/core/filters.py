"""
GymClock Class/Reservation Filter

Narrows an event list for display:
  (a) exact date, then categorical fields (class type, difficulty, duration)
  (b) time-of-day buckets
  (c) case-insensitive free-text search
  (d) archived vs upcoming
and sorts the result by start time.

Filters compose by AND. A cleared dimension matches everything, with one
exception: an active bucket filter with every bucket
switched off matches nothing.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, TypeVar

from gymclock.core.config import AFTERNOON_HOURS, EVENING_HOURS, MORNING_HOURS
from gymclock.memory.event_models import ScheduledEvent

T = TypeVar("T")


class TimeOfDay(Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


BUCKET_HOURS = {
    TimeOfDay.MORNING: MORNING_HOURS,
    TimeOfDay.AFTERNOON: AFTERNOON_HOURS,
    TimeOfDay.EVENING: EVENING_HOURS,
}

ALL_BUCKETS: FrozenSet[TimeOfDay] = frozenset(TimeOfDay)


def bucket_for_hour(hour: int) -> Optional[TimeOfDay]:
    """Bucket containing a start hour, or None outside opening hours."""
    for bucket, (first, last) in BUCKET_HOURS.items():
        if first <= hour <= last:
            return bucket
    return None


@dataclass(frozen=True)
class FilterCriteria:
    """
    Per-page filter state.

    time_of_day: None disables the bucket dimension. A set (even an
    empty one) enables it.
    archived: None shows both, False upcoming only, True past only.
    """
    search: str = ""
    time_of_day: Optional[FrozenSet[TimeOfDay]] = None
    archived: Optional[bool] = None
    on_date: Optional[date] = None
    class_type_id: Optional[int] = None
    difficulty: Optional[str] = None
    duration: Optional[str] = None


def _long_date(dt: datetime) -> str:
    # e.g. "tuesday, june 10, 2025 at 09:00"
    return dt.strftime("%A, %B %d, %Y at %H:%M").lower()


def _search_fields(event: ScheduledEvent) -> List[str]:
    fields = [
        event.name,
        event.title,
        event.class_type,
        event.difficulty,
        event.duration,
        event.trainer_name,
        event.schedule_string,
        _long_date(event.start_time),
    ]
    return [f.lower() for f in fields if f]


def matches_search(event: ScheduledEvent, search: str) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True
    return any(needle in field for field in _search_fields(event))


def matches_time_of_day(event: ScheduledEvent, buckets: Optional[FrozenSet[TimeOfDay]]) -> bool:
    if buckets is None:
        return True
    return bucket_for_hour(event.start_time.hour) in buckets


def matches_archived(event: ScheduledEvent, archived: Optional[bool], now: datetime) -> bool:
    if archived is None:
        return True
    if archived:
        return event.start_time < now
    return event.start_time >= now


def matches(event: ScheduledEvent, criteria: FilterCriteria, now: datetime) -> bool:
    """True if the event passes every active predicate."""
    if criteria.on_date is not None and event.start_time.date() != criteria.on_date:
        return False
    if criteria.class_type_id is not None and event.class_type_id != criteria.class_type_id:
        return False
    if criteria.difficulty and event.difficulty != criteria.difficulty:
        return False
    if criteria.duration and event.duration != criteria.duration:
        return False
    if not matches_time_of_day(event, criteria.time_of_day):
        return False
    if not matches_search(event, criteria.search):
        return False
    return matches_archived(event, criteria.archived, now)


def filter_events(
    events: Sequence[ScheduledEvent],
    criteria: FilterCriteria,
    now: Optional[datetime] = None
) -> List[ScheduledEvent]:
    """
    Filter and sort events. Does not mutate the input.

    Args:
        events: Events to narrow
        criteria: Active filters
        now: Reference time for archived/upcoming (default: datetime.now())

    Returns:
        Matching events, ascending by start time (stable)
    """
    if now is None:
        now = datetime.now()
    selected = [e for e in events if matches(e, criteria, now)]
    return sorted(selected, key=lambda e: e.start_time)


def group_by_time_of_day(events: Sequence[ScheduledEvent]) -> Dict[TimeOfDay, List[ScheduledEvent]]:
    """Morning/afternoon/evening sections, each sorted by start time."""
    groups: Dict[TimeOfDay, List[ScheduledEvent]] = {bucket: [] for bucket in TimeOfDay}
    for event in sorted(events, key=lambda e: e.start_time):
        bucket = bucket_for_hour(event.start_time.hour)
        if bucket is not None:
            groups[bucket].append(event)
    return groups


def paginate(items: Sequence[T], page: int, per_page: int = 6) -> List[T]:
    """1-based page slice."""
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if per_page <= 0:
        raise ValueError(f"per_page must be positive, got {per_page}")
    start = (page - 1) * per_page
    return list(items[start:start + per_page])


def page_count(total: int, per_page: int = 6) -> int:
    return max(1, -(-total // per_page))
