"""
Class/Reservation Filter Tests

Tests:
- Free-text search
- Time-of-day buckets (including all buckets switched off)
- Archived vs upcoming
- Date and categorical filters
- Idempotence and no false positives
- Grouping and pagination helpers
"""

import sys
from datetime import date, datetime
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gymclock.core.filters import (
    ALL_BUCKETS,
    FilterCriteria,
    TimeOfDay,
    bucket_for_hour,
    filter_events,
    group_by_time_of_day,
    matches,
    page_count,
    paginate,
)
from gymclock.memory.event_models import EventKind, ScheduledEvent, format_event_title

NOW = datetime(2025, 6, 10, 12, 0)


def make_event(event_id, name, start, **details):
    return ScheduledEvent(
        id=event_id,
        title=format_event_title(name, start),
        start_time=start,
        kind=details.pop("kind", EventKind.CLASS),
        name=name,
        **details,
    )


def sample_events():
    return [
        make_event(1, "Spin Class", datetime(2025, 6, 11, 18, 0), difficulty="Hard", duration="45 min",
                   class_type="Cardio", class_type_id=2, trainer_name="Maria"),
        make_event(2, "Yoga Basics", datetime(2025, 6, 11, 7, 30), difficulty="Easy", duration="60 min",
                   class_type="Mind & Body", class_type_id=1, trainer_name="Ken"),
        make_event(3, "Boxing", datetime(2025, 6, 9, 13, 0), difficulty="Challenging", duration="30 min",
                   class_type="Combat", class_type_id=3),
        make_event(4, "Late Stretch", datetime(2025, 6, 12, 22, 0), difficulty="Easy", duration="30 min"),
        make_event(5, "Power Yoga", datetime(2025, 6, 12, 16, 15), difficulty="Difficult", duration="60 min",
                   class_type="Mind & Body", class_type_id=1),
    ]


def ids(events):
    return [e.id for e in events]


def test_search():
    """Search is a case-insensitive substring match"""
    print("\n" + "=" * 70)
    print("TEST 1: Search")
    print("=" * 70)

    print("\n[1.1] Testing 'yoga' against Yoga Basics and Spin Class...")
    events = [
        make_event(1, "Yoga Basics", datetime(2025, 6, 11, 9, 0)),
        make_event(2, "Spin Class", datetime(2025, 6, 11, 10, 0)),
    ]
    result = filter_events(events, FilterCriteria(search="yoga"), NOW)
    assert [e.name for e in result] == ["Yoga Basics"]
    print("✓ Only Yoga Basics returned")

    print("\n[1.2] Testing other searchable fields...")
    events = sample_events()
    assert ids(filter_events(events, FilterCriteria(search="MARIA"), NOW)) == [1]
    assert ids(filter_events(events, FilterCriteria(search="combat"), NOW)) == [3]
    assert ids(filter_events(events, FilterCriteria(search="2025-06-12"), NOW)) == [5, 4]
    assert ids(filter_events(events, FilterCriteria(search="thursday"), NOW)) == [5, 4]
    print("✓ Trainer, class type, raw date and weekday are searchable")

    print("\n[1.3] Testing blank search...")
    assert len(filter_events(events, FilterCriteria(search="   "), NOW)) == len(events)
    print("✓ Blank search matches everything")


def test_time_of_day_buckets():
    """Buckets by start hour, and the all-off edge case"""
    print("\n" + "=" * 70)
    print("TEST 2: Time-of-Day Buckets")
    print("=" * 70)

    print("\n[2.1] Testing bucket boundaries...")
    assert bucket_for_hour(4) == TimeOfDay.MORNING
    assert bucket_for_hour(10) == TimeOfDay.MORNING
    assert bucket_for_hour(11) == TimeOfDay.AFTERNOON
    assert bucket_for_hour(16) == TimeOfDay.AFTERNOON
    assert bucket_for_hour(17) == TimeOfDay.EVENING
    assert bucket_for_hour(20) == TimeOfDay.EVENING
    assert bucket_for_hour(21) is None
    assert bucket_for_hour(3) is None
    print("✓ 04-10 morning, 11-16 afternoon, 17-20 evening")

    events = sample_events()

    print("\n[2.2] Testing single bucket...")
    morning = filter_events(events, FilterCriteria(time_of_day=frozenset({TimeOfDay.MORNING})), NOW)
    assert ids(morning) == [2]
    evening_afternoon = filter_events(
        events,
        FilterCriteria(time_of_day=frozenset({TimeOfDay.EVENING, TimeOfDay.AFTERNOON})),
        NOW,
    )
    assert ids(evening_afternoon) == [3, 1, 5]
    print("✓ Bucket selection works")

    print("\n[2.3] Testing all buckets on...")
    all_on = filter_events(events, FilterCriteria(time_of_day=ALL_BUCKETS), NOW)
    assert 4 not in ids(all_on)  # 22:00 is outside every bucket
    print("✓ Events outside opening hours drop out when buckets are active")

    print("\n[2.4] Testing all buckets switched off (UX edge case)...")
    none_on = filter_events(events, FilterCriteria(time_of_day=frozenset()), NOW)
    assert none_on == []
    print("✓ No bucket enabled means no results")

    print("\n[2.5] Testing bucket dimension disabled...")
    assert len(filter_events(events, FilterCriteria(time_of_day=None), NOW)) == len(events)
    print("✓ time_of_day=None matches everything")


def test_archived_partition():
    """Archived shows the past, upcoming shows now and later"""
    print("\n" + "=" * 70)
    print("TEST 3: Archived vs Upcoming")
    print("=" * 70)

    events = sample_events()
    events.append(make_event(6, "Right Now", NOW))

    archived = filter_events(events, FilterCriteria(archived=True), NOW)
    upcoming = filter_events(events, FilterCriteria(archived=False), NOW)
    both = filter_events(events, FilterCriteria(archived=None), NOW)

    assert ids(archived) == [3]
    assert 6 in ids(upcoming)
    assert len(archived) + len(upcoming) == len(both) == len(events)
    print("✓ Partition is complete and disjoint")


def test_date_and_categories():
    """Exact date plus class type, difficulty and duration"""
    print("\n" + "=" * 70)
    print("TEST 4: Date and Categorical Filters")
    print("=" * 70)

    events = sample_events()

    assert ids(filter_events(events, FilterCriteria(on_date=date(2025, 6, 11)), NOW)) == [2, 1]
    print("✓ Date filter")

    assert ids(filter_events(events, FilterCriteria(class_type_id=1), NOW)) == [2, 5]
    assert ids(filter_events(events, FilterCriteria(difficulty="Easy"), NOW)) == [2, 4]
    assert ids(filter_events(events, FilterCriteria(duration="30 min"), NOW)) == [3, 4]
    print("✓ Categorical filters")

    combined = FilterCriteria(class_type_id=1, duration="60 min", on_date=date(2025, 6, 12))
    assert ids(filter_events(events, combined, NOW)) == [5]
    print("✓ Filters compose with AND")


def test_sorting_idempotence_and_completeness():
    """Sorted output, stable under re-filtering, no false positives"""
    print("\n" + "=" * 70)
    print("TEST 5: Sorting, Idempotence, Completeness")
    print("=" * 70)

    events = sample_events()
    original = list(events)
    criteria_list = [
        FilterCriteria(),
        FilterCriteria(search="yoga", archived=False),
        FilterCriteria(time_of_day=frozenset({TimeOfDay.AFTERNOON, TimeOfDay.EVENING})),
        FilterCriteria(difficulty="Easy", archived=False),
        FilterCriteria(search="min", time_of_day=ALL_BUCKETS, archived=False),
    ]

    for criteria in criteria_list:
        once = filter_events(events, criteria, NOW)
        twice = filter_events(once, criteria, NOW)
        assert once == twice
        starts = [e.start_time for e in once]
        assert starts == sorted(starts)
        for event in once:
            assert matches(event, criteria, NOW)
    print(f"✓ {len(criteria_list)} criteria sets checked")

    assert events == original
    print("✓ Input list not mutated")


def test_grouping_and_pagination():
    """Member class browser helpers"""
    print("\n" + "=" * 70)
    print("TEST 6: Grouping and Pagination")
    print("=" * 70)

    groups = group_by_time_of_day(sample_events())
    assert ids(groups[TimeOfDay.MORNING]) == [2]
    assert ids(groups[TimeOfDay.AFTERNOON]) == [3, 5]
    assert ids(groups[TimeOfDay.EVENING]) == [1]
    print("✓ Grouped by time of day")

    items = list(range(14))
    assert paginate(items, 1) == [0, 1, 2, 3, 4, 5]
    assert paginate(items, 3) == [12, 13]
    assert paginate(items, 4) == []
    assert page_count(14) == 3
    assert page_count(0) == 1
    print("✓ Pagination")

    try:
        paginate(items, 0)
        assert False, "page 0 should be rejected"
    except ValueError:
        print("✓ Page 0 rejected")


if __name__ == "__main__":
    test_search()
    test_time_of_day_buckets()
    test_archived_partition()
    test_date_and_categories()
    test_sorting_idempotence_and_completeness()
    test_grouping_and_pagination()
    print("\n✅ ALL FILTER TESTS PASSED")
