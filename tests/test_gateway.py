"""
Remote Data Gateway Tests

Uses a mocked requests session, no server needed.

Tests:
- Bearer token headers and missing-token handling
- Timeout / connection / HTTP error mapping
- Record conversion (incomplete and foreign records excluded)
- Write payloads
"""

import sys
import tempfile
from datetime import date, datetime, time
from pathlib import Path
from unittest.mock import Mock

import requests

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gymclock.api import (
    GatewayAuthError,
    GatewayConnectionError,
    GatewayResponseError,
    GatewayTimeoutError,
    RemoteDataGateway,
    Reservation,
)
from gymclock.memory import EventKind, KeyValueStore, SessionStore
from gymclock.memory.event_models import registration_to_event


def make_response(status_code=200, body=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.content = b"" if body is None else b"{...}"
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


def make_gateway(tmpdir, token="tok-123"):
    kv = KeyValueStore(Path(tmpdir) / "storage.json")
    session = SessionStore(kv)
    if token:
        kv.set("token", token)
    http = Mock()
    gateway = RemoteDataGateway(session, base_url="http://gym.test/", timeout=5, http=http)
    return gateway, http


REGISTRATIONS = [
    {
        "id": 11,
        "user_id": 3,
        "show_class": {
            "schedule_time": "2025-06-10 09:00:00",
            "class_data": {
                "name": "Yoga Basics",
                "difficulty": "Easy",
                "duration": "60 min",
                "class_type_id": 1,
                "class_type": {"name": "Mind & Body"},
                "trainer": {"user": {"name": "Ken"}},
            },
        },
    },
    {"id": 12, "user_id": 3, "show_class": None},
    {"id": 13, "user_id": 3, "show_class": {"class_data": {"name": "No Time"}}},
    {
        "id": 14,
        "user_id": 8,
        "show_class": {"schedule_time": "2025-06-10 10:00:00", "class_data": {"name": "Spin"}},
    },
]


def test_headers_and_auth():
    """Token in header, missing token refused before any call"""
    print("\n" + "=" * 70)
    print("TEST 1: Headers and Auth")
    print("=" * 70)

    with tempfile.TemporaryDirectory() as tmpdir:
        print("\n[1.1] Testing bearer header and timeout...")
        gateway, http = make_gateway(tmpdir)
        http.request.return_value = make_response(200, [])
        assert gateway.fetch_workout_plans() == []

        args, kwargs = http.request.call_args
        assert args == ("GET", "http://gym.test/api/workout-plans")
        assert kwargs["headers"]["Authorization"] == "Bearer tok-123"
        assert kwargs["timeout"] == 5
        print("✓ Header and timeout sent")

    with tempfile.TemporaryDirectory() as tmpdir:
        print("\n[1.2] Testing missing token...")
        gateway, http = make_gateway(tmpdir, token=None)
        try:
            gateway.fetch_workout_plans()
            assert False, "should raise without a token"
        except GatewayAuthError:
            pass
        http.request.assert_not_called()
        print("✓ GatewayAuthError, no request made")

    with tempfile.TemporaryDirectory() as tmpdir:
        print("\n[1.3] Testing 401 from server...")
        gateway, http = make_gateway(tmpdir)
        http.request.return_value = make_response(401, {"message": "Unauthenticated."})
        try:
            gateway.fetch_current_user()
            assert False, "should raise on 401"
        except GatewayAuthError:
            print("✓ GatewayAuthError raised")


def test_error_mapping():
    """Transport and HTTP failures become gateway errors"""
    print("\n" + "=" * 70)
    print("TEST 2: Error Mapping")
    print("=" * 70)

    cases = [
        (requests.Timeout("slow"), GatewayTimeoutError),
        (requests.ConnectionError("refused"), GatewayConnectionError),
    ]
    for exc, expected in cases:
        with tempfile.TemporaryDirectory() as tmpdir:
            gateway, http = make_gateway(tmpdir)
            http.request.side_effect = exc
            try:
                gateway.fetch_show_classes()
                assert False, f"{exc!r} should be mapped"
            except expected as e:
                assert e.__cause__ is exc
                print(f"✓ {type(exc).__name__} -> {expected.__name__}")

    with tempfile.TemporaryDirectory() as tmpdir:
        print("\n[2.1] Testing server message kept verbatim...")
        gateway, http = make_gateway(tmpdir)
        http.request.return_value = make_response(422, {"message": "The trainer is already booked."})
        try:
            gateway.submit_reservation(Reservation(date(2025, 6, 10), time(9, 0), trainer_id=2))
            assert False, "should raise on 422"
        except GatewayResponseError as e:
            assert e.status_code == 422
            assert e.message == "The trainer is already booked."
            print(f"✓ Message: {e.message}")

        print("\n[2.2] Testing error body without message...")
        http.request.return_value = make_response(500, ValueError("not json"))
        try:
            gateway.fetch_show_classes()
            assert False, "should raise on 500"
        except GatewayResponseError as e:
            assert e.message == "HTTP 500"
            print("✓ Falls back to status code")

        print("\n[2.3] Testing non-list body for a list endpoint...")
        http.request.return_value = make_response(200, {"data": []})
        try:
            gateway.fetch_show_classes()
            assert False, "should reject a dict"
        except GatewayResponseError:
            print("✓ Rejected")


def test_record_conversion():
    """Only complete records for the current user become events"""
    print("\n" + "=" * 70)
    print("TEST 3: Record Conversion")
    print("=" * 70)

    with tempfile.TemporaryDirectory() as tmpdir:
        gateway, http = make_gateway(tmpdir)

        print("\n[3.1] Testing class registrations...")
        http.request.return_value = make_response(200, REGISTRATIONS)
        events = gateway.fetch_class_events(user_id=3)
        assert len(events) == 1
        event = events[0]
        assert event.id == 11
        assert event.kind == EventKind.CLASS
        assert event.title == "Yoga Basics (09:00 AM)"
        assert event.start_time == datetime(2025, 6, 10, 9, 0)
        assert event.class_type == "Mind & Body"
        assert event.trainer_name == "Ken"
        print("✓ Incomplete and foreign records excluded")

        print("\n[3.2] Testing without a user filter...")
        assert sorted(e.id for e in gateway.fetch_class_events(user_id=None)) == [11, 14]
        print("✓ All complete records kept")

        print("\n[3.3] Testing workout plans...")
        http.request.return_value = make_response(200, [
            {"id": 1, "name": "Leg Day", "schedule_time": "2025-06-10 18:30:00"},
            {"id": 2, "name": "", "schedule_time": "2025-06-11 07:00:00"},
            {"id": 3, "name": "Broken", "schedule_time": None},
        ])
        workouts = gateway.fetch_workout_events()
        assert [w.title for w in workouts] == ["Leg Day (06:30 PM)", "No Name (07:00 AM)"]
        assert all(w.kind == EventKind.WORKOUT for w in workouts)
        print("✓ Workouts converted")

        print("\n[3.4] Testing class listings...")
        http.request.return_value = make_response(200, [
            {"id": 20, "schedule_time": "2025-06-12 17:00:00", "class_data": {"name": "HIIT", "difficulty": "Hard"}},
            {"id": 21, "schedule_time": "garbage"},
        ])
        listings = gateway.fetch_class_listings()
        assert [listing.id for listing in listings] == [20]
        assert listings[0].to_event().difficulty == "Hard"
        print("✓ Unparseable listing skipped")

        print("\n[3.5] Testing nested values of the wrong type...")
        http.request.return_value = make_response(200, [
            {"id": 30, "user_id": 3, "show_class": "oops"},
            {"id": 31, "user_id": 3, "show_class": {"schedule_time": "2025-06-10 09:00:00", "class_data": []}},
            {"id": 32, "user_id": 3, "show_class": {
                "schedule_time": "2025-06-10 11:00:00",
                "class_data": {"name": "Pilates", "class_type": "Core", "trainer": ["Ken"]},
            }},
        ])
        events = gateway.fetch_class_events(user_id=3)
        assert [e.id for e in events] == [32]
        assert events[0].class_type is None
        assert events[0].trainer_name is None
        print("✓ Malformed registrations excluded, stray fields ignored")

        assert registration_to_event({"id": 3, "user_id": 7, "show_class": "oops"}, 7).reason == \
            "missing show_class"
        print("✓ Converter reports instead of raising")

        http.request.return_value = make_response(200, [
            {"id": 40, "schedule_time": "2025-06-12 17:00:00", "class_data": "HIIT"},
        ])
        listings = gateway.fetch_class_listings()
        assert [listing.name for listing in listings] == ["No Name"]
        print("✓ Listing with non-object class data falls back to defaults")


def test_write_payloads():
    """Reservation, workout, cancel and award requests"""
    print("\n" + "=" * 70)
    print("TEST 4: Write Payloads")
    print("=" * 70)

    with tempfile.TemporaryDirectory() as tmpdir:
        gateway, http = make_gateway(tmpdir)

        print("\n[4.1] Testing reservation payload...")
        http.request.return_value = make_response(201, {"id": 99})
        gateway.submit_reservation(Reservation(date(2025, 6, 10), time(9, 30), facility_id=4))
        args, kwargs = http.request.call_args
        assert args == ("POST", "http://gym.test/api/reservations")
        assert kwargs["json"] == {
            "reservation_date": "2025-06-10",
            "reservation_time": "09:30",
            "facility_id": 4,
            "equipment_id": None,
            "trainer_id": None,
        }
        print("✓ Reservation payload")

        print("\n[4.2] Testing workout plan creation (wrapped response)...")
        http.request.return_value = make_response(201, {"data": {"id": 5, "name": "Run"}})
        created = gateway.create_workout_plan("Run", datetime(2025, 6, 10, 6, 0))
        assert created == {"id": 5, "name": "Run"}
        assert http.request.call_args[1]["json"] == {"name": "Run", "schedule_time": "2025-06-10 06:00:00"}
        print("✓ Workout plan payload")

        print("\n[4.3] Testing delete and award...")
        http.request.return_value = make_response(204)
        gateway.cancel_class_registration(11)
        assert http.request.call_args[0] == ("DELETE", "http://gym.test/api/class-registration/11")
        gateway.delete_workout_plan(5)
        assert http.request.call_args[0] == ("DELETE", "http://gym.test/api/workout-plans/5")
        gateway.award_points(20, 3)
        assert http.request.call_args[0] == ("POST", "http://gym.test/api/class_registrations/20/award")
        assert http.request.call_args[1]["json"] == {"points": 3}
        print("✓ Endpoints and payloads")


if __name__ == "__main__":
    test_headers_and_auth()
    test_error_mapping()
    test_record_conversion()
    test_write_payloads()
    print("\n✅ ALL GATEWAY TESTS PASSED")
