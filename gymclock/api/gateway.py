"""
GymClock Remote Data Gateway - REST API Client

Responsibilities:
- Bearer-token authenticated calls to the gym API
- Convert loosely-shaped records into event models at the boundary
- Explicit error types for every failure mode

Every request carries a timeout. Nothing here retries.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

import requests

from gymclock.core.config import API_BASE, HTTP_TIMEOUT
from gymclock.memory.event_models import (
    ClassListing,
    ScheduledEvent,
    complete_only,
    registration_to_event,
    show_class_to_listing,
    workout_plan_to_event,
)
from gymclock.memory.kv_store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Failed to send reservation."


class GatewayError(Exception):
    """Base exception for all API errors"""
    pass


class GatewayConnectionError(GatewayError):
    """Raised when the API server cannot be reached"""
    pass


class GatewayTimeoutError(GatewayError):
    """Raised when a request exceeds its timeout"""
    pass


class GatewayAuthError(GatewayError):
    """Raised when there is no token or the server rejects it"""
    pass


class GatewayResponseError(GatewayError):
    """
    Raised on a non-2xx response or an unreadable body.

    Attributes:
        status_code: HTTP status (None for body errors)
        message: Server-provided message, shown verbatim to users
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class Reservation:
    """A facility/equipment/trainer booking request"""
    reservation_date: date
    reservation_time: time
    facility_id: Optional[int] = None
    equipment_id: Optional[int] = None
    trainer_id: Optional[int] = None

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.reservation_date, self.reservation_time)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "reservation_date": self.reservation_date.isoformat(),
            "reservation_time": self.reservation_time.strftime("%H:%M"),
            "facility_id": self.facility_id,
            "equipment_id": self.equipment_id,
            "trainer_id": self.trainer_id,
        }


class RemoteDataGateway:
    """
    Client for the gym REST API.

    Example:
        >>> gateway = RemoteDataGateway(session_store)
        >>> events = gateway.fetch_class_events(user_id=3)
    """

    def __init__(
        self,
        session_store: SessionStore,
        base_url: str = API_BASE,
        timeout: float = HTTP_TIMEOUT,
        http: Optional[requests.Session] = None
    ):
        """
        Args:
            session_store: Source of the bearer token
            base_url: API server URL
            timeout: Per-request timeout in seconds
            http: requests.Session to use (default: a new one)
        """
        self.session_store = session_store
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = http or requests.Session()

        logger.info(f"RemoteDataGateway initialized (base_url={self.base_url}, timeout={timeout}s)")

    def _headers(self) -> Dict[str, str]:
        token = self.session_store.token
        if not token:
            raise GatewayAuthError("No token found. Please log in.")
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    def _request(self, method: str, endpoint: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make an authenticated request.

        Returns:
            Parsed JSON body (None for an empty body)

        Raises:
            GatewayAuthError, GatewayConnectionError, GatewayTimeoutError,
            GatewayResponseError
        """
        url = f"{self.base_url}{endpoint}"
        headers = self._headers()

        logger.debug(f"{method} {url}")
        try:
            response = self.http.request(
                method,
                url,
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise GatewayTimeoutError(f"{method} {endpoint} timed out after {self.timeout}s") from e
        except requests.ConnectionError as e:
            raise GatewayConnectionError(f"Cannot connect to API at {self.base_url}: {e}") from e
        except requests.RequestException as e:
            raise GatewayError(f"Request failed: {e}") from e

        if response.status_code in (401, 403):
            raise GatewayAuthError(f"{method} {endpoint} rejected: HTTP {response.status_code}")

        if not response.ok:
            raise GatewayResponseError(
                self._error_message(response),
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise GatewayResponseError(f"Invalid JSON from {endpoint}: {e}") from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {response.status_code}"

    def _get_list(self, endpoint: str) -> List[Dict[str, Any]]:
        data = self._request("GET", endpoint)
        if not isinstance(data, list):
            raise GatewayResponseError(f"Expected a list from {endpoint}")
        return [item for item in data if isinstance(item, dict)]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_current_user(self) -> Dict[str, Any]:
        user = self._request("GET", "/api/user")
        if not isinstance(user, dict) or not user.get("id"):
            raise GatewayResponseError("Invalid user data received")
        return user

    def fetch_class_registrations(self) -> List[Dict[str, Any]]:
        return self._get_list("/api/class-registration")

    def fetch_workout_plans(self) -> List[Dict[str, Any]]:
        return self._get_list("/api/workout-plans")

    def fetch_show_classes(self) -> List[Dict[str, Any]]:
        return self._get_list("/api/show_classes")

    def fetch_class_events(self, user_id: Optional[int]) -> List[ScheduledEvent]:
        """Registered classes of one user, incomplete records excluded."""
        records = self.fetch_class_registrations()
        events = events_from_registrations(records, user_id)
        logger.info(f"Fetched {len(events)} class events ({len(records)} registrations)")
        return events

    def fetch_workout_events(self) -> List[ScheduledEvent]:
        records = self.fetch_workout_plans()
        events = events_from_workout_plans(records)
        logger.info(f"Fetched {len(events)} workout events")
        return events

    def fetch_class_listings(self) -> List[ClassListing]:
        return listings_from_show_classes(self.fetch_show_classes())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def submit_reservation(self, reservation: Reservation) -> Any:
        logger.info(f"Submitting reservation for {reservation.starts_at}")
        return self._request("POST", "/api/reservations", reservation.to_payload())

    def create_workout_plan(self, name: str, starts_at: datetime) -> Dict[str, Any]:
        payload = {"name": name, "schedule_time": starts_at.strftime("%Y-%m-%d %H:%M:%S")}
        data = self._request("POST", "/api/workout-plans", payload)
        # Some deployments wrap the created plan in {"data": {...}}
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            data = data["data"]
        if not isinstance(data, dict):
            raise GatewayResponseError("Invalid workout plan received")
        return data

    def cancel_class_registration(self, registration_id: int):
        self._request("DELETE", f"/api/class-registration/{registration_id}")
        logger.info(f"Cancelled class registration {registration_id}")

    def delete_workout_plan(self, plan_id: int):
        self._request("DELETE", f"/api/workout-plans/{plan_id}")
        logger.info(f"Deleted workout plan {plan_id}")

    def award_points(self, show_class_id: int, points: int) -> Any:
        return self._request(
            "POST",
            f"/api/class_registrations/{show_class_id}/award",
            {"points": points},
        )


def events_from_registrations(records: List[Dict[str, Any]], user_id: Optional[int]) -> List[ScheduledEvent]:
    return complete_only([registration_to_event(r, user_id) for r in records])


def events_from_workout_plans(records: List[Dict[str, Any]]) -> List[ScheduledEvent]:
    return complete_only([workout_plan_to_event(r) for r in records])


def listings_from_show_classes(records: List[Dict[str, Any]]) -> List[ClassListing]:
    listings = [show_class_to_listing(r) for r in records]
    return [listing for listing in listings if listing is not None]
