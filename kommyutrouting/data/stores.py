"""
In-memory implementations of the persistence and platform interfaces
"""

import copy
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .interfaces import KeyValueStore, LocationProvider, TripStore
from ..models.user_trip import TripStatus, UserTrip


class InMemoryTripStore(TripStore):
    """Trip table and user points guarded by a single lock.

    ``complete_active_trip`` is the conditional update
    ``UPDATE ... SET status = 'completed' WHERE id = ? AND status = 'active'``
    followed by the points increment, both under the lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._trips: Dict[str, UserTrip] = {}
        self._points: Dict[str, int] = {}

    def save_trip(self, trip: UserTrip) -> UserTrip:
        with self._lock:
            self._trips[trip.id] = trip
        return trip

    def get_trip(self, trip_id: str) -> Optional[UserTrip]:
        with self._lock:
            return self._trips.get(trip_id)

    def complete_active_trip(self, trip_id: str, completed_at: datetime, points: int) -> Optional[UserTrip]:
        with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None or trip.status != TripStatus.ACTIVE:
                return None
            completed = replace(trip, status=TripStatus.COMPLETED, completed_at=completed_at)
            self._trips[trip_id] = completed
            self._points[trip.user_id] = self._points.get(trip.user_id, 0) + points
            return completed

    def list_trips(self, user_id: str, status: Optional[TripStatus] = None) -> List[UserTrip]:
        with self._lock:
            trips = [t for t in self._trips.values()
                     if t.user_id == user_id and (status is None or t.status == status)]
        return trips

    def get_points(self, user_id: str) -> int:
        with self._lock:
            return self._points.get(user_id, 0)

    def set_points(self, user_id: str, points: int):
        with self._lock:
            self._points[user_id] = points


class InMemoryKeyValueStore(KeyValueStore):

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return copy.deepcopy(self._data.get(key, default))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)


class StaticLocationProvider(LocationProvider):
    """Returns a fixed position, or None to simulate denied geolocation"""

    def __init__(self, position: Optional[Tuple[float, float]] = None):
        self.position = position

    def current_position(self) -> Optional[Tuple[float, float]]:
        return self.position
