"""
Collaborator interfaces consumed by the routing core.

Reference data, fare tables, address resolution, trip persistence and the
platform capabilities (key-value storage, device location) are all injected
so the core can run against in-memory doubles.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional, Tuple

import pandas as pd

from ..models.gtfs import Route, Stop, Trip
from ..models.user_trip import TripStatus, UserTrip


class ReferenceDataProvider(ABC):
    """Read-only stop/route snapshot plus the stop-pair connectivity query"""

    @abstractmethod
    def get_all_stops(self) -> List[Stop]:
        pass

    @abstractmethod
    def get_all_routes(self) -> List[Route]:
        pass

    @abstractmethod
    def find_connecting_routes(self, from_stop_id: str, to_stop_id: str,
                               enforce_order: bool = False) -> List[Tuple[Route, Optional[Trip]]]:
        """
        Routes whose stop pattern contains both stops.

        Args:
            from_stop_id: Boarding stop
            to_stop_id: Alighting stop
            enforce_order: Only keep routes with a trip visiting the boarding
                stop before the alighting stop

        Returns:
            (route, representative trip) pairs; empty when nothing connects
        """
        pass


class FareTableProvider(ABC):
    """Fare tables for distance-banded and station-pair pricing"""

    @abstractmethod
    def distance_table(self, name: str) -> Optional[pd.DataFrame]:
        """Bands with columns distance, regular_fare, discounted_fare (ascending)"""
        pass

    @abstractmethod
    def lookup_station_fare(self, system: str, from_station: str, to_station: str) -> Optional[dict]:
        """
        Fare row for a normalized station pair on one rail system.

        Returns:
            ``{'fare': x}`` or ``{'sj_fare': x, 'sv_fare': y}``, or None on a miss
        """
        pass


class AddressResolver(ABC):
    """Free-text address lookup"""

    @abstractmethod
    def geocode(self, text: str) -> List[Any]:
        """Candidate places (objects with lat, lon, display_name), best first"""
        pass


class TripStore(ABC):
    """Persistence for user trips and cumulative points"""

    @abstractmethod
    def save_trip(self, trip: UserTrip) -> UserTrip:
        pass

    @abstractmethod
    def get_trip(self, trip_id: str) -> Optional[UserTrip]:
        pass

    @abstractmethod
    def complete_active_trip(self, trip_id: str, completed_at: datetime, points: int) -> Optional[UserTrip]:
        """
        Atomically move an active trip to completed and award points.

        Either both the transition and the award happen, or neither does.

        Returns:
            The completed trip, or None if the trip is missing or not active
        """
        pass

    @abstractmethod
    def list_trips(self, user_id: str, status: Optional[TripStatus] = None) -> List[UserTrip]:
        pass

    @abstractmethod
    def get_points(self, user_id: str) -> int:
        pass


class KeyValueStore(ABC):
    """Small persistent settings store (browser local storage on the client)"""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass


class LocationProvider(ABC):
    """Device geolocation"""

    @abstractmethod
    def current_position(self) -> Optional[Tuple[float, float]]:
        """(lat, lon) or None when location is unavailable or denied"""
        pass
