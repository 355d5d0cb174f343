"""
Trip session lifecycle: start a journey, complete it once, award points
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional
from zoneinfo import ZoneInfo

from .data.interfaces import TripStore
from .exceptions import MissingTripFieldsError, TripNotFoundError
from .logger import logger
from .models.itinerary import ItineraryCandidate
from .models.user_trip import TripStats, TripStatus, UserTrip
from .utils.commuter_level import get_level_progress

REQUIRED_TRIP_FIELDS = ('user_id', 'from_location', 'to_location')
COMPLETED_TRIPS_LIMIT = 50


def _float_or_none(value) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class TripSessionService:
    """NotStarted -> Active -> Completed, with a fixed point award on completion.

    Completion relies on the store's conditional update, so two concurrent
    ``complete_trip`` calls for one trip award points once. A user may hold
    several active trips at the same time.
    """

    def __init__(self, store: TripStore, points_per_trip: int = 10, timezone: str = 'Asia/Manila',
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.points_per_trip = points_per_trip
        self.tz = ZoneInfo(timezone)
        self._clock = clock or (lambda: datetime.now(self.tz))

    def start(self, user_id: str, candidate: ItineraryCandidate) -> UserTrip:
        """Start a trip from a selected itinerary candidate"""
        return self.start_trip({
            'user_id': user_id,
            'from_location': candidate.origin_stop.name,
            'to_location': candidate.destination_stop.name,
            'transit_type': candidate.mode_label,
            'route_name': candidate.route_name,
            'distance_km': candidate.distance_km,
            'fare_paid': candidate.fare.regular,
        })

    def start_trip(self, params: Mapping[str, Any]) -> UserTrip:
        """Start a trip from raw fields; ``user_uid`` is accepted for ``user_id``"""
        fields = dict(params)
        if not fields.get('user_id') and fields.get('user_uid'):
            fields['user_id'] = fields['user_uid']

        missing = [name for name in REQUIRED_TRIP_FIELDS if not fields.get(name)]
        if missing:
            raise MissingTripFieldsError(missing)

        trip = UserTrip(
            id=str(uuid.uuid4()),
            user_id=str(fields['user_id']),
            from_location=str(fields['from_location']),
            to_location=str(fields['to_location']),
            transit_type=fields.get('transit_type'),
            route_name=fields.get('route_name'),
            distance_km=_float_or_none(fields.get('distance_km')),
            fare_paid=_float_or_none(fields.get('fare_paid')),
            status=TripStatus.ACTIVE,
            started_at=self._clock(),
        )
        self.store.save_trip(trip)
        logger.info(f"Trip {trip.id} started for user {trip.user_id}: {trip.from_location} -> {trip.to_location}")
        return trip

    def complete_trip(self, trip_id: str) -> UserTrip:
        completed = self.store.complete_active_trip(trip_id, self._clock(), self.points_per_trip)
        if completed is None:
            logger.info(f"Rejected completion of trip {trip_id}: not found or already completed")
            raise TripNotFoundError(trip_id)
        logger.info(f"Trip {trip_id} completed, awarded {self.points_per_trip} points to {completed.user_id}")
        return completed

    def active_trips(self, user_id: str) -> List[UserTrip]:
        trips = self.store.list_trips(user_id, TripStatus.ACTIVE)
        return sorted(trips, key=lambda t: t.started_at or datetime.min.replace(tzinfo=self.tz), reverse=True)

    def completed_trips(self, user_id: str, limit: int = COMPLETED_TRIPS_LIMIT) -> List[UserTrip]:
        trips = self.store.list_trips(user_id, TripStatus.COMPLETED)
        trips.sort(key=lambda t: t.completed_at or datetime.min.replace(tzinfo=self.tz), reverse=True)
        return trips[:limit]

    def stats(self, user_id: str) -> TripStats:
        completed = self.store.list_trips(user_id, TripStatus.COMPLETED)
        return TripStats(
            total_trips=len(completed),
            total_distance=sum(t.distance_km or 0.0 for t in completed),
            total_spent=sum(t.fare_paid or 0.0 for t in completed),
        )

    def user_level(self, user_id: str) -> Dict[str, Any]:
        points = self.store.get_points(user_id)
        progress = get_level_progress(points)
        current, following = progress['current_level'], progress['next_level']
        return {
            'user_id': user_id,
            'points': points,
            'level': current.name,
            'description': current.description,
            'next_level': following.name if following else None,
            'progress_percentage': round(progress['progress_percentage'], 1),
            'points_to_next': progress['points_to_next'],
        }
