"""
Itinerary assembly: resolve both ends, find direct routes, price each one
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, Dict, List, Optional

from .connectivity import RouteConnectivityResolver
from .data.interfaces import KeyValueStore, LocationProvider
from .exceptions import LocationNotResolvableError
from .fares import FareStrategySelector
from .geocoding import LocationResolver
from .logger import logger
from .models.gtfs import Stop
from .models.itinerary import ConnectingRoute, FareEstimate, ItineraryCandidate
from .utils.geo_utils import path_distance

RECENT_SEARCHES_KEY = 'recent_searches'


class ItineraryAssembler:
    """Builds one candidate per direct route between two resolved stops.

    Fares are computed concurrently, one task per route. A task that fails
    only degrades its own candidate to an unavailable fare; candidates keep
    the order the connectivity resolver returned them in.
    """

    def __init__(self, locations: LocationResolver, connectivity: RouteConnectivityResolver,
                 fare_selector: FareStrategySelector, kv_store: Optional[KeyValueStore] = None,
                 location_provider: Optional[LocationProvider] = None, max_workers: int = 8,
                 recent_search_limit: int = 5):
        self.locations = locations
        self.connectivity = connectivity
        self.fare_selector = fare_selector
        self.kv_store = kv_store
        self.location_provider = location_provider
        self.max_workers = max_workers
        self.recent_search_limit = recent_search_limit
        self._recent_lock = threading.Lock()

    def search(self, from_text: str, to_text: str) -> List[ItineraryCandidate]:
        """
        Direct itineraries between two free-text locations.

        Raises:
            LocationNotResolvableError: either side matches no stop and no
                geocoded address near a stop

        Returns:
            Candidates in resolver order; empty when no direct route exists
        """
        start = time.time()
        origin = self.locations.resolve(from_text, 'origin')
        destination = self.locations.resolve(to_text, 'destination')
        self._remember_search(from_text, to_text, origin, destination)

        candidates = self.search_between(origin, destination)
        logger.log_search_request(from_text, to_text, len(candidates), (time.time() - start) * 1000)
        return candidates

    def search_from_current_location(self, to_text: str) -> List[ItineraryCandidate]:
        """Like ``search`` but boards at the stop nearest the device position"""
        start = time.time()
        position = self.location_provider.current_position() if self.location_provider else None
        if position is None:
            raise LocationNotResolvableError('current location', 'origin', 'device location unavailable')

        origin = self.locations.resolve_coordinates(position[0], position[1], 'origin')
        destination = self.locations.resolve(to_text, 'destination')
        self._remember_search(origin.name, to_text, origin, destination)

        candidates = self.search_between(origin, destination)
        logger.log_search_request('current location', to_text, len(candidates), (time.time() - start) * 1000)
        return candidates

    def search_between(self, origin: Stop, destination: Stop) -> List[ItineraryCandidate]:
        try:
            routes = self.connectivity.find_routes(origin.id, destination.id)
        except Exception as e:
            logger.error(f"Route lookup failed for {origin.id} -> {destination.id}: {e}")
            return []

        if not routes:
            logger.info(f"No direct route between {origin.id} and {destination.id}")
            return []

        distance_km = path_distance([(origin.lat, origin.lon), (destination.lat, destination.lon)])
        estimates = self._estimate_all(routes, origin, destination, distance_km)

        return [
            ItineraryCandidate(
                origin_stop=origin,
                destination_stop=destination,
                route=connecting.route,
                distance_km=distance_km,
                fare=estimate.fare,
                mode_label=connecting.mode.label,
                trip=connecting.trip,
                fare_description=estimate.description,
            )
            for connecting, estimate in zip(routes, estimates)
        ]

    def _estimate_all(self, routes: List[ConnectingRoute], origin: Stop, destination: Stop,
                      distance_km: float) -> List[FareEstimate]:
        results: List[Optional[FareEstimate]] = [None] * len(routes)
        workers = max(1, min(self.max_workers, len(routes)))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(self._estimate_one, connecting, origin, destination, distance_km): i
                for i, connecting in enumerate(routes)
            }
            for future in as_completed(future_to_index):
                i = future_to_index[future]
                route = routes[i].route
                try:
                    results[i] = future.result()
                except Exception as e:
                    logger.error(f"Fare task failed for route {route.id}: {e}")
                    results[i] = FareEstimate.placeholder(route.mode_code)

        return results

    def _estimate_one(self, connecting: ConnectingRoute, origin: Stop, destination: Stop,
                      distance_km: float) -> FareEstimate:
        route = connecting.route
        estimates = self.fare_selector.estimate_fare(distance_km, route.mode_code, origin, destination, route.id)
        return estimates[0] if estimates else FareEstimate.placeholder(route.mode_code)

    # Recent searches

    def recent_searches(self) -> List[Dict[str, Any]]:
        if self.kv_store is None:
            return []
        return list(self.kv_store.get(RECENT_SEARCHES_KEY, []) or [])

    def _remember_search(self, from_text: str, to_text: str, origin: Stop, destination: Stop):
        if self.kv_store is None or self.recent_search_limit <= 0:
            return
        entry = {
            'from': from_text,
            'to': to_text,
            'origin_stop_id': origin.id,
            'destination_stop_id': destination.id,
            'searched_at': datetime.now().isoformat(),
        }
        # read-modify-write of the shared list
        with self._recent_lock:
            previous = [
                e for e in self.recent_searches()
                if (e.get('origin_stop_id'), e.get('destination_stop_id')) != (origin.id, destination.id)
            ]
            self.kv_store.set(RECENT_SEARCHES_KEY, [entry] + previous[:self.recent_search_limit - 1])
