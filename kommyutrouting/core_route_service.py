"""
Kommyut route service: one object wiring stops, connectivity, fares,
geocoding and trip sessions together for the API layer.
"""

from typing import Any, Dict, List, Optional

from .config import Config
from .connectivity import RouteConnectivityResolver
from .data.fare_tables import FareTables
from .data.gtfs_loader import GTFSFeed
from .data.interfaces import (
    AddressResolver,
    FareTableProvider,
    KeyValueStore,
    LocationProvider,
    ReferenceDataProvider,
    TripStore,
)
from .data.stores import InMemoryKeyValueStore, InMemoryTripStore
from .fares import FareStrategySelector
from .geocoding import LocationResolver, NominatimGeocoder
from .itinerary import ItineraryAssembler
from .logger import logger
from .models.gtfs import Stop
from .models.itinerary import FareEstimate, ItineraryCandidate
from .models.user_trip import TripStats, UserTrip
from .stop_index import StopIndex
from .trip_session import TripSessionService


class KommyutRouteService:
    """Direct-route search, fare estimation and trip tracking over one data snapshot"""

    def __init__(self, reference_data: ReferenceDataProvider, fare_tables: FareTableProvider,
                 config: Optional[Config] = None, address_resolver: Optional[AddressResolver] = None,
                 trip_store: Optional[TripStore] = None, kv_store: Optional[KeyValueStore] = None,
                 location_provider: Optional[LocationProvider] = None):
        self.config = config or Config()
        self.reference_data = reference_data
        self.fare_tables = fare_tables

        self.stop_index = StopIndex(
            reference_data.get_all_stops(),
            search_limit=self.config.stop_search_limit,
            min_query_chars=self.config.stop_search_min_chars,
        )
        self.connectivity = RouteConnectivityResolver(reference_data, self.config.enforce_stop_order)
        self.fare_selector = FareStrategySelector(fare_tables)
        self.locations = LocationResolver(self.stop_index, address_resolver, self.config.snap_radius_m)
        self.assembler = ItineraryAssembler(
            self.locations,
            self.connectivity,
            self.fare_selector,
            kv_store=kv_store if kv_store is not None else InMemoryKeyValueStore(),
            location_provider=location_provider,
            max_workers=self.config.fare_workers,
            recent_search_limit=self.config.recent_search_limit,
        )
        self.trips = TripSessionService(
            trip_store if trip_store is not None else InMemoryTripStore(),
            points_per_trip=self.config.points_per_trip,
            timezone=self.config.timezone,
        )

    @classmethod
    def from_config(cls, config: Config, **collaborators) -> 'KommyutRouteService':
        """Load GTFS and fare CSVs from the configured directories"""
        logger.configure(config.log_level, config.log_file)
        config.validate()
        reference_data = GTFSFeed.from_directory(config.data_dir)
        fare_tables = FareTables.from_directory(config.fares_dir)
        collaborators.setdefault('address_resolver', NominatimGeocoder(
            config.geocoder_url,
            config.geocoder_user_agent,
            country_codes=config.geocoder_country,
            timeout=config.geocoder_timeout,
        ))
        service = cls(reference_data, fare_tables, config, **collaborators)
        logger.info(f"Kommyut route service ready: {len(service.stop_index)} stops")
        return service

    # Stops

    def search_stops(self, query: str) -> List[Stop]:
        return self.stop_index.search(query)

    def nearest_stops(self, lat: float, lon: float, radius_m: Optional[float] = None,
                      limit: Optional[int] = None) -> List[Dict[str, Any]]:
        found = self.stop_index.nearest_stops(
            lat, lon,
            radius_m if radius_m is not None else self.config.snap_radius_m,
            limit if limit is not None else self.config.nearest_stop_limit,
        )
        return [dict(stop.to_dict(), distance_m=round(distance_m, 1)) for stop, distance_m in found]

    # Itineraries and fares

    def search(self, from_text: str, to_text: str) -> List[ItineraryCandidate]:
        return self.assembler.search(from_text, to_text)

    def search_from_current_location(self, to_text: str) -> List[ItineraryCandidate]:
        return self.assembler.search_from_current_location(to_text)

    def recent_searches(self) -> List[Dict[str, Any]]:
        return self.assembler.recent_searches()

    def estimate_fare(self, distance_km: float, mode_code: int, origin_stop: Stop, destination_stop: Stop,
                      route_id: str = '') -> List[FareEstimate]:
        return self.fare_selector.estimate_fare(distance_km, mode_code, origin_stop, destination_stop, route_id)

    # Trips

    def start_trip(self, params: Dict[str, Any]) -> UserTrip:
        return self.trips.start_trip(params)

    def complete_trip(self, trip_id: str) -> UserTrip:
        return self.trips.complete_trip(trip_id)

    def active_trips(self, user_id: str) -> List[UserTrip]:
        return self.trips.active_trips(user_id)

    def completed_trips(self, user_id: str, limit: int = 50) -> List[UserTrip]:
        return self.trips.completed_trips(user_id, limit)

    def trip_stats(self, user_id: str) -> TripStats:
        return self.trips.stats(user_id)

    def user_level(self, user_id: str) -> Dict[str, Any]:
        return self.trips.user_level(user_id)
