"""
Free-text location resolution: stop lookup first, geocode-and-snap as fallback
"""

import time
from dataclasses import dataclass
from typing import List, Optional

import requests

from .data.interfaces import AddressResolver
from .exceptions import APIError, LocationNotResolvableError
from .logger import logger
from .models.gtfs import Stop
from .stop_index import StopIndex


@dataclass(frozen=True)
class GeocodedPlace:
    lat: float
    lon: float
    display_name: str


class NominatimGeocoder(AddressResolver):
    """Address search against a Nominatim-compatible ``/search`` endpoint"""

    def __init__(self, url: str, user_agent: str, country_codes: str = 'ph',
                 timeout: float = 8.0, limit: int = 5, session: Optional[requests.Session] = None):
        self.url = url
        self.user_agent = user_agent
        self.country_codes = country_codes
        self.timeout = timeout
        self.limit = limit
        self.session = session

    def geocode(self, text: str) -> List[GeocodedPlace]:
        params = {
            'q': text,
            'format': 'json',
            'limit': self.limit,
        }
        if self.country_codes:
            params['countrycodes'] = self.country_codes
        headers = {'User-Agent': self.user_agent}

        start = time.time()
        get = self.session.get if self.session is not None else requests.get
        try:
            resp = get(self.url, params=params, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.log_api_call('geocode', (time.time() - start) * 1000, False)
            raise APIError(f"Geocoding request failed: {e}") from e
        logger.log_api_call('geocode', (time.time() - start) * 1000, True)

        places = []
        for item in data or []:
            try:
                places.append(GeocodedPlace(
                    lat=float(item['lat']),
                    lon=float(item['lon']),
                    display_name=item.get('display_name', text),
                ))
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed geocoder result: {item}")
        return places


class LocationResolver:
    """Turns user text into a stop.

    Resolution order: exact stop id, exact stop name, first name-search hit,
    then geocode the text and snap to the nearest stop within the radius.
    """

    def __init__(self, stop_index: StopIndex, address_resolver: Optional[AddressResolver] = None,
                 snap_radius_m: float = 1000.0):
        self.stop_index = stop_index
        self.address_resolver = address_resolver
        self.snap_radius_m = snap_radius_m

    def resolve(self, text: str, side: str = 'origin') -> Stop:
        query = (text or '').strip()
        if not query:
            raise LocationNotResolvableError(text or '', side, 'no location given')

        stop = self.stop_index.get(query) or self.stop_index.find_exact(query)
        if stop is None:
            matches = self.stop_index.search(query, limit=1)
            stop = matches[0] if matches else None
        if stop is not None:
            return stop

        return self._geocode_and_snap(query, side)

    def resolve_coordinates(self, lat: float, lon: float, side: str = 'origin') -> Stop:
        found = self.stop_index.nearest_stop(lat, lon, self.snap_radius_m)
        if found is None:
            raise LocationNotResolvableError(f"{lat:.5f},{lon:.5f}", side,
                                             f"no stop within {self.snap_radius_m:.0f} m")
        stop, distance_m = found
        logger.debug(f"Snapped ({lat:.5f}, {lon:.5f}) to {stop.id} at {distance_m:.0f} m")
        return stop

    def _geocode_and_snap(self, query: str, side: str) -> Stop:
        if self.address_resolver is None:
            raise LocationNotResolvableError(query, side, 'no matching stop')

        try:
            places = self.address_resolver.geocode(query)
        except APIError as e:
            logger.warning(f"Geocoding failed for {query!r}: {e}")
            raise LocationNotResolvableError(query, side, 'address lookup unavailable') from e

        if not places:
            raise LocationNotResolvableError(query, side, 'no matching stop or address')

        for place in places:
            found = self.stop_index.nearest_stop(place.lat, place.lon, self.snap_radius_m)
            if found is not None:
                stop, distance_m = found
                logger.info(f"Resolved {query!r} via geocoder ({place.display_name}) "
                            f"to stop {stop.id} at {distance_m:.0f} m")
                return stop

        raise LocationNotResolvableError(query, side, f"no stop within {self.snap_radius_m:.0f} m of the address")
