"""
In-memory stop index: name search and nearest-stop queries over a stop snapshot
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .models.gtfs import Stop
from .utils.geo_utils import vectorized_haversine


class StopIndex:
    """Read-only view over the stops loaded for one session.

    Searches are pure: the same query against the same snapshot always gives
    the same answer, in load order.
    """

    def __init__(self, stops: Sequence[Stop], search_limit: int = 8, min_query_chars: int = 2):
        self._stops: Tuple[Stop, ...] = tuple(stops)
        self._by_id: Dict[str, Stop] = {}
        for stop in self._stops:
            self._by_id.setdefault(stop.id, stop)
        self._lowered_names = [stop.name.lower() for stop in self._stops]
        self.search_limit = search_limit
        self.min_query_chars = min_query_chars

        # coordinate arrays for vectorized distance queries
        self._lats = np.array([s.lat for s in self._stops], dtype=float)
        self._lons = np.array([s.lon for s in self._stops], dtype=float)

    def __len__(self) -> int:
        return len(self._stops)

    @property
    def stops(self) -> Tuple[Stop, ...]:
        return self._stops

    def get(self, stop_id: str) -> Optional[Stop]:
        return self._by_id.get(stop_id)

    def search(self, query: str, limit: Optional[int] = None) -> List[Stop]:
        """Case-insensitive substring match on stop names, capped and in load order"""
        needle = (query or '').strip().lower()
        if len(needle) < self.min_query_chars:
            return []
        cap = self.search_limit if limit is None else limit
        results = []
        for stop, name in zip(self._stops, self._lowered_names):
            if needle in name:
                results.append(stop)
                if len(results) >= cap:
                    break
        return results

    def find_exact(self, name: str) -> Optional[Stop]:
        """First stop whose name equals ``name`` ignoring case"""
        target = (name or '').strip().lower()
        if not target:
            return None
        for stop, lowered in zip(self._stops, self._lowered_names):
            if lowered == target:
                return stop
        return None

    def nearest_stops(self, lat: float, lon: float, radius_m: float = 1000.0,
                      limit: int = 5) -> List[Tuple[Stop, float]]:
        """Stops within ``radius_m`` metres, closest first, as (stop, distance_m) pairs"""
        if not self._stops:
            return []
        distances_m = vectorized_haversine(lat, lon, self._lats, self._lons) * 1000.0
        within = np.flatnonzero(distances_m <= radius_m)
        # stable sort keeps load order between equidistant stops
        ordered = within[np.argsort(distances_m[within], kind='stable')]
        return [(self._stops[i], float(distances_m[i])) for i in ordered[:limit]]

    def nearest_stop(self, lat: float, lon: float, radius_m: float = 1000.0) -> Optional[Tuple[Stop, float]]:
        found = self.nearest_stops(lat, lon, radius_m, limit=1)
        return found[0] if found else None
