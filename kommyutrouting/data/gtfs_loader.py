"""
GTFS reference data loaded with pandas into an immutable per-session snapshot
"""

import os
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .interfaces import ReferenceDataProvider
from ..exceptions import GTFSDataError
from ..graph.graph_builder import (
    build_route_stop_graph,
    connecting_route_ids,
    representative_trip_id,
)
from ..logger import logger
from ..models.gtfs import Route, Stop, Trip

REQUIRED_COLUMNS = {
    'stops': ['stop_id', 'stop_name', 'stop_lat', 'stop_lon'],
    'routes': ['route_id', 'route_type'],
    'trips': ['route_id', 'trip_id'],
    'stop_times': ['trip_id', 'stop_id', 'stop_sequence'],
}


def _text(value, default: str = '') -> str:
    if value is None or (isinstance(value, float) and pd.isnull(value)):
        return default
    return str(value)


def _optional_text(value) -> Optional[str]:
    text = _text(value)
    return text or None


def _check_columns(name: str, df: pd.DataFrame):
    missing = [c for c in REQUIRED_COLUMNS[name] if c not in df.columns]
    if missing:
        raise GTFSDataError(f"{name}.txt is missing columns: {', '.join(missing)}")


class GTFSFeed(ReferenceDataProvider):
    """Stops, routes and trip patterns of one GTFS feed.

    Load order is kept: stops and routes come back in file order, which is
    what the stop search uses to break ties.
    """

    def __init__(self, stops: List[Stop], routes: List[Route], trips: List[Trip],
                 trip_patterns: Dict[str, List[str]]):
        self.stops = stops
        self.routes = routes
        self.routes_by_id: Dict[str, Route] = {r.id: r for r in routes}
        self.trips: Dict[str, Trip] = {t.trip_id: t for t in trips}
        self.trip_patterns = trip_patterns
        trip_routes = {t.trip_id: t.route_id for t in trips}
        self.graph = build_route_stop_graph([r.id for r in routes], trip_routes, trip_patterns, logger)
        self._first_trip_by_route: Dict[str, Trip] = {}
        for trip in trips:
            self._first_trip_by_route.setdefault(trip.route_id, trip)

    @classmethod
    def from_directory(cls, data_dir: str) -> 'GTFSFeed':
        """Load stops.txt, routes.txt, trips.txt and stop_times.txt from ``data_dir``"""
        logger.info(f"Loading GTFS data from {data_dir}...")
        frames = {}
        for name in REQUIRED_COLUMNS:
            path = os.path.join(data_dir, f"{name}.txt")
            try:
                frames[name] = pd.read_csv(path, dtype={'stop_id': str, 'route_id': str, 'trip_id': str})
            except FileNotFoundError as e:
                raise GTFSDataError(f"Missing GTFS file: {path}") from e
            except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
                raise GTFSDataError(f"Failed to load {path}: {e}") from e
        return cls.from_frames(frames['stops'], frames['routes'], frames['trips'], frames['stop_times'])

    @classmethod
    def from_frames(cls, stops_df: pd.DataFrame, routes_df: pd.DataFrame, trips_df: pd.DataFrame,
                    stop_times_df: pd.DataFrame) -> 'GTFSFeed':
        for name, df in (('stops', stops_df), ('routes', routes_df), ('trips', trips_df),
                         ('stop_times', stop_times_df)):
            _check_columns(name, df)

        stops: List[Stop] = []
        seen_stops = set()
        for _, row in stops_df.iterrows():
            if pd.isnull(row['stop_id']) or pd.isnull(row['stop_lat']) or pd.isnull(row['stop_lon']):
                logger.warning(f"Invalid stop row: {row.to_dict()}")
                continue
            try:
                lat, lon = float(row['stop_lat']), float(row['stop_lon'])
            except (TypeError, ValueError):
                logger.warning(f"Unparseable coordinates for stop {row['stop_id']}")
                continue
            stop_id = _text(row['stop_id'])
            if stop_id in seen_stops:
                logger.warning(f"Duplicate stop id {stop_id} ignored")
                continue
            seen_stops.add(stop_id)
            stops.append(Stop(
                id=stop_id,
                name=_text(row['stop_name']),
                lat=lat,
                lon=lon,
                city=_optional_text(row.get('city')),
            ))

        routes: List[Route] = []
        for _, row in routes_df.iterrows():
            if pd.isnull(row['route_id']) or pd.isnull(row['route_type']):
                logger.warning(f"Invalid route row: {row.to_dict()}")
                continue
            routes.append(Route(
                id=_text(row['route_id']),
                short_name=_text(row.get('route_short_name')),
                long_name=_text(row.get('route_long_name')),
                mode_code=int(row['route_type']),
                agency_id=_optional_text(row.get('agency_id')),
            ))

        trips: List[Trip] = []
        for _, row in trips_df.iterrows():
            if pd.isnull(row['trip_id']) or pd.isnull(row['route_id']):
                continue
            trips.append(Trip(
                trip_id=_text(row['trip_id']),
                route_id=_text(row['route_id']),
                headsign=_text(row.get('trip_headsign')),
            ))

        # arrival and departure times are not needed, only the stop pattern
        stop_times = stop_times_df.dropna(subset=['trip_id', 'stop_id', 'stop_sequence'])
        stop_times = stop_times.astype({'trip_id': str, 'stop_id': str})
        stop_times = stop_times.sort_values(['trip_id', 'stop_sequence'])
        trip_patterns = {
            trip_id: group['stop_id'].tolist()
            for trip_id, group in stop_times.groupby('trip_id', sort=False)
        }

        logger.info(f"Loaded {len(stops)} stops, {len(routes)} routes, {len(trips)} trips, "
                    f"{len(stop_times)} stop times")
        return cls(stops, routes, trips, trip_patterns)

    def get_all_stops(self) -> List[Stop]:
        return list(self.stops)

    def get_all_routes(self) -> List[Route]:
        return list(self.routes)

    def find_connecting_routes(self, from_stop_id: str, to_stop_id: str,
                               enforce_order: bool = False) -> List[Tuple[Route, Optional[Trip]]]:
        results = []
        for route_id in connecting_route_ids(self.graph, from_stop_id, to_stop_id):
            trip_id = representative_trip_id(self.graph, route_id, from_stop_id, to_stop_id, enforce_order)
            if enforce_order and trip_id is None:
                continue
            trip = self.trips.get(trip_id) if trip_id else self._first_trip_by_route.get(route_id)
            results.append((self.routes_by_id[route_id], trip))
        return results
