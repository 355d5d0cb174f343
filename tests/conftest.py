"""Pytest configuration and fixtures."""

from pathlib import Path

import pandas as pd
import pytest

from kommyutrouting.config import Config
from kommyutrouting.core_route_service import KommyutRouteService
from kommyutrouting.data.fare_tables import FareTables
from kommyutrouting.data.gtfs_loader import GTFSFeed
from kommyutrouting.data.interfaces import AddressResolver


class StubGeocoder(AddressResolver):
    """Returns canned places and records every query"""

    def __init__(self, places=None, error=None):
        self.places = list(places or [])
        self.error = error
        self.queries = []

    def geocode(self, text):
        self.queries.append(text)
        if self.error is not None:
            raise self.error
        return list(self.places)


@pytest.fixture
def manila_dir() -> Path:
    """Path to the small Metro Manila GTFS fixture."""
    return Path(__file__).parent / "fixtures" / "manila"


@pytest.fixture
def manila_config(manila_dir) -> Config:
    return Config().with_data_dir(str(manila_dir))


@pytest.fixture
def manila_feed(manila_dir) -> GTFSFeed:
    return GTFSFeed.from_directory(str(manila_dir))


@pytest.fixture
def manila_fares(manila_dir) -> FareTables:
    return FareTables.from_directory(str(manila_dir / "fares"))


@pytest.fixture
def stub_geocoder() -> StubGeocoder:
    return StubGeocoder()


@pytest.fixture
def make_geocoder():
    """Factory for geocoders with canned results or a canned error."""
    return StubGeocoder


@pytest.fixture
def service(manila_feed, manila_fares, manila_config, stub_geocoder) -> KommyutRouteService:
    return KommyutRouteService(manila_feed, manila_fares, manila_config, address_resolver=stub_geocoder)


def build_feed(stops, routes, trips, stop_times) -> GTFSFeed:
    return GTFSFeed.from_frames(
        pd.DataFrame(stops, columns=['stop_id', 'stop_name', 'stop_lat', 'stop_lon']),
        pd.DataFrame(routes, columns=['route_id', 'route_short_name', 'route_long_name', 'route_type']),
        pd.DataFrame(trips, columns=['route_id', 'trip_id', 'trip_headsign']),
        pd.DataFrame(stop_times, columns=['trip_id', 'stop_id', 'stop_sequence']),
    )


@pytest.fixture
def scenario_feed() -> GTFSFeed:
    """Two stops ~3.1 km apart joined by one jeepney route."""
    return build_feed(
        stops=[('S1', 'A', 14.5, 121.0), ('S2', 'B', 14.52, 121.02)],
        routes=[('R1', '1', 'A - B', 700)],
        trips=[('R1', 'T1', 'B')],
        stop_times=[('T1', 'S1', 1), ('T1', 'S2', 2)],
    )


@pytest.fixture
def scenario_fares() -> FareTables:
    return FareTables.from_records({'puj': [{'distance': 5, 'regular': 13, 'discounted': 10}]})


@pytest.fixture
def scenario_service(scenario_feed, scenario_fares) -> KommyutRouteService:
    return KommyutRouteService(scenario_feed, scenario_fares, Config())
