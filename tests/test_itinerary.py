import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from kommyutrouting.data.stores import InMemoryKeyValueStore, StaticLocationProvider
from kommyutrouting.exceptions import LocationNotResolvableError
from kommyutrouting.fares import FareStrategySelector
from kommyutrouting.itinerary import ItineraryAssembler
from kommyutrouting.models.gtfs import Stop
from kommyutrouting.models.itinerary import Fare
from kommyutrouting.utils.geo_utils import haversine_distance
from kommyutrouting.utils.mode_utils import ROAD_TRANSIT_LABEL


class FailingForRoute(FareStrategySelector):
    """Raises for one route id, prices the rest normally"""

    def __init__(self, fare_tables, failing_route_id):
        super().__init__(fare_tables)
        self.failing_route_id = failing_route_id

    def estimate_fare(self, distance_km, mode_code, origin_stop, destination_stop, route_id=''):
        if route_id == self.failing_route_id:
            raise RuntimeError("fare service timed out")
        return super().estimate_fare(distance_km, mode_code, origin_stop, destination_stop, route_id)


def test_concrete_scenario(scenario_service):
    candidates = scenario_service.search('A', 'B')

    assert len(candidates) == 1
    [candidate] = candidates
    assert candidate.origin_stop.id == 'S1'
    assert candidate.destination_stop.id == 'S2'
    assert candidate.fare == Fare(13.0, 10.0)
    assert candidate.mode_label == ROAD_TRANSIT_LABEL
    assert candidate.distance_km == pytest.approx(haversine_distance(14.5, 121.0, 14.52, 121.02))
    assert candidate.distance_km == pytest.approx(3.095, abs=0.005)
    assert candidate.distance_display == '3.10 km'


def test_candidate_display_fields(scenario_service):
    [candidate] = scenario_service.search('A', 'B')
    data = candidate.to_dict()
    assert data['summary'] == 'A → B'
    assert data['route_name'] == 'A - B (B)'
    assert data['fare'] == {'regular': '₱13', 'discounted': '₱10'}
    assert data['distance'] == '3.10 km'


def test_one_candidate_per_connecting_route_in_resolver_order(service):
    candidates = service.search('Alpha Terminal', 'Beta Market')
    assert [c.route.id for c in candidates] == ['R_PUJ1', 'R_BUS1']
    assert candidates[0].fare == Fare(13.0, 10.0)
    assert candidates[1].fare == Fare(15.0, 12.0)
    assert candidates[1].fare_description == 'Public Utility Bus (Aircon)'
    assert candidates[0].distance_km == candidates[1].distance_km


def test_rail_candidate_uses_station_fares(service):
    [candidate] = service.search('Baclaran LRT', 'Doroteo Jose LRT Station')
    assert candidate.mode_label == 'LRT-1'
    assert candidate.fare == Fare(28.0, 30.0)
    assert candidate.route_name == 'LRT Line 1 (Roosevelt)'


def test_failing_fare_task_only_degrades_its_candidate(service, manila_fares):
    service.assembler.fare_selector = FailingForRoute(manila_fares, 'R_PUJ1')

    candidates = service.search('Alpha Terminal', 'Beta Market')

    assert len(candidates) == 2
    failed, priced = candidates
    assert failed.route.id == 'R_PUJ1'
    assert not failed.fare.is_available
    assert failed.fare.display() == {'regular': 'N/A', 'discounted': 'N/A'}
    assert failed.fare_description == 'Unable to calculate fare'
    assert priced.fare == Fare(15.0, 12.0)


def test_unconnected_stops_return_empty_list(service):
    assert service.search('Alpha Terminal', 'Delta Depot') == []


def test_connectivity_failure_returns_empty_list(service):
    class Unreachable:
        def find_routes(self, from_stop_id, to_stop_id):
            raise ConnectionError("database unreachable")

    service.assembler.connectivity = Unreachable()
    assert service.search('Alpha Terminal', 'Beta Market') == []


def test_unresolvable_destination_is_signalled(service):
    with pytest.raises(LocationNotResolvableError) as exc:
        service.search('Alpha Terminal', 'Atlantis')
    assert exc.value.side == 'destination'


def test_recent_searches_keep_newest_five(service):
    pairs = [('S1', 'S2'), ('S1', 'S3'), ('S2', 'S3'), ('S2', 'S1'), ('S3', 'S1'), ('S3', 'S2')]
    for origin, destination in pairs:
        service.search(origin, destination)

    recent = service.recent_searches()
    assert len(recent) == 5
    assert (recent[0]['from'], recent[0]['to']) == ('S3', 'S2')
    assert ('S1', 'S2') not in [(r['from'], r['to']) for r in recent]


def test_repeated_search_moves_to_front_without_duplicating(service):
    service.search('S1', 'S2')
    service.search('S2', 'S3')
    service.search('Alpha Terminal', 'Beta Market')

    recent = service.recent_searches()
    assert [(r['origin_stop_id'], r['destination_stop_id']) for r in recent] == [('S1', 'S2'), ('S2', 'S3')]
    assert recent[0]['from'] == 'Alpha Terminal'


class SlowKeyValueStore(InMemoryKeyValueStore):
    """Widens the gap between reading and writing the recent list"""

    def get(self, key, default=None):
        value = super().get(key, default)
        time.sleep(0.01)
        return value


def test_concurrent_searches_are_all_remembered():
    assembler = ItineraryAssembler(None, None, None, kv_store=SlowKeyValueStore(), recent_search_limit=20)
    pairs = [(Stop(f"O{i}", f"Origin {i}", 14.5, 121.0), Stop(f"D{i}", f"Dest {i}", 14.6, 121.1)) for i in range(10)]

    with ThreadPoolExecutor(max_workers=10) as executor:
        for origin, destination in pairs:
            executor.submit(assembler._remember_search, origin.name, destination.name, origin, destination)

    remembered = {r['origin_stop_id'] for r in assembler.recent_searches()}
    assert remembered == {origin.id for origin, _ in pairs}


def test_search_from_current_location(service):
    assembler = ItineraryAssembler(
        service.locations, service.connectivity, service.fare_selector,
        kv_store=InMemoryKeyValueStore(),
        location_provider=StaticLocationProvider((14.5003, 121.0003)),
    )
    candidates = assembler.search_from_current_location('Gamma Plaza')
    assert [c.route.id for c in candidates] == ['R_PUJ1']
    assert candidates[0].origin_stop.id == 'S1'


def test_search_from_current_location_without_position(service):
    assembler = ItineraryAssembler(
        service.locations, service.connectivity, service.fare_selector,
        location_provider=StaticLocationProvider(None),
    )
    with pytest.raises(LocationNotResolvableError):
        assembler.search_from_current_location('Gamma Plaza')
