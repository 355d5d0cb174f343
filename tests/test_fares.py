import pandas as pd
import pytest

from kommyutrouting.data.fare_tables import DISTANCE_COLUMNS, FareTables
from kommyutrouting.exceptions import FareTableError
from kommyutrouting.fares import DistanceBandedFareTable, FareStrategySelector, StationPairFareLookup
from kommyutrouting.models.gtfs import Stop
from kommyutrouting.models.itinerary import Fare

BANDS = [
    {'distance': 5, 'regular': 13, 'discounted': 10},
    {'distance': 10, 'regular': 18, 'discounted': 14},
    {'distance': 15, 'regular': 23, 'discounted': 18},
    {'distance': 20, 'regular': 28, 'discounted': 22},
]


def stop(stop_id, name, lat=14.5, lon=121.0):
    return Stop(stop_id, name, lat, lon)


@pytest.fixture
def puj_table():
    tables = FareTables.from_records({'puj': BANDS})
    return DistanceBandedFareTable(tables.distance_table('puj'), 'puj')


class TestDistanceBandedFareTable:

    def test_uses_largest_band_not_above_distance(self, puj_table):
        assert puj_table.lookup(7) == Fare(13.0, 10.0)
        assert puj_table.lookup(10) == Fare(18.0, 14.0)
        assert puj_table.lookup(14.2) == Fare(23.0, 18.0)

    def test_beyond_last_band_is_unavailable(self, puj_table):
        fare = puj_table.lookup(25)
        assert not fare.is_available
        assert fare.display() == {'regular': 'N/A', 'discounted': 'N/A'}

    def test_last_band_still_covers_its_own_distance(self, puj_table):
        assert puj_table.lookup(19.3) == Fare(28.0, 22.0)

    def test_short_trip_pays_base_fare(self, puj_table):
        assert puj_table.lookup(0.3) == Fare(13.0, 10.0)
        assert puj_table.lookup(3.095) == Fare(13.0, 10.0)

    def test_missing_or_empty_table_is_unavailable(self):
        assert not DistanceBandedFareTable(None).lookup(3).is_available
        empty = pd.DataFrame(columns=DISTANCE_COLUMNS)
        assert not DistanceBandedFareTable(empty).lookup(3).is_available

    def test_missing_discount_column_is_derived(self):
        tables = FareTables.from_records({'puj': [{'distance': 5, 'regular': 15}]})
        assert DistanceBandedFareTable(tables.distance_table('puj')).lookup(2) == Fare(15.0, 12.0)

    def test_unsorted_rows_are_sorted(self):
        tables = FareTables.from_records({'puj': list(reversed(BANDS))})
        table = DistanceBandedFareTable(tables.distance_table('puj'))
        assert table.lookup(12) == Fare(18.0, 14.0)
        assert table.max_distance == 20.0

    def test_table_without_required_columns_is_rejected(self):
        with pytest.raises(FareTableError):
            FareTables.from_records({'puj': [{'km_band': 5, 'price': 13}]})


class TestStationPairFareLookup:

    @pytest.mark.parametrize("row, expected", [
        ({'sj_fare': 30, 'sv_fare': 28}, Fare(28.0, 30.0)),
        ({'sj_fare': 30, 'sv_fare': float('nan')}, Fare(30.0, 30.0)),
        ({'sj_fare': None, 'sv_fare': 28}, Fare(28.0, 28.0)),
        ({'fare': 28}, Fare(28.0, 22.0)),
        ({'fare': 'N/A'}, Fare.unavailable()),
        ({'price': 20}, Fare.unavailable()),
    ])
    def test_normalize_row_shapes(self, row, expected):
        assert StationPairFareLookup.normalize_row(row) == expected

    def test_matrix_pair_charges_stored_value_as_regular(self, manila_fares):
        lookup = StationPairFareLookup(manila_fares)
        assert lookup.lookup('lrt1', 'Baclaran LRT', 'Doroteo Jose LRT Station') == Fare(28.0, 30.0)
        assert lookup.lookup('lrt1', 'EDSA LRT', 'Baclaran LRT') == Fare(18.0, 20.0)

    def test_long_single_fare_table_derives_discount(self, manila_fares):
        lookup = StationPairFareLookup(manila_fares)
        assert lookup.lookup('mrt', 'Taft Avenue MRT-3', 'North Avenue MRT-3') == Fare(28.0, 22.0)

    def test_unknown_station_is_unavailable_and_logged(self, manila_fares, caplog):
        lookup = StationPairFareLookup(manila_fares)
        with caplog.at_level('WARNING', logger='kommyut'):
            fare = lookup.lookup('lrt1', 'Baclaran LRT', 'Monumento LRT')
        assert not fare.is_available
        assert 'monumento' in caplog.text

    def test_unknown_system_is_unavailable(self, manila_fares):
        lookup = StationPairFareLookup(manila_fares)
        assert not lookup.lookup('pnr', 'Tutuban', 'Calamba').is_available
        assert not lookup.lookup(None, 'Tutuban', 'Calamba').is_available


class TestFareStrategySelector:

    def test_jeepney_uses_puj_table(self, manila_fares):
        selector = FareStrategySelector(manila_fares)
        estimates = selector.estimate_fare(3.095, 700, stop('S1', 'Alpha'), stop('S2', 'Beta'), 'R_PUJ1')
        assert len(estimates) == 1
        assert estimates[0].mode_label == 'PUJ'
        assert estimates[0].description == 'Public Utility Jeepney'
        assert estimates[0].fare == Fare(13.0, 10.0)

    def test_bus_prefers_aircon_table(self, manila_fares):
        selector = FareStrategySelector(manila_fares)
        [estimate] = selector.estimate_fare(3.095, 3, stop('S1', 'Alpha'), stop('S2', 'Beta'), 'R_BUS1')
        assert estimate.mode_label == 'Bus (Aircon)'
        assert estimate.fare == Fare(15.0, 12.0)

    def test_bus_falls_back_to_ordinary_table(self, manila_fares):
        selector = FareStrategySelector(manila_fares)
        [estimate] = selector.estimate_fare(12.0, 3, stop('S1', 'Alpha'), stop('S2', 'Beta'), 'R_BUS1')
        assert estimate.mode_label == 'Bus (Ordinary)'
        assert estimate.fare == Fare(13.0, 10.0)

    def test_bus_beyond_both_tables_is_unavailable(self, manila_fares):
        selector = FareStrategySelector(manila_fares)
        [estimate] = selector.estimate_fare(40.0, 3, stop('S1', 'Alpha'), stop('S2', 'Beta'), 'R_BUS1')
        assert estimate.mode_label == 'Bus (Aircon)'
        assert not estimate.fare.is_available

    def test_rail_route_uses_station_pairs(self, manila_fares):
        selector = FareStrategySelector(manila_fares)
        [estimate] = selector.estimate_fare(
            8.0, 0, stop('LRT1_BAC', 'Baclaran LRT'), stop('LRT1_DJ', 'Doroteo Jose LRT Station'), 'LRT1_MAIN')
        assert estimate.mode_label == 'LRT-1'
        assert estimate.description == 'LRT-1 Transit'
        assert estimate.fare == Fare(28.0, 30.0)

    def test_feed_coded_rail_route_uses_its_line_table(self, manila_fares):
        selector = FareStrategySelector(manila_fares)
        [estimate] = selector.estimate_fare(
            13.0, 2, stop('X1', 'Taft Avenue'), stop('X2', 'North Avenue'), 'ROUTE_880854')
        assert estimate.mode_label == 'MRT-3'
        assert estimate.fare == Fare(28.0, 22.0)

    def test_generic_rail_infers_system_from_origin_stop(self, manila_fares):
        selector = FareStrategySelector(manila_fares)
        [estimate] = selector.estimate_fare(
            8.0, 0, stop('X1', 'Baclaran'), stop('X2', 'Doroteo Jose LRT Station'), 'METRO_LINE')
        assert estimate.mode_label == 'Rail'
        assert estimate.fare == Fare(28.0, 30.0)

    def test_generic_rail_without_hint_is_unavailable(self, manila_fares):
        selector = FareStrategySelector(manila_fares)
        [estimate] = selector.estimate_fare(8.0, 2, stop('X1', 'Quiapo'), stop('X2', 'Pandacan'), 'METRO_LINE')
        assert estimate.mode_label == 'Rail'
        assert not estimate.fare.is_available

    def test_internal_failure_returns_placeholder(self, manila_fares):
        class BrokenTables(FareTables):
            def distance_table(self, name):
                raise RuntimeError("fare store unreachable")

        selector = FareStrategySelector(BrokenTables())
        estimates = selector.estimate_fare(3.0, 700, stop('S1', 'Alpha'), stop('S2', 'Beta'), 'R_PUJ1')
        assert len(estimates) == 1
        assert estimates[0].mode_label == 'Unknown'
        assert estimates[0].description == 'Unable to calculate fare'
        assert estimates[0].to_dict()['fare'] == {'regular': 'N/A', 'discounted': 'N/A'}

    def test_scenario_fare(self, scenario_fares):
        selector = FareStrategySelector(scenario_fares)
        [estimate] = selector.estimate_fare(3.095, 700, stop('S1', 'A'), stop('S2', 'B', 14.52, 121.02), 'R1')
        assert estimate.fare.display() == {'regular': '₱13', 'discounted': '₱10'}


class TestFareTablesLoading:

    def test_loads_every_fixture_table(self, manila_fares):
        assert set(manila_fares.distance_tables) == {'puj', 'pub_aircon', 'pub_ordinary'}
        assert set(manila_fares.systems()) == {'lrt1', 'mrt'}
        assert manila_fares.max_distance('puj') == 20.0
        assert manila_fares.max_distance('pub_aircon') == 10.0
        assert manila_fares.max_distance('missing') is None

    def test_station_keys_are_normalized(self, manila_fares):
        assert manila_fares.knows_station('lrt1', 'doroteojose')
        assert manila_fares.lookup_station_fare('mrt', 'taftavenue', 'northavenue') == {'fare': 28}

    def test_missing_directory_loads_nothing(self, tmp_path):
        tables = FareTables.from_directory(str(tmp_path))
        assert tables.distance_tables == {}
        assert tables.systems() == []
