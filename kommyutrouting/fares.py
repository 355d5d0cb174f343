"""
Fare estimation.

Road transit is priced from distance bands, rail from station-pair tables.
``FareStrategySelector.estimate_fare`` picks the strategy from the route's
mode and never raises: any failure becomes a single placeholder estimate.
"""

from typing import List, Optional

import pandas as pd

from .data.interfaces import FareTableProvider
from .logger import logger
from .models.gtfs import Stop
from .models.itinerary import Fare, FareEstimate
from .utils.fare_utils import derive_discounted, fare_distance_km, normalize_station_name, parse_fare
from .utils.mode_utils import classify_mode, infer_rail_system_from_stop

PUJ_MODE_CODE = 700
BUS_MODE_CODE = 3

PUJ_TABLE = 'puj'
BUS_AIRCON_TABLE = 'pub_aircon'
BUS_ORDINARY_TABLE = 'pub_ordinary'


class DistanceBandedFareTable:
    """Stepped fares by whole kilometers.

    Each band's ``distance`` is the largest trip length it prices. A trip is
    charged at the band with the largest distance not above the rounded trip
    length; trips shorter than the first band pay the first band (base fare),
    and trips beyond the last band are not covered.
    """

    def __init__(self, table: Optional[pd.DataFrame], name: str = ''):
        self.table = table
        self.name = name

    @property
    def max_distance(self) -> Optional[float]:
        if self.table is None or self.table.empty:
            return None
        return float(self.table['distance'].max())

    def lookup(self, distance_km: float) -> Fare:
        km = fare_distance_km(distance_km)
        max_distance = self.max_distance
        if max_distance is None or km > max_distance:
            logger.log_fare_lookup('distance', f"{self.name}:{km}km", False)
            return Fare.unavailable()

        eligible = self.table[self.table['distance'] <= km]
        row = eligible.iloc[-1] if not eligible.empty else self.table.iloc[0]
        regular = parse_fare(row['regular_fare'])
        if regular is None:
            logger.log_fare_lookup('distance', f"{self.name}:{km}km", False)
            return Fare.unavailable()
        discounted = parse_fare(row['discounted_fare'])
        if discounted is None:
            discounted = derive_discounted(regular)
        logger.log_fare_lookup('distance', f"{self.name}:{km}km", True)
        return Fare(regular, discounted)


class StationPairFareLookup:
    """Rail fares keyed by (system, normalized origin, normalized destination)"""

    def __init__(self, fare_tables: FareTableProvider):
        self.fare_tables = fare_tables

    def lookup(self, system: Optional[str], origin_name: str, destination_name: str) -> Fare:
        if not system:
            logger.warning(f"No rail system known for {origin_name!r} -> {destination_name!r}")
            return Fare.unavailable()

        from_key = normalize_station_name(origin_name)
        to_key = normalize_station_name(destination_name)
        row = self.fare_tables.lookup_station_fare(system, from_key, to_key)
        if row is None:
            # unmatched names are reported, never guessed
            logger.warning(f"No {system} fare for stations {from_key!r} -> {to_key!r} "
                           f"(from {origin_name!r} -> {destination_name!r})")
            logger.log_fare_lookup('station', f"{system}:{from_key}:{to_key}", False)
            return Fare.unavailable()

        fare = self.normalize_row(row)
        logger.log_fare_lookup('station', f"{system}:{from_key}:{to_key}", fare.is_available)
        return fare

    @staticmethod
    def normalize_row(row: dict) -> Fare:
        """Map either station fare shape onto a regular/discounted pair.

        ``{'sj_fare', 'sv_fare'}``: stored-value is regular, single-journey is
        discounted; a blank tier repeats the other one. ``{'fare'}``: one
        tariff, discounted derived at 80%.
        """
        if 'sj_fare' in row or 'sv_fare' in row:
            stored_value = parse_fare(row.get('sv_fare'))
            single_journey = parse_fare(row.get('sj_fare'))
            regular = stored_value if stored_value is not None else single_journey
            discounted = single_journey if single_journey is not None else regular
        elif 'fare' in row:
            regular = parse_fare(row.get('fare'))
            discounted = None
        else:
            logger.warning(f"Unrecognized station fare row: {row}")
            return Fare.unavailable()

        if regular is None:
            return Fare.unavailable()
        if discounted is None:
            discounted = derive_discounted(regular)
        return Fare(regular, discounted)


class FareStrategySelector:
    """Dispatches a route to the distance-banded or station-pair strategy"""

    def __init__(self, fare_tables: FareTableProvider):
        self.fare_tables = fare_tables
        self.station_lookup = StationPairFareLookup(fare_tables)

    def distance_fare(self, table_name: str, distance_km: float) -> Fare:
        return DistanceBandedFareTable(self.fare_tables.distance_table(table_name), table_name).lookup(distance_km)

    def estimate_fare(self, distance_km: float, mode_code: int, origin_stop: Stop,
                      destination_stop: Stop, route_id: str = '') -> List[FareEstimate]:
        """
        Fare estimates for one ride.

        Args:
            distance_km: Trip length in kilometers
            mode_code: GTFS route_type of the route
            origin_stop: Boarding stop
            destination_stop: Alighting stop
            route_id: Route identifier, used to tell rail lines apart

        Returns:
            At least one estimate; a single "Unable to calculate fare"
            placeholder when anything goes wrong
        """
        try:
            return self._estimate(distance_km, mode_code, origin_stop, destination_stop, route_id)
        except Exception as e:
            logger.warning(f"Fare estimation failed for route {route_id} "
                           f"({origin_stop.id} -> {destination_stop.id}, {distance_km:.2f} km): {e}")
            return [FareEstimate.placeholder(mode_code)]

    def _estimate(self, distance_km: float, mode_code: int, origin_stop: Stop,
                  destination_stop: Stop, route_id: str) -> List[FareEstimate]:
        mode = classify_mode(mode_code, route_id)

        if mode.is_rail:
            system = mode.rail_system or infer_rail_system_from_stop(origin_stop.id, origin_stop.name)
            fare = self.station_lookup.lookup(system, origin_stop.name, destination_stop.name)
            return [FareEstimate(mode.label, fare, f"{mode.label} Transit", mode_code)]

        if int(mode_code) == BUS_MODE_CODE:
            fare = self.distance_fare(BUS_AIRCON_TABLE, distance_km)
            if fare.is_available:
                return [FareEstimate('Bus (Aircon)', fare, 'Public Utility Bus (Aircon)', mode_code)]
            ordinary = self.distance_fare(BUS_ORDINARY_TABLE, distance_km)
            if ordinary.is_available:
                return [FareEstimate('Bus (Ordinary)', ordinary, 'Public Utility Bus (Ordinary)', mode_code)]
            return [FareEstimate('Bus (Aircon)', fare, 'Public Utility Bus (Aircon)', mode_code)]

        fare = self.distance_fare(PUJ_TABLE, distance_km)
        return [FareEstimate('PUJ', fare, 'Public Utility Jeepney', mode_code)]
