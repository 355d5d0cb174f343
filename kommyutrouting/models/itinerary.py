from dataclasses import dataclass
from typing import Any, Dict, Optional

from .gtfs import Route, Stop, Trip
from ..utils.fare_utils import format_distance, format_fare


@dataclass(frozen=True)
class Fare:
    """Regular/discounted fare pair; ``None`` means the fare is unavailable"""
    regular: Optional[float] = None
    discounted: Optional[float] = None

    @classmethod
    def unavailable(cls) -> 'Fare':
        return cls(None, None)

    @property
    def is_available(self) -> bool:
        return self.regular is not None

    def display(self) -> Dict[str, str]:
        return {
            'regular': format_fare(self.regular),
            'discounted': format_fare(self.discounted),
        }


@dataclass(frozen=True)
class FareEstimate:
    mode_label: str
    fare: Fare
    description: str
    mode_code: Optional[int] = None

    @classmethod
    def placeholder(cls, mode_code: Optional[int] = None) -> 'FareEstimate':
        """Single element returned when fare computation fails outright"""
        return cls('Unknown', Fare.unavailable(), 'Unable to calculate fare', mode_code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode_label,
            'fare': self.fare.display(),
            'description': self.description,
            'route_type': self.mode_code,
        }


@dataclass(frozen=True)
class ModeClassification:
    """Derived label deciding which fare strategy applies to a route"""
    label: str
    is_rail: bool
    rail_system: Optional[str] = None  # fare table key: lrt1, lrt2, mrt, pnr


@dataclass(frozen=True)
class ConnectingRoute:
    """A route serving both stops of a search, tagged with its mode"""
    route: Route
    mode: ModeClassification
    trip: Optional[Trip] = None

    @property
    def headsign(self) -> str:
        if self.trip and self.trip.headsign:
            return self.trip.headsign
        return self.route.long_name or self.route.short_name


@dataclass
class ItineraryCandidate:
    """One proposed direct ride between two resolved stops"""
    origin_stop: Stop
    destination_stop: Stop
    route: Route
    distance_km: float
    fare: Fare
    mode_label: str
    trip: Optional[Trip] = None
    fare_description: str = ''

    @property
    def distance_display(self) -> str:
        return format_distance(self.distance_km)

    @property
    def route_name(self) -> str:
        headsign = self.trip.headsign if self.trip and self.trip.headsign else self.mode_label
        return f"{self.route.display_name} ({headsign})"

    @property
    def summary(self) -> str:
        return f"{self.origin_stop.name} → {self.destination_stop.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary,
            'route_id': self.route.id,
            'route_name': self.route_name,
            'route_type': self.route.mode_code,
            'mode': self.mode_label,
            'fare': self.fare.display(),
            'fare_description': self.fare_description,
            'distance': self.distance_display,
            'distance_km': self.distance_km,
            'origin': self.origin_stop.to_dict(),
            'destination': self.destination_stop.to_dict(),
        }


__all__ = ['Fare', 'FareEstimate', 'ModeClassification', 'ConnectingRoute', 'ItineraryCandidate']
