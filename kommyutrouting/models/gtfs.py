from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Stop:
    """A named boarding/alighting point; identity is ``id``"""
    id: str
    name: str
    lat: float
    lon: float
    city: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'lat': self.lat,
            'lon': self.lon,
            'city': self.city,
        }


@dataclass(frozen=True)
class Route:
    """A transit service; ``mode_code`` is the raw GTFS route_type"""
    id: str
    short_name: str
    long_name: str
    mode_code: int
    agency_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.long_name or self.short_name or self.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'short_name': self.short_name,
            'long_name': self.long_name,
            'mode_code': self.mode_code,
            'agency_id': self.agency_id,
        }


@dataclass(frozen=True)
class Trip:
    """Connectivity record, only used for its direction label"""
    trip_id: str
    route_id: str
    headsign: str = ''
