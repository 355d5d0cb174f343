from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class TripStatus(str, Enum):
    ACTIVE = 'active'
    COMPLETED = 'completed'


@dataclass(frozen=True)
class UserTrip:
    """A journey a user started from an itinerary candidate"""
    id: str
    user_id: str
    from_location: str
    to_location: str
    transit_type: Optional[str] = None
    route_name: Optional[str] = None
    distance_km: Optional[float] = None
    fare_paid: Optional[float] = None
    status: TripStatus = TripStatus.ACTIVE
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == TripStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['status'] = self.status.value
        data['started_at'] = self.started_at.isoformat() if self.started_at else None
        data['completed_at'] = self.completed_at.isoformat() if self.completed_at else None
        return data


@dataclass(frozen=True)
class TripStats:
    total_trips: int = 0
    total_distance: float = 0.0
    total_spent: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
