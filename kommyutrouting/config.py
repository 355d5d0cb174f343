"""
Configuration management for the Kommyut routing core
"""

import os
from dataclasses import dataclass, replace
from typing import Optional


DEFAULT_GEOCODER_URL = 'https://nominatim.openstreetmap.org/search'


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() == 'true'


@dataclass(frozen=True)
class Config:
    """Immutable configuration passed into the routing core"""

    # Data directories
    data_dir: str = 'data'
    fares_dir: str = os.path.join('data', 'fares')

    # Stop index
    stop_search_limit: int = 8
    stop_search_min_chars: int = 2

    # Location resolution
    snap_radius_m: float = 1000.0
    nearest_stop_limit: int = 5

    # Connectivity
    enforce_stop_order: bool = False

    # Fan-out
    fare_workers: int = 8

    # Trip session
    points_per_trip: int = 10
    recent_search_limit: int = 5
    timezone: str = 'Asia/Manila'

    # Geocoding
    geocoder_url: str = DEFAULT_GEOCODER_URL
    geocoder_user_agent: str = 'kommyut-routing/1.0'
    geocoder_country: str = 'ph'
    geocoder_timeout: float = 8.0

    # API configuration
    host: str = '0.0.0.0'
    port: int = 5001
    debug: bool = False

    # Logging
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'Config':
        """Build a configuration from environment variables"""
        data_dir = os.getenv('DATA_DIR', 'data')
        return cls(
            data_dir=data_dir,
            fares_dir=os.getenv('FARES_DIR', os.path.join(data_dir, 'fares')),
            stop_search_limit=int(os.getenv('STOP_SEARCH_LIMIT', '8')),
            stop_search_min_chars=int(os.getenv('STOP_SEARCH_MIN_CHARS', '2')),
            snap_radius_m=float(os.getenv('SNAP_RADIUS_M', '1000')),
            nearest_stop_limit=int(os.getenv('NEAREST_STOP_LIMIT', '5')),
            enforce_stop_order=_env_bool('ENFORCE_STOP_ORDER'),
            fare_workers=int(os.getenv('FARE_WORKERS', '8')),
            points_per_trip=int(os.getenv('POINTS_PER_TRIP', '10')),
            recent_search_limit=int(os.getenv('RECENT_SEARCH_LIMIT', '5')),
            timezone=os.getenv('TIMEZONE', 'Asia/Manila'),
            geocoder_url=os.getenv('GEOCODER_URL', DEFAULT_GEOCODER_URL),
            geocoder_user_agent=os.getenv('GEOCODER_USER_AGENT', 'kommyut-routing/1.0'),
            geocoder_country=os.getenv('GEOCODER_COUNTRY', 'ph'),
            geocoder_timeout=float(os.getenv('GEOCODER_TIMEOUT', '8')),
            host=os.getenv('HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', '5001')),
            debug=_env_bool('DEBUG'),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            log_file=os.getenv('LOG_FILE'),
        )

    def with_data_dir(self, data_dir: str) -> 'Config':
        """Return a copy pointing at another GTFS directory (fares live under it)"""
        return replace(self, data_dir=data_dir, fares_dir=os.path.join(data_dir, 'fares'))

    def validate(self):
        """Validate configuration"""
        if not os.path.exists(self.data_dir):
            raise ValueError(f"Data directory does not exist: {self.data_dir}")

        if self.snap_radius_m <= 0:
            raise ValueError("Snap radius must be positive")

        if self.stop_search_limit <= 0 or self.nearest_stop_limit <= 0:
            raise ValueError("Search limits must be positive")

        if self.fare_workers <= 0:
            raise ValueError("Fare worker count must be positive")

    def get_api_config(self) -> dict:
        """Get configuration for the Flask API"""
        return {
            'host': self.host,
            'port': self.port,
            'debug': self.debug
        }
