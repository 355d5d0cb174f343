"""
Custom exceptions for the Kommyut routing core
"""


class KommyutError(Exception):
    """Base exception for the Kommyut routing core"""
    pass


class GTFSDataError(KommyutError):
    """Raised when GTFS reference data cannot be loaded"""
    pass


class FareTableError(KommyutError):
    """Raised when a fare table is missing or malformed"""
    pass


class APIError(KommyutError):
    """Raised when external API calls fail"""
    pass


class LocationNotResolvableError(KommyutError):
    """Raised when free text matches neither a stop nor a geocoded address near a stop"""

    def __init__(self, text: str, side: str = 'origin', reason: str = ''):
        self.text = text
        self.side = side
        self.reason = reason
        message = f"Could not resolve {side} location '{text}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TripNotFoundError(KommyutError):
    """Raised when completing a trip that does not exist or is no longer active"""

    def __init__(self, trip_id: str):
        self.trip_id = trip_id
        super().__init__('Trip not found or already completed')


class MissingTripFieldsError(KommyutError):
    """Raised when a trip is started without a user or both locations"""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing required fields: {', '.join(self.missing)}")
