__title__ = 'kommyutrouting'
__version__ = '1.0.0'
__author__ = 'Kommyut Team'
__license__ = 'MIT'
__copyright__ = 'Copyright 2025 Kommyut Team'

__all__ = ['core_route_service', 'stop_index', 'connectivity', 'fares', 'geocoding', 'itinerary',
           'trip_session', 'config', 'logger', 'exceptions']

# Set default logging handler to avoid "No handler found" warnings.
import logging
from logging import NullHandler

logging.getLogger(__name__).addHandler(NullHandler())
