"""
Route connectivity: which routes serve both stops of a search
"""

from typing import List

from .data.interfaces import ReferenceDataProvider
from .logger import logger
from .models.itinerary import ConnectingRoute
from .utils.mode_utils import classify_mode


class RouteConnectivityResolver:
    """Finds direct routes between two stops and tags each with its mode.

    By default a route qualifies when both stops appear anywhere in its stop
    pattern, so a route running the other way is still offered. Set
    ``enforce_order`` to only keep routes with a trip that reaches the
    boarding stop first.
    """

    def __init__(self, reference_data: ReferenceDataProvider, enforce_order: bool = False):
        self.reference_data = reference_data
        self.enforce_order = enforce_order

    def find_routes(self, from_stop_id: str, to_stop_id: str) -> List[ConnectingRoute]:
        """Connecting routes in provider order; an empty list means no direct route"""
        raw = self.reference_data.find_connecting_routes(from_stop_id, to_stop_id, self.enforce_order)
        routes = [
            ConnectingRoute(route=route, mode=classify_mode(route.mode_code, route.id), trip=trip)
            for route, trip in raw
        ]
        logger.debug(f"Connectivity {from_stop_id} -> {to_stop_id}: {len(routes)} routes")
        return routes
