#!/usr/bin/env python3
"""
Kommyut Routing - Flask Web API Blueprint
Direct-route search, fare estimates and trip tracking for the commuter app
"""

import math
import time
from typing import Optional

from flask import Blueprint, jsonify, request

from kommyutrouting.config import Config
from kommyutrouting.core_route_service import KommyutRouteService
from kommyutrouting.exceptions import (
    KommyutError,
    LocationNotResolvableError,
    MissingTripFieldsError,
    TripNotFoundError,
)
from kommyutrouting.logger import logger
from kommyutrouting.utils.geo_utils import haversine_distance, validate_coordinates

routing_bp = Blueprint('routing_bp', __name__)

NO_ROUTE_MESSAGE = 'No direct route found. Try different stops or consider transfers.'

# Global route service instance
route_service: Optional[KommyutRouteService] = None


def initialize_route_service(service: Optional[KommyutRouteService] = None,
                             config: Optional[Config] = None) -> KommyutRouteService:
    """Install ``service``, or build one from ``config`` (environment by default)"""
    global route_service
    try:
        route_service = service or KommyutRouteService.from_config(config or Config.from_env())
        logger.info("Kommyut route service initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize route service: {e}")
        raise
    return route_service


def clean_nan_values(obj):
    """Recursively clean NaN values from objects to make them JSON serializable"""
    if isinstance(obj, dict):
        return {k: clean_nan_values(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [clean_nan_values(item) for item in obj]
    elif isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
        return None
    else:
        return obj


def error_response(e: Exception):
    """Map core exceptions to HTTP status codes"""
    if isinstance(e, LocationNotResolvableError):
        return jsonify({'error': str(e), 'side': e.side, 'query': e.text}), 422
    if isinstance(e, MissingTripFieldsError):
        return jsonify({'error': str(e), 'missing': e.missing}), 400
    if isinstance(e, TripNotFoundError):
        return jsonify({'error': str(e)}), 404
    if isinstance(e, KommyutError):
        logger.error(f"Request failed: {e}")
        return jsonify({'error': str(e)}), 500
    logger.error(f"Unexpected error: {e}")
    return jsonify({'error': 'Internal server error'}), 500


def service_unavailable():
    return jsonify({'error': 'Route service not initialized'}), 500


@routing_bp.route('/routing/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    if route_service is None:
        return jsonify({'status': 'error', 'message': 'Route service not initialized'}), 500
    return jsonify({
        'status': 'healthy',
        'message': 'Kommyut Routing is running',
        'stops': len(route_service.stop_index),
        'timestamp': time.time()
    })


@routing_bp.route('/routing', methods=['GET'])
def index():
    """Root endpoint"""
    return jsonify({
        'name': 'Kommyut Routing',
        'version': '1.0.0',
        'description': 'Direct-route search and fare estimation for Metro Manila commuters',
        'endpoints': {
            'health': '/routing/health',
            'search_stops': '/routing/search-stops',
            'nearest_stops': '/routing/nearest-stops',
            'search': '/routing/search',
            'fare': '/routing/fare',
            'trips': '/routing/trips',
        }
    })


@routing_bp.route('/routing/search-stops', methods=['GET'])
def search_stops():
    """Search for stops by name"""
    if route_service is None:
        return service_unavailable()
    try:
        query = request.args.get('q', '').strip()
        stops = route_service.search_stops(query)
        return jsonify({'suggestions': [stop.to_dict() for stop in stops]})
    except Exception as e:
        return error_response(e)


@routing_bp.route('/routing/nearest-stops', methods=['GET'])
def nearest_stops():
    """Stops near a coordinate, closest first"""
    if route_service is None:
        return service_unavailable()
    try:
        lat = float(request.args['lat'])
        lon = float(request.args['lon'])
        radius = request.args.get('radius', type=float)
        limit = request.args.get('limit', type=int)
    except (KeyError, ValueError):
        return jsonify({'error': 'lat and lon are required numbers'}), 400
    if not validate_coordinates(lat, lon):
        return jsonify({'error': 'Invalid coordinates'}), 400
    try:
        return jsonify({'stops': clean_nan_values(route_service.nearest_stops(lat, lon, radius, limit))})
    except Exception as e:
        return error_response(e)


@routing_bp.route('/routing/search', methods=['GET', 'POST'])
def search():
    """Direct itineraries between two free-text locations.

    An empty ``from`` with ``use_current_location`` boards at the stop nearest
    the device position.
    """
    if route_service is None:
        return service_unavailable()
    if request.method == 'POST':
        data = request.get_json(silent=True) or {}
    else:
        data = request.args
    if not isinstance(data, dict) and request.method == 'POST':
        return jsonify({'error': 'Request body must be a JSON object'}), 400
    from_text = data.get('from') or ''
    to_text = data.get('to') or ''
    if not isinstance(from_text, str) or not isinstance(to_text, str):
        return jsonify({'error': 'from and to must be text'}), 400
    from_text, to_text = from_text.strip(), to_text.strip()
    if not to_text or (not from_text and not data.get('use_current_location')):
        return jsonify({'error': 'Both from and to locations are required'}), 400

    try:
        if from_text:
            candidates = route_service.search(from_text, to_text)
        else:
            candidates = route_service.search_from_current_location(to_text)
    except Exception as e:
        return error_response(e)

    response = {
        'routes': [candidate.to_dict() for candidate in candidates],
        'count': len(candidates),
    }
    if not candidates:
        response['message'] = NO_ROUTE_MESSAGE
    return jsonify(clean_nan_values(response))


@routing_bp.route('/routing/recent-searches', methods=['GET'])
def recent_searches():
    if route_service is None:
        return service_unavailable()
    return jsonify({'searches': route_service.recent_searches()})


@routing_bp.route('/routing/fare', methods=['POST'])
def fare():
    """Fare estimates for one ride between two known stops"""
    if route_service is None:
        return service_unavailable()
    data = request.get_json(silent=True) or {}
    origin = route_service.stop_index.get(str(data.get('origin_stop_id', '')))
    destination = route_service.stop_index.get(str(data.get('destination_stop_id', '')))
    if origin is None or destination is None:
        return jsonify({'error': 'Unknown origin or destination stop'}), 400
    try:
        route_type = int(data['route_type'])
        distance_km = data.get('distance_km')
        distance_km = float(distance_km) if distance_km is not None else None
    except (KeyError, TypeError, ValueError):
        return jsonify({'error': 'route_type is required and distance_km must be a number'}), 400
    if distance_km is not None and not math.isfinite(distance_km):
        return jsonify({'error': 'distance_km must be a finite number'}), 400

    if distance_km is None:
        distance_km = haversine_distance(origin.lat, origin.lon, destination.lat, destination.lon)

    estimates = route_service.estimate_fare(distance_km, route_type, origin, destination,
                                            str(data.get('route_id', '')))
    return jsonify(clean_nan_values({'estimates': [e.to_dict() for e in estimates], 'distance_km': distance_km}))


@routing_bp.route('/routing/trips', methods=['POST'])
def start_trip():
    """Start a trip"""
    if route_service is None:
        return service_unavailable()
    try:
        trip = route_service.start_trip(request.get_json(silent=True) or {})
        return jsonify({'trip': trip.to_dict()}), 201
    except Exception as e:
        return error_response(e)


@routing_bp.route('/routing/trips/<trip_id>/complete', methods=['PUT'])
def complete_trip(trip_id):
    """Complete an active trip and award points"""
    if route_service is None:
        return service_unavailable()
    try:
        trip = route_service.complete_trip(trip_id)
        return jsonify({
            'trip': trip.to_dict(),
            'points_awarded': route_service.config.points_per_trip,
        })
    except Exception as e:
        return error_response(e)


@routing_bp.route('/routing/trips/active/<user_id>', methods=['GET'])
def active_trips(user_id):
    if route_service is None:
        return service_unavailable()
    return jsonify({'trips': [t.to_dict() for t in route_service.active_trips(user_id)]})


@routing_bp.route('/routing/trips/completed/<user_id>', methods=['GET'])
def completed_trips(user_id):
    if route_service is None:
        return service_unavailable()
    limit = request.args.get('limit', 50, type=int)
    return jsonify({'trips': [t.to_dict() for t in route_service.completed_trips(user_id, limit)]})


@routing_bp.route('/routing/trips/stats/<user_id>', methods=['GET'])
def trip_stats(user_id):
    if route_service is None:
        return service_unavailable()
    return jsonify(route_service.trip_stats(user_id).to_dict())


@routing_bp.route('/routing/users/<user_id>/level', methods=['GET'])
def user_level(user_id):
    if route_service is None:
        return service_unavailable()
    return jsonify(route_service.user_level(user_id))
