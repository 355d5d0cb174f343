import math

import numpy as np

EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate haversine distance between two points in kilometers"""
    R = EARTH_RADIUS_KM
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)
    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad
    a = (math.sin(dlat/2)**2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon/2)**2)
    c = 2 * math.asin(math.sqrt(min(a, 1.0)))
    return R * c


def vectorized_haversine(lat1, lon1, lat2, lon2):
    """Vectorized haversine distance in kilometers using numpy (arrays broadcast)"""
    lat1, lon1, lat2, lon2 = map(np.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = np.sin(dlat/2)**2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon/2)**2
    c = 2 * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))

    return EARTH_RADIUS_KM * c


def path_distance(points) -> float:
    """Sum of great-circle legs along a sequence of (lat, lon) points, in kilometers"""
    total = 0.0
    for (lat1, lon1), (lat2, lon2) in zip(points, points[1:]):
        total += haversine_distance(lat1, lon1, lat2, lon2)
    return total


def validate_coordinates(lat: float, lon: float) -> bool:
    """Validate coordinate bounds"""
    return -90 <= lat <= 90 and -180 <= lon <= 180
