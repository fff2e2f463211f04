import math
from typing import NamedTuple

from src.exceptions import InvalidRequestError

EARTH_RADIUS_KM = 6371.0

class GeoPoint(NamedTuple):
    lat: float
    lng: float

def validate_coordinate(point: GeoPoint) -> GeoPoint:
    """Reject NaN, infinite or out-of-range coordinates before any distance math"""
    lat, lng = point
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidRequestError("Pickup coordinates must be finite numbers")
    if not -90.0 <= lat <= 90.0:
        raise InvalidRequestError("Pickup latitude must be between -90 and 90")
    if not -180.0 <= lng <= 180.0:
        raise InvalidRequestError("Pickup longitude must be between -180 and 180")
    return point

def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometers"""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    delta_lat = math.radians(b.lat - a.lat)
    delta_lng = math.radians(b.lng - a.lng)

    h = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lng / 2) ** 2
    )
    # Rounding can push h a hair above 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(h, 1.0)))

def is_within_radius(point: GeoPoint, center: GeoPoint, max_km: float) -> bool:
    """True when point lies inside the pickup zone; the boundary itself is inside"""
    return haversine_distance(point, center) <= max_km
