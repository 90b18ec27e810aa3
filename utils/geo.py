import math
from typing import NamedTuple

EARTH_RADIUS_M = 6371000


class Coordinate(NamedTuple):
    """A (lat, lon) position in decimal degrees."""

    lat: float
    lon: float


def validate_coordinate(coord) -> Coordinate:
    """Return ``coord`` as a Coordinate, raising ValueError if it is off the globe."""
    lat, lon = float(coord[0]), float(coord[1])
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValueError(f"Coordinate must be finite, got ({lat}, {lon})")
    if not -90 <= lat <= 90:
        raise ValueError(f"Latitude {lat} outside [-90, 90]")
    if not -180 <= lon <= 180:
        raise ValueError(f"Longitude {lon} outside [-180, 180]")
    return Coordinate(lat, lon)


def normalize_bearing(bearing_deg: float) -> float:
    """Map any bearing onto [0, 360)."""
    bearing = bearing_deg % 360.0
    # -1e-17 % 360 rounds up to 360.0
    return 0.0 if bearing == 360.0 else bearing


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180]."""
    if -180.0 <= lon <= 180.0:
        return lon
    return (lon + 180.0) % 360.0 - 180.0


def haversine_distance(coord1, coord2) -> float:
    """Return distance in meters between two (lat, lon) coordinates."""
    lat1, lon1 = map(math.radians, coord1)
    lat2, lon2 = map(math.radians, coord2)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def destination_point(origin, distance_m: float, bearing_deg: float) -> Coordinate:
    """
    Point reached by travelling ``distance_m`` meters from ``origin`` along the
    great circle leaving it at ``bearing_deg`` (0 = north, clockwise).

    Spherical earth of radius EARTH_RADIUS_M. Inputs must be finite.
    """
    delta = distance_m / EARTH_RADIUS_M
    theta = math.radians(normalize_bearing(bearing_deg))
    phi1 = math.radians(origin[0])
    lambda1 = math.radians(origin[1])

    sin_phi2 = math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    # rounding can push the sine a hair past 1 near the poles
    phi2 = math.asin(max(-1.0, min(1.0, sin_phi2)))
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )

    return Coordinate(math.degrees(phi2), normalize_longitude(math.degrees(lambda2)))
