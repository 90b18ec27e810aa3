from typing import Optional, Sequence, Tuple

GMAPS_DIRECTIONS_URL = "https://www.google.com/maps/dir/?api=1"

# GraphHopper profile -> Google Maps travel mode
TRAVEL_MODES = {"car": "driving", "bike": "bicycling", "foot": "walking"}


def gmaps_travel_mode(profile: str) -> Optional[str]:
    """Google Maps travel mode for a GraphHopper profile, None when it has none (e.g. ``hike``)."""
    return TRAVEL_MODES.get(profile)


def _lat_lon(point: Tuple[float, float]) -> str:
    lat, lon = point
    return f"{lat},{lon}"


def generate_gmaps_route_url(points: Sequence[Tuple[float, float]], profile: str) -> str:
    """
    Directions link visiting ``points`` in order. The first point is the
    origin, the last the destination, anything between becomes a waypoint.
    """
    mode = gmaps_travel_mode(profile)
    if mode is None:
        raise ValueError(f"Unsupported profile '{profile}'")
    if len(points) < 2:
        raise ValueError("A directions link needs an origin and a destination")

    query = [("origin", _lat_lon(points[0])), ("destination", _lat_lon(points[-1]))]
    if len(points) > 2:
        query.append(("waypoints", "|".join(_lat_lon(p) for p in points[1:-1])))
    query += [("travelmode", mode), ("dir_action", "navigate")]
    if mode != "driving":
        query.append(("avoid", "highways"))

    return GMAPS_DIRECTIONS_URL + "".join(f"&{key}={value}" for key, value in query)
