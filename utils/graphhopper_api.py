import logging
import math
from typing import Optional, Sequence

import httpx

from routing.models import RouteCandidate
from utils.geo import Coordinate

logger = logging.getLogger(__name__)


class RoutingServiceError(Exception):
    """The routing service could not be reached or sent back something unusable."""


def build_route_params(points: Sequence[Coordinate], profile: str, api_key: str = "") -> list:
    """Query parameters for GraphHopper /route, one `point` per waypoint in order."""
    params = [("profile", profile),
              ("points_encoded", "false"),
              ("instructions", "false")]

    for lat, lon in points:
        params.append(("point", f"{lat},{lon}"))

    if api_key:
        params.append(("key", api_key))

    return params


def parse_route_response(data, points: Sequence[Coordinate] = ()) -> Optional[RouteCandidate]:
    """
    Turn a GraphHopper /route JSON body into a RouteCandidate.

    Returns None when the service found no path. GraphHopper sends coordinates
    as [lon, lat] (plus elevation when requested); they come back as (lat, lon).

    Raises:
        RoutingServiceError: the body is not a GraphHopper route response
    """
    if not isinstance(data, dict):
        raise RoutingServiceError(f"Unexpected response body of type {type(data).__name__}")

    paths = data.get("paths")
    if not paths:
        return None

    try:
        path = paths[0]
        coords = [Coordinate(float(c[1]), float(c[0])) for c in path["points"]["coordinates"]]
        distance_m = float(path["distance"])
        duration_s = float(path.get("time", 0)) / 1000
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise RoutingServiceError(f"Malformed route path: {e!r}") from e

    if not math.isfinite(distance_m) or distance_m < 0:
        raise RoutingServiceError(f"Route path has an unusable distance: {distance_m}")

    if len(coords) < 2:
        raise RoutingServiceError(f"Route path has {len(coords)} coordinate(s), need at least 2")

    return RouteCandidate(
        coordinates=tuple(coords),
        distance_m=distance_m,
        duration_s=duration_s,
        waypoints=tuple(Coordinate(*p) for p in points),
    )


async def fetch_graphhopper_route(client: httpx.AsyncClient,
                                  points: Sequence[Coordinate],
                                  host: str,
                                  api_key: str = "",
                                  profile: str = "foot") -> Optional[RouteCandidate]:
    """
    Fetch a route through ``points`` in order from a GraphHopper server.

    Args:
        client: HTTP client; its timeout bounds the request
        points: (lat, lon) waypoints, at least two
        host: base URL of the GraphHopper API
        api_key: sent as `key` when non-empty
        profile: routing profile (e.g. 'foot', 'bike', 'car')

    Returns:
        RouteCandidate, or None when GraphHopper found no path

    Raises:
        RoutingServiceError: network failure, timeout, non-2xx status or bad JSON
    """
    if len(points) < 2:
        raise ValueError("At least two points are required to fetch a route.")

    url = f"{host.rstrip('/')}/route"
    params = build_route_params(points, profile, api_key)
    logger.debug(f"[{profile}] GET {url} with {len(points)} points")

    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        raise RoutingServiceError(f"GraphHopper returned HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise RoutingServiceError(f"Error connecting to GraphHopper server: {e!r}") from e
    except ValueError as e:
        raise RoutingServiceError(f"GraphHopper response is not valid JSON: {e}") from e

    route = parse_route_response(data, points)
    if route is None:
        logger.info(f"[{profile}] No route found for given points.")
        return None

    logger.debug(
        f"[{profile}] Route fetched | Distance: {route.distance_m:.1f} m | "
        f"Time: {route.duration_s:.1f} s | Waypoints: {len(points)}"
    )
    return route
