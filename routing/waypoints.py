"""
Waypoint strategies for loop search.

A strategy takes the start point, the target loop length in meters, the
attempt index, the bearing chosen for that attempt and the search config, and
returns ``(radius_m, waypoints)``. The waypoints exclude the start point;
``closed_loop`` adds it at both ends.
"""
from typing import Callable, Dict, List, Tuple, Union

from utils.geo import Coordinate, destination_point, normalize_bearing

Strategy = Callable[..., Tuple[float, List[Coordinate]]]


def choose_bearing(rng, attempt: int, drift_deg: float) -> float:
    """Random bearing, pushed ``drift_deg`` further round for every retry."""
    return normalize_bearing(rng.random() * 360 + attempt * drift_deg)


def out_and_back(start: Coordinate, target_distance_m: float, attempt: int, bearing: float, config):
    radius_m = target_distance_m / 2
    return radius_m, [destination_point(start, radius_m, bearing)]


def triangle(start: Coordinate, target_distance_m: float, attempt: int, bearing: float, config):
    # routed paths are longer than the straight legs, so aim closer in each retry
    radius_m = config.radius_fraction * target_distance_m * (1 - attempt * config.radius_shrink_per_attempt)
    waypoints = [destination_point(start, radius_m, bearing + offset) for offset in (0, 120, 240)]
    return radius_m, waypoints


WAYPOINT_STRATEGIES: Dict[str, Strategy] = {
    "out-and-back": out_and_back,
    "triangle": triangle,
}


def get_strategy(strategy: Union[str, Strategy]) -> Strategy:
    if callable(strategy):
        return strategy
    try:
        return WAYPOINT_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown waypoint strategy '{strategy}', expected one of {sorted(WAYPOINT_STRATEGIES)}"
        ) from None


def closed_loop(start: Coordinate, waypoints: List[Coordinate]) -> List[Coordinate]:
    return [start, *waypoints, start]
