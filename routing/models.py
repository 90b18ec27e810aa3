from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from utils.geo import Coordinate


class AttemptOutcome(str, Enum):
    ACCEPTED = "accepted"
    TOLERANCE_MISS = "tolerance_miss"
    NO_ROUTE = "no_route"
    TRANSPORT_FAILURE = "transport_failure"


class SearchStatus(str, Enum):
    ACCEPTED = "accepted"
    BEST_EFFORT = "best_effort"
    EMPTY = "empty"


@dataclass(frozen=True)
class RouteCandidate:
    """A walkable loop returned by the routing service."""

    coordinates: Tuple[Coordinate, ...]  # (lat, lon), start to start
    distance_m: float
    duration_s: float = 0.0
    waypoints: Tuple[Coordinate, ...] = ()  # the closed point sequence that was requested

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000


@dataclass(frozen=True)
class SearchAttempt:
    index: int
    bearing: float
    radius_m: float
    waypoints: Tuple[Coordinate, ...]
    outcome: AttemptOutcome
    candidate: Optional[RouteCandidate] = None


@dataclass(frozen=True)
class SearchResult:
    """
    Outcome of one loop search.

    ``route`` is the accepted candidate, the closest candidate seen when no
    attempt landed within tolerance, or None when every attempt failed.
    """

    status: SearchStatus
    route: Optional[RouteCandidate]
    target_distance_km: float
    attempts: Tuple[SearchAttempt, ...] = ()
    cancelled: bool = False

    @property
    def coordinates(self) -> Tuple[Coordinate, ...]:
        return self.route.coordinates if self.route else ()

    @property
    def error_km(self) -> Optional[float]:
        if self.route is None:
            return None
        return abs(self.route.distance_km - self.target_distance_km)
