import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

import config
from routing.models import (
    AttemptOutcome,
    RouteCandidate,
    SearchAttempt,
    SearchResult,
    SearchStatus,
)
from routing.waypoints import Strategy, choose_bearing, closed_loop, get_strategy, triangle
from utils.geo import Coordinate, validate_coordinate
from utils.graphhopper_api import RoutingServiceError

logger = logging.getLogger(__name__)

RouteFetcher = Callable[[Sequence[Coordinate]], Awaitable[Optional[RouteCandidate]]]


class SearchConfig(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tolerance_fraction: float = Field(config.TOLERANCE_FRACTION, ge=0, lt=1)
    max_attempts: int = Field(config.MAX_ATTEMPTS, ge=1)
    inter_attempt_delay_s: float = Field(config.INTER_ATTEMPT_DELAY_S, ge=0)
    waypoint_strategy: Union[str, Callable] = config.WAYPOINT_STRATEGY
    radius_fraction: float = Field(config.RADIUS_FRACTION, gt=0)
    radius_shrink_per_attempt: float = Field(config.RADIUS_SHRINK_PER_ATTEMPT, ge=0)
    bearing_drift_deg: float = config.BEARING_DRIFT_DEG

    @field_validator("waypoint_strategy")
    @classmethod
    def _known_strategy(cls, value):
        get_strategy(value)
        return value

    @model_validator(mode="after")
    def _radius_stays_positive(self):
        # only the triangle strategy shrinks its radius between attempts
        if self.strategy is not triangle:
            return self
        if self.radius_shrink_per_attempt * (self.max_attempts - 1) >= 1:
            raise ValueError(
                f"radius_shrink_per_attempt={self.radius_shrink_per_attempt} shrinks the radius "
                f"to zero within {self.max_attempts} attempts"
            )
        return self

    @property
    def strategy(self) -> Strategy:
        return get_strategy(self.waypoint_strategy)


def within_tolerance(distance_km: float, target_km: float, tolerance_fraction: float) -> bool:
    return target_km * (1 - tolerance_fraction) <= distance_km <= target_km * (1 + tolerance_fraction)


def closer_candidate(best: Optional[RouteCandidate], candidate: RouteCandidate,
                     target_km: float) -> RouteCandidate:
    """Return whichever of ``best`` and ``candidate`` is nearer the target; ties keep ``best``."""
    if best is None:
        return candidate
    if abs(candidate.distance_km - target_km) < abs(best.distance_km - target_km):
        return candidate
    return best


async def _unless_cancelled(aw: Awaitable, cancel_event: Optional[asyncio.Event]):
    """
    Await ``aw`` unless ``cancel_event`` is set first.

    Returns ``(True, result)`` when ``aw`` finished, ``(False, None)`` when it
    was abandoned. Exceptions raised by ``aw`` propagate.
    """
    if cancel_event is None:
        return True, await aw
    if cancel_event.is_set():
        if asyncio.iscoroutine(aw):
            aw.close()
        return False, None

    work = asyncio.ensure_future(aw)
    stop = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop.cancel()
        if not work.done():
            work.cancel()
            await asyncio.gather(work, return_exceptions=True)

    if work.cancelled():
        return False, None
    return True, work.result()


def _finish(best: Optional[RouteCandidate], target_km: float, attempts: list,
            cancelled: bool = False) -> SearchResult:
    status = SearchStatus.BEST_EFFORT if best is not None else SearchStatus.EMPTY
    if best is None:
        logger.info(f"No route found after {len(attempts)} attempt(s)")
    else:
        logger.info(
            f"No route within tolerance after {len(attempts)} attempt(s); "
            f"closest was {best.distance_km:.2f} km (target {target_km:.2f} km)"
        )
    return SearchResult(status, best, target_km, tuple(attempts), cancelled)


async def search(start,
                 target_distance_km: float,
                 search_config: Optional[SearchConfig] = None,
                 *,
                 fetch_route: RouteFetcher,
                 rng=None,
                 sleep: Callable[[float], Awaitable] = asyncio.sleep,
                 cancel_event: Optional[asyncio.Event] = None) -> SearchResult:
    """
    Search for a walking loop from ``start`` close to ``target_distance_km``.

    Each attempt places waypoints around the start with the configured
    strategy and asks ``fetch_route`` for a route through
    start -> waypoints -> start. The first route within tolerance is
    accepted. Otherwise the route closest to the target is returned once
    ``max_attempts`` requests have been made, or an empty result if none
    came back. Routing-service failures only cost the attempt they happen in.

    Args:
        start: (lat, lon) of the loop start and end
        target_distance_km: wanted loop length
        search_config: tolerance, attempt budget, pacing and waypoint strategy
        fetch_route: coroutine function mapping ordered points to a
            RouteCandidate, None for no path, or raising RoutingServiceError
        rng: source of ``random()`` for bearings; defaults to a fresh Random
        sleep: awaited between attempts with ``inter_attempt_delay_s``
        cancel_event: once set, the pending request or pause is abandoned and
            the best result so far is returned

    Raises:
        ValueError: invalid start or non-positive target
    """
    start = validate_coordinate(start)
    if not target_distance_km > 0:
        raise ValueError(f"Target distance must be positive, got {target_distance_km}")

    cfg = search_config or SearchConfig()
    strategy = cfg.strategy
    rng = rng or random.Random()
    target_m = target_distance_km * 1000

    logger.info(
        f"Searching for a {target_distance_km:.2f} km loop from ({start.lat:.5f}, {start.lon:.5f}) | "
        f"tolerance={cfg.tolerance_fraction:.0%} attempts={cfg.max_attempts}"
    )

    best: Optional[RouteCandidate] = None
    attempts = []

    for i in range(cfg.max_attempts):
        if i > 0:
            finished, _ = await _unless_cancelled(sleep(cfg.inter_attempt_delay_s), cancel_event)
            if not finished:
                logger.info("Search cancelled between attempts")
                return _finish(best, target_distance_km, attempts, cancelled=True)

        bearing = choose_bearing(rng, i, cfg.bearing_drift_deg)
        radius_m, waypoints = strategy(start, target_m, i, bearing, cfg)
        points = closed_loop(start, waypoints)

        try:
            finished, candidate = await _unless_cancelled(fetch_route(points), cancel_event)
        except RoutingServiceError as e:
            logger.warning(f"Attempt {i + 1}/{cfg.max_attempts}: routing service failed: {e}")
            attempts.append(SearchAttempt(i, bearing, radius_m, tuple(points), AttemptOutcome.TRANSPORT_FAILURE))
            continue

        if not finished:
            logger.info(f"Search cancelled during attempt {i + 1}")
            return _finish(best, target_distance_km, attempts, cancelled=True)

        if candidate is None:
            logger.info(f"Attempt {i + 1}/{cfg.max_attempts}: no route found")
            attempts.append(SearchAttempt(i, bearing, radius_m, tuple(points), AttemptOutcome.NO_ROUTE))
            continue

        if within_tolerance(candidate.distance_km, target_distance_km, cfg.tolerance_fraction):
            attempts.append(SearchAttempt(i, bearing, radius_m, tuple(points), AttemptOutcome.ACCEPTED, candidate))
            logger.info(
                f"Attempt {i + 1}/{cfg.max_attempts}: accepted {candidate.distance_km:.2f} km "
                f"(bearing {bearing:.0f}, radius {radius_m:.0f} m)"
            )
            return SearchResult(SearchStatus.ACCEPTED, candidate, target_distance_km, tuple(attempts))

        attempts.append(SearchAttempt(i, bearing, radius_m, tuple(points), AttemptOutcome.TOLERANCE_MISS, candidate))
        logger.info(
            f"Attempt {i + 1}/{cfg.max_attempts}: {candidate.distance_km:.2f} km is outside tolerance "
            f"(bearing {bearing:.0f}, radius {radius_m:.0f} m)"
        )
        best = closer_candidate(best, candidate, target_distance_km)

    return _finish(best, target_distance_km, attempts)
