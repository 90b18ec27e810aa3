import asyncio
import logging
from functools import partial
from typing import Optional, Tuple

import httpx

import config
from routing.loop_search import SearchConfig, search
from routing.models import SearchResult
from utils.graphhopper_api import fetch_graphhopper_route

logger = logging.getLogger(__name__)


async def generate_loop_route(
    start: Optional[Tuple[float, float]],
    target_distance_km: float = config.TARGET_DISTANCE_KM,
    search_config: Optional[SearchConfig] = None,
    *,
    host: str = config.GRAPHHOPPER_HOST,
    api_key: str = config.GRAPHHOPPER_API_KEY,
    profile: str = config.ROUTING_PROFILE,
    timeout_s: float = config.GRAPHHOPPER_TIMEOUT_S,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng=None,
    cancel_event: Optional[asyncio.Event] = None,
) -> SearchResult:
    """Master entry point: find a loop of roughly ``target_distance_km`` starting at ``start``."""
    if start is None:
        start = config.FALLBACK_START_LAT_LON
        logger.info(f"No start location given, using fallback {start}")

    async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
        fetch_route = partial(fetch_graphhopper_route, client, host=host, api_key=api_key, profile=profile)
        return await search(
            start,
            target_distance_km,
            search_config,
            fetch_route=fetch_route,
            rng=rng,
            cancel_event=cancel_event,
        )
