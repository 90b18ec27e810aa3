import asyncio
import logging
from typing import List, Literal, Optional, Tuple

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

import config
from route_generator import generate_loop_route
from routing.loop_search import SearchConfig
from routing.models import SearchResult, SearchStatus
from utils.gmaps_link import generate_gmaps_route_url, gmaps_travel_mode
from utils.gpx_utils import build_gpx

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

DISCONNECT_POLL_S = 0.5

# --- FastAPI setup ---
app = FastAPI(title="Loop Route API", version="1.0")

# The map page calls us straight from the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Data Models ---
LatLon = Tuple[float, float]


class RouteRequest(BaseModel):
    start: Optional[LatLon] = Field(None, description="Start and end of the loop as [latitude, longitude]; "
                                                      "omit when the client has no location")
    target_distance_km: float = Field(config.TARGET_DISTANCE_KM, gt=0, le=100,
                                      description="Target loop distance in kilometers")
    waypoint_strategy: Optional[Literal["triangle", "out-and-back"]] = Field(
        None, description="How waypoints are placed around the start")
    tolerance_fraction: Optional[float] = Field(None, ge=0, lt=1,
                                                description="Accepted relative deviation from the target")
    max_attempts: Optional[int] = Field(None, ge=1, le=8, description="Routing requests to spend on the search")

    def search_config(self) -> SearchConfig:
        overrides = self.model_dump(include={"waypoint_strategy", "tolerance_fraction", "max_attempts"},
                                    exclude_none=True)
        return SearchConfig(**overrides)


class RouteResponse(BaseModel):
    status: Literal["accepted", "best_effort", "empty"] = Field(..., description="Quality of the returned loop")
    route: List[LatLon] = Field(..., description="Loop coordinates as (lat, lon), empty if no route was found")
    distance_km: Optional[float] = Field(None, description="Actual loop distance in kilometers")
    target_distance_km: float = Field(..., description="Requested loop distance in kilometers")
    duration_s: Optional[float] = Field(None, description="Estimated walking time in seconds")
    attempts: int = Field(..., description="Routing requests made")
    gmaps_url: Optional[str] = Field(None, description="Google Maps URL of the loop waypoints")
    cancelled: bool = Field(False, description="Whether the search was cut short")


async def _cancel_on_disconnect(request: Request, cancel_event: asyncio.Event):
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling route search")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_S)


async def _run_search(req: RouteRequest, request: Request) -> SearchResult:
    try:
        search_config = req.search_config()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_cancel_on_disconnect(request, cancel_event))
    try:
        return await generate_loop_route(
            start=req.start,
            target_distance_km=req.target_distance_km,
            search_config=search_config,
            cancel_event=cancel_event,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        watcher.cancel()


def _gmaps_url(waypoints) -> Optional[str]:
    # profiles such as hike or mtb have no Google Maps travel mode
    if not waypoints or gmaps_travel_mode(config.ROUTING_PROFILE) is None:
        return None
    return generate_gmaps_route_url(waypoints, config.ROUTING_PROFILE)


def _to_response(result: SearchResult) -> dict:
    route = result.route
    if route is None:
        return {
            "status": result.status.value,
            "route": [],
            "target_distance_km": result.target_distance_km,
            "attempts": len(result.attempts),
            "cancelled": result.cancelled,
        }

    return {
        "status": result.status.value,
        "route": [(c.lat, c.lon) for c in route.coordinates],
        "distance_km": route.distance_km,
        "target_distance_km": result.target_distance_km,
        "duration_s": route.duration_s,
        "attempts": len(result.attempts),
        "gmaps_url": _gmaps_url(route.waypoints),
        "cancelled": result.cancelled,
    }


# --- API Endpoints ---
@app.post("/generate-route", response_model=RouteResponse)
async def generate_route_endpoint(req: RouteRequest, request: Request):
    """
    Generate a walking loop starting and ending at ``start`` (or the fallback
    start), aiming for ``target_distance_km``.
    """
    result = await _run_search(req, request)
    return _to_response(result)


@app.post("/generate-route/gpx")
async def generate_route_gpx_endpoint(req: RouteRequest, request: Request):
    result = await _run_search(req, request)
    if result.status == SearchStatus.EMPTY:
        raise HTTPException(status_code=404, detail="No route available")

    name = f"{result.route.distance_km:.1f} km loop"
    return Response(content=build_gpx(result.coordinates, name=name), media_type="application/gpx+xml")


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
