"""
Tests for the GraphHopper client: request shape, response parsing and
failure mapping.
"""

import httpx
import pytest

from tests.conftest import GH_HOST, START, FakeGraphHopper, route_body
from utils.geo import Coordinate
from utils.graphhopper_api import (
    RoutingServiceError,
    build_route_params,
    fetch_graphhopper_route,
    parse_route_response,
)

POINTS = [Coordinate(*START), Coordinate(51.5115, -0.0841), Coordinate(51.4988, -0.0855), Coordinate(*START)]


async def _fetch(service: FakeGraphHopper, points=POINTS, api_key="secret"):
    async with httpx.AsyncClient(transport=service.transport()) as client:
        return await fetch_graphhopper_route(client, points, host=GH_HOST, api_key=api_key, profile="foot")


class TestRequest:
    @pytest.mark.asyncio
    async def test_query_parameters(self):
        service = FakeGraphHopper(5000)
        await _fetch(service)

        request = service.requests[0]
        assert request.method == "GET"
        assert str(request.url).startswith(f"{GH_HOST}/route?")
        params = request.url.params
        assert params.get_list("point") == [f"{p.lat},{p.lon}" for p in POINTS]
        assert params["profile"] == "foot"
        assert params["points_encoded"] == "false"
        assert params["key"] == "secret"

    @pytest.mark.asyncio
    async def test_no_key_parameter_without_api_key(self):
        service = FakeGraphHopper(5000)
        await _fetch(service, api_key="")
        assert "key" not in service.requests[0].url.params

    def test_point_order_is_lat_lon(self):
        params = build_route_params([Coordinate(1.5, 2.5), Coordinate(3.5, 4.5)], "foot")
        assert [v for k, v in params if k == "point"] == ["1.5,2.5", "3.5,4.5"]

    @pytest.mark.asyncio
    async def test_needs_two_points(self):
        with pytest.raises(ValueError):
            await _fetch(FakeGraphHopper(5000), points=[Coordinate(*START)])


class TestResponse:
    @pytest.mark.asyncio
    async def test_parses_distance_time_and_swaps_coordinates(self):
        route = await _fetch(FakeGraphHopper(5200))

        assert route.distance_m == 5200
        assert route.distance_km == pytest.approx(5.2)
        assert route.duration_s == pytest.approx(5200 * 0.72)
        assert route.coordinates[0] == Coordinate(*START)
        assert route.coordinates[1] == Coordinate(START[0] + 0.005, START[1] + 0.01)
        assert route.waypoints == tuple(POINTS)

    def test_elevation_is_dropped(self):
        body = {"paths": [{"distance": 10.0, "points": {"coordinates": [[-0.09, 51.5, 12.0], [-0.08, 51.6, 15.0]]}}]}
        route = parse_route_response(body)
        assert route.coordinates == (Coordinate(51.5, -0.09), Coordinate(51.6, -0.08))
        assert route.duration_s == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"paths": []}, {"message": "Cannot find point 2"}])
    async def test_no_paths_means_no_route(self, body):
        assert await _fetch(FakeGraphHopper(body)) is None


class TestFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
    async def test_error_status(self, status):
        service = FakeGraphHopper(httpx.Response(status, json={"message": "nope"}))
        with pytest.raises(RoutingServiceError, match=str(status)):
            await _fetch(service)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout])
    async def test_transport_error(self, error):
        with pytest.raises(RoutingServiceError) as excinfo:
            await _fetch(FakeGraphHopper(error))
        assert isinstance(excinfo.value.__cause__, error)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        service = FakeGraphHopper(httpx.Response(200, content=b"<html>gateway</html>"))
        with pytest.raises(RoutingServiceError, match="not valid JSON"):
            await _fetch(service)

    @pytest.mark.parametrize("body", [
        [],
        {"paths": [{"points": {"coordinates": [[0, 0], [1, 1]]}}]},
        {"paths": [{"distance": 10, "points": "encodedpolyline"}]},
        {"paths": [{"distance": "far", "points": {"coordinates": [[0, 0], [1, 1]]}}]},
        {"paths": [{"distance": 10, "points": {"coordinates": [[0, 0]]}}]},
        {"paths": [{"distance": float("nan"), "points": {"coordinates": [[0, 0], [1, 1]]}}]},
        {"paths": [{"distance": float("inf"), "points": {"coordinates": [[0, 0], [1, 1]]}}]},
        {"paths": [{"distance": -10, "points": {"coordinates": [[0, 0], [1, 1]]}}]},
    ])
    def test_malformed_body(self, body):
        with pytest.raises(RoutingServiceError):
            parse_route_response(body)
