"""
Shared test helpers.

The routing service is faked with ``httpx.MockTransport`` so the real
GraphHopper client code runs against canned responses, and every request
the search makes is recorded.
"""

import httpx
import pytest

START = (51.505, -0.09)
GH_HOST = "https://graphhopper.test/api/1"


class FixedRandom:
    """Random source whose ``random()`` always returns the same value."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def random(self) -> float:
        return self.value


def route_body(distance_m: float, start=START) -> dict:
    """A GraphHopper /route body for a small loop of ``distance_m`` meters."""
    lat, lon = start
    return {
        "paths": [{
            "distance": distance_m,
            "time": distance_m * 720,
            "points": {
                "type": "LineString",
                "coordinates": [[lon, lat], [lon + 0.01, lat + 0.005], [lon - 0.01, lat + 0.005], [lon, lat]],
            },
        }]
    }


class FakeGraphHopper:
    """
    Serves one scripted reply per request, repeating the last one.

    A reply is a distance in meters, a dict JSON body, an ``httpx.Response``,
    or an exception class to raise as a transport failure.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies[min(len(self.requests), len(self.replies)) - 1]
        if isinstance(reply, type) and issubclass(reply, Exception):
            raise reply("routing service unreachable", request=request)
        if isinstance(reply, httpx.Response):
            return reply
        if isinstance(reply, dict):
            return httpx.Response(200, json=reply)
        return httpx.Response(200, json=route_body(reply))

    @property
    def calls(self) -> int:
        return len(self.requests)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def start():
    return START
