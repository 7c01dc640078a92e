"""Tests for the presentation surface intent endpoints."""

from collections.abc import AsyncGenerator

import httpx
import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from payana.api.app import app as module_app
from payana.api.app import create_app
from payana.api.route_overlay import route_positions
from payana.shared.models import Location

PICKUP = {"lat": "12.9716", "lng": "77.5946"}
DROPOFF = {"lat": "12.9352", "lng": "77.6245"}
DRIVER = {"name": "Asha", "phone": "9000000001", "make": "Bajaj", "model": "Pulsar", "plate": "KA01"}


@pytest.fixture
def app(settings, fake_service):
    """Create a surface app backed by the fake service."""
    return create_app(settings, transport=httpx.ASGITransport(app=fake_service.app))


@pytest.fixture
async def http(app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the surface app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://surface") as c:
        yield c


def test_health_returns_ok() -> None:
    """Health endpoint returns 200 with status ok."""
    client = TestClient(module_app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestErrorNotifications:
    """PayanaError becomes a transient notification."""

    async def test_precondition_maps_to_422(self, http) -> None:
        """Requesting without a rider is refused locally."""
        response = await http.post("/api/rides", json={"pickup": PICKUP, "dropoff": DROPOFF})
        assert response.status_code == 422
        assert response.json()["error"] == "PreconditionError"

        snapshot = (await http.get("/api/snapshot")).json()
        assert snapshot["notification"] == {
            "message": "Create or set a rider first",
            "level": "error",
        }

    async def test_rejection_maps_to_409(self, http) -> None:
        """A service refusal surfaces as a conflict."""
        await http.post("/api/riders", json={"name": "Ravi", "phone": "9000000000"})
        driver_id = (await http.post("/api/drivers", json=DRIVER)).json()["id"]
        ride = (await http.post("/api/rides", json={"pickup": PICKUP, "dropoff": DROPOFF})).json()

        await http.post(f"/api/rides/{ride['id']}/assign", json={"driver_id": driver_id})
        response = await http.post(
            f"/api/rides/{ride['id']}/assign", json={"driver_id": driver_id},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "TransitionRejected"

    async def test_unavailable_maps_to_502(self, settings) -> None:
        """An unreachable service on a write path is a bad gateway."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        app = create_app(settings, transport=httpx.MockTransport(handler))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://s") as c:
            response = await c.post("/api/riders", json={"name": "Ravi", "phone": "900"})
        assert response.status_code == 502


class TestRideFlow:
    """Full lifecycle driven through intents."""

    async def test_request_assign_advance(self, http) -> None:
        """Every step is reflected in the refreshed snapshot."""
        rider = (await http.post("/api/riders", json={"name": "Ravi", "phone": "9000000000"})).json()
        driver_id = (await http.post("/api/drivers", json=DRIVER)).json()["id"]

        fare = (await http.post("/api/fare", json={"distance_km": "abc"})).json()
        assert fare == {"fare": None}

        ride = (
            await http.post(
                "/api/rides",
                json={"pickup": PICKUP, "dropoff": DROPOFF, "distance_km": "5"},
            )
        ).json()
        assert ride["status"] == "requested"
        assert ride["driver_id"] is None
        assert ride["rider_id"] == rider["id"]
        assert ride["route"] == [[12.9716, 77.5946], [12.9352, 77.6245]]

        assigned = (
            await http.post(f"/api/rides/{ride['id']}/assign", json={"driver_id": driver_id})
        ).json()
        assert assigned["status"] == "assigned"

        ongoing = (await http.post(f"/api/rides/{ride['id']}/advance")).json()
        assert ongoing["status"] == "ongoing"

        cancelled = (await http.post(f"/api/rides/{ride['id']}/cancel")).json()
        assert cancelled["status"] == "cancelled"

        snapshot = (await http.get("/api/snapshot")).json()
        assert [r["status"] for r in snapshot["rides"]] == ["cancelled"]
        assert snapshot["session"]["driver_ids"] == [driver_id]

    async def test_unknown_ride_notifies(self, http) -> None:
        """Advancing a ride not in the snapshot asks for a refresh."""
        response = await http.post("/api/rides/nope/advance")
        assert response.status_code == 422
        assert response.json()["error"] == "PreconditionError"

        snapshot = (await http.get("/api/snapshot")).json()
        assert snapshot["notification"] == {
            "message": "Ride not found, refresh and retry",
            "level": "error",
        }

    async def test_driver_location_and_nearby(self, http) -> None:
        """A located driver is found by a nearby lookup."""
        driver_id = (await http.post("/api/drivers", json=DRIVER)).json()["id"]
        moved = await http.post(
            f"/api/drivers/{driver_id}/location", json={"lat": 12.975, "lng": 77.605},
        )
        assert moved.json() == {"updated": True}

        nearby = await http.get(
            "/api/drivers/nearby", params={"lat": "12.97", "lng": "77.60", "radius_km": "2"},
        )
        assert [d["id"] for d in nearby.json()["drivers"]] == [driver_id]

    async def test_nearby_lookup_survives_refresh(self, http) -> None:
        """A refresh keeps the nearby set until all drivers are requested."""
        near = (await http.post("/api/drivers", json=DRIVER)).json()["id"]
        await http.post(f"/api/drivers/{near}/location", json={"lat": 12.975, "lng": 77.605})
        await http.post("/api/drivers", json={**DRIVER, "name": "Bala", "plate": "KA02"})
        params = {"lat": "12.97", "lng": "77.60", "radius_km": "2"}
        await http.get("/api/drivers/nearby", params=params)

        refreshed = (await http.post("/api/refresh")).json()
        assert [d["id"] for d in refreshed["drivers"]] == [near]
        assert refreshed["driver_query"]["radius_km"] == 2.0

        everyone = (await http.post("/api/drivers/all")).json()
        assert len(everyone["drivers"]) == 2
        assert (await http.get("/api/snapshot")).json()["driver_query"] is None

    async def test_geo_search(self, http) -> None:
        """Place search proxies through the resolver."""
        short = await http.get("/api/geo/search", params={"q": "a"})
        assert short.json() == {"results": []}
        found = await http.get("/api/geo/search", params={"q": "cubbon"})
        assert found.json()["results"][0]["display_name"] == "Cubbon Park, Bengaluru"


class TestRoutePositions:
    """Pure function: route_positions."""

    def test_converts_points(self) -> None:
        """Locations and dicts become [lat, lng] pairs."""
        path = [Location(lat=1, lng=2), {"lat": 3, "lng": 4}]
        assert route_positions(path) == [[1.0, 2.0], [3.0, 4.0]]

    @pytest.mark.parametrize("path", [None, [], "abc", [{"lat": 1}]])
    def test_nothing_to_draw(self, path) -> None:
        """Missing or unusable paths draw nothing."""
        assert route_positions(path) == []
