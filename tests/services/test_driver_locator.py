"""Tests for driver proximity lookup and location updates."""

from unittest.mock import AsyncMock

import pytest

from payana.services.driver_locator import DriverLocator
from payana.services.payana_client import PayanaClient
from payana.services.snapshot import SnapshotStore
from payana.shared.errors import PreconditionError, RemoteUnavailable
from payana.shared.models import Driver, Location, Vehicle

MG_ROAD = {"lat": 12.9756, "lng": 77.6050}
HOSUR = {"lat": 12.7409, "lng": 77.8253}


async def _driver_at(client: PayanaClient, name: str, where: dict) -> str:
    reg = await client.create_driver(
        name=name,
        phone="9000000000",
        vehicle=Vehicle(make="TVS", model="Apache", plate=f"KA-{name}"),
    )
    await client.update_driver_location(
        reg.id, credential=reg.api_key, location=Location(**where),
    )
    return reg.id


class TestFindNearby:
    """DriverLocator.find_nearby."""

    async def test_replaces_driver_set_with_nearby(self, client, store) -> None:
        """Only drivers inside the radius remain displayed."""
        near = await _driver_at(client, "near", MG_ROAD)
        await _driver_at(client, "far", HOSUR)
        await store.refresh_drivers()
        assert len(store.drivers) == 2

        locator = DriverLocator(client, store)
        drivers = await locator.find_nearby({"lat": "12.97", "lng": "77.60"}, 3)
        assert [d.id for d in drivers] == [near]
        assert [d.id for d in store.drivers] == [near]

    @pytest.mark.parametrize(
        "origin",
        [None, {"lat": "12.9"}, {"lat": "", "lng": ""}, {"lat": "x", "lng": "77"}],
    )
    async def test_incomplete_origin(self, origin) -> None:
        """An incomplete origin fails before any request."""
        client = AsyncMock(spec=PayanaClient)
        locator = DriverLocator(client, SnapshotStore(client))
        with pytest.raises(PreconditionError):
            await locator.find_nearby(origin)
        client.nearby_drivers.assert_not_called()

    @pytest.mark.parametrize("radius", [0, -1, "abc"])
    async def test_invalid_radius(self, radius) -> None:
        """Radius must be a positive number."""
        client = AsyncMock(spec=PayanaClient)
        locator = DriverLocator(client, SnapshotStore(client))
        with pytest.raises(PreconditionError):
            await locator.find_nearby(MG_ROAD, radius)

    async def test_default_radius(self) -> None:
        """A blank radius uses the configured default."""
        client = AsyncMock(spec=PayanaClient)
        client.nearby_drivers.return_value = []
        locator = DriverLocator(client, SnapshotStore(client), default_radius_km=7.5)
        await locator.find_nearby(MG_ROAD, "")
        client.nearby_drivers.assert_awaited_once_with(Location(**MG_ROAD), 7.5)

    async def test_unavailable_keeps_last_drivers(self) -> None:
        """A failed lookup keeps the displayed drivers."""
        client = AsyncMock(spec=PayanaClient)
        client.nearby_drivers.side_effect = RemoteUnavailable("offline")
        store = SnapshotStore(client)
        store.replace_drivers([Driver(id="d1", name="A")])
        drivers = await DriverLocator(client, store).find_nearby(MG_ROAD)
        assert [d.id for d in drivers] == ["d1"]


class TestUpdateLocation:
    """DriverLocator.update_location."""

    async def test_change_then_no_op(self, client, store) -> None:
        """An unchanged position is reported distinctly from a change."""
        reg = await client.create_driver(
            name="Asha",
            phone="9000000001",
            vehicle=Vehicle(make="Bajaj", model="Pulsar", plate="KA01"),
        )
        locator = DriverLocator(client, store)
        assert await locator.update_location(reg.id, reg.api_key, MG_ROAD) is True
        assert await locator.update_location(reg.id, reg.api_key, MG_ROAD) is False

    @pytest.mark.parametrize(
        ("driver_id", "credential", "location"),
        [
            ("", "key", MG_ROAD),
            ("d1", None, MG_ROAD),
            ("d1", "key", None),
            ("d1", "key", {"lat": 100, "lng": 0}),
        ],
    )
    async def test_missing_inputs(self, driver_id, credential, location) -> None:
        """Any missing argument fails before any request."""
        client = AsyncMock(spec=PayanaClient)
        locator = DriverLocator(client, SnapshotStore(client))
        with pytest.raises(PreconditionError):
            await locator.update_location(driver_id, credential, location)
        client.update_driver_location.assert_not_called()

    async def test_failure_raises(self) -> None:
        """A hard failure is raised, not reported as a no-op."""
        client = AsyncMock(spec=PayanaClient)
        client.update_driver_location.side_effect = RemoteUnavailable("offline")
        locator = DriverLocator(client, SnapshotStore(client))
        with pytest.raises(RemoteUnavailable):
            await locator.update_location("d1", "key", MG_ROAD)
