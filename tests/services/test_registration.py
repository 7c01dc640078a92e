"""Tests for rider and driver registration."""

from unittest.mock import AsyncMock

import pytest

from payana.services.payana_client import PayanaClient
from payana.services.registration import RegistrationService
from payana.services.snapshot import SnapshotStore
from payana.shared.errors import PreconditionError

DRIVER_FORM = {
    "name": "Asha",
    "phone": "9000000001",
    "make": "Bajaj",
    "model": "Pulsar",
    "plate": "KA01AB1234",
}


class TestRegisterRider:
    """RegistrationService.register_rider."""

    async def test_sets_active_rider(self, client, store, session) -> None:
        """The new rider's credential lands in the session."""
        result = await RegistrationService(client, store).register_rider(
            session, name="Ravi", phone="9000000000",
        )
        assert session.rider_id == result.id
        assert session.rider_credential == result.api_key

    @pytest.mark.parametrize(("name", "phone"), [("", "900"), ("Ravi", None), ("  ", " ")])
    async def test_requires_name_and_phone(self, session, name, phone) -> None:
        """Missing details fail without a request."""
        client = AsyncMock(spec=PayanaClient)
        service = RegistrationService(client, SnapshotStore(client))
        with pytest.raises(PreconditionError):
            await service.register_rider(session, name=name, phone=phone)
        client.create_rider.assert_not_called()
        assert session.rider_id is None


class TestRegisterDriver:
    """RegistrationService.register_driver."""

    async def test_stores_credential_and_refreshes(self, client, store, session) -> None:
        """The driver credential is kept and the driver list reloaded."""
        result = await RegistrationService(client, store).register_driver(
            session, **DRIVER_FORM, color="",
        )
        assert session.driver_credential(result.id) == result.api_key
        assert [d.id for d in store.drivers] == [result.id]
        assert store.drivers[0].vehicle.color is None

    @pytest.mark.parametrize("missing", ["name", "phone", "make", "model", "plate"])
    async def test_requires_vehicle_details(self, session, missing) -> None:
        """Every required driver and vehicle field is checked."""
        client = AsyncMock(spec=PayanaClient)
        service = RegistrationService(client, SnapshotStore(client))
        with pytest.raises(PreconditionError):
            await service.register_driver(session, **{**DRIVER_FORM, missing: ""})
        client.create_driver.assert_not_called()


class TestUseExistingRider:
    """RegistrationService.use_existing_rider."""

    def test_sets_rider(self, session) -> None:
        """An existing rider id and credential become active."""
        client = AsyncMock(spec=PayanaClient)
        RegistrationService(client, SnapshotStore(client)).use_existing_rider(
            session, rider_id=" u9 ", credential="k9",
        )
        assert (session.rider_id, session.rider_credential) == ("u9", "k9")

    def test_requires_credential(self, session) -> None:
        """A rider id without its credential is rejected."""
        client = AsyncMock(spec=PayanaClient)
        with pytest.raises(PreconditionError):
            RegistrationService(client, SnapshotStore(client)).use_existing_rider(
                session, rider_id="u9", credential=None,
            )
