"""Rider and driver registration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from payana.shared.errors import PreconditionError
from payana.shared.models import RegistrationResult, Vehicle
from payana.shared.validators import is_blank

if TYPE_CHECKING:
    from payana.services.payana_client import PayanaClient
    from payana.services.snapshot import SnapshotStore
    from payana.shared.session import RideSession

logger = logging.getLogger(__name__)


class RegistrationService:
    """Creates riders and drivers and records their credentials."""

    def __init__(self, client: PayanaClient, store: SnapshotStore) -> None:
        """Initialize RegistrationService.

        Args:
            client: Remote service client.
            store: Snapshot store refreshed after a driver is added.
        """
        self._client = client
        self._store = store

    async def register_rider(
        self,
        session: RideSession,
        *,
        name: str | None,
        phone: str | None,
        rating: float = 5,
    ) -> RegistrationResult:
        """Create a rider and make it the session's active rider.

        Args:
            session: Session receiving the rider credential.
            name: Rider display name.
            phone: Contact phone.
            rating: Initial rating.

        Returns:
            RegistrationResult with the new id and credential.

        Raises:
            PreconditionError: If name or phone is missing.
        """
        if is_blank(name) or is_blank(phone):
            raise PreconditionError("Enter rider name and phone")
        result = await self._client.create_rider(
            name=name.strip(),
            phone=phone.strip(),
            rating=rating,
        )
        session.set_rider(result.id, result.api_key)
        logger.info("rider_registered", extra={"rider_id": result.id})
        return result

    async def register_driver(
        self,
        session: RideSession,
        *,
        name: str | None,
        phone: str | None,
        make: str | None,
        model: str | None,
        plate: str | None,
        color: str | None = None,
        is_available: bool = True,
    ) -> RegistrationResult:
        """Create a driver, keep its credential, and refresh drivers.

        Args:
            session: Session receiving the driver credential.
            name: Driver display name.
            phone: Contact phone.
            make: Vehicle make.
            model: Vehicle model.
            plate: Vehicle plate.
            color: Vehicle color, optional.
            is_available: Initial availability.

        Returns:
            RegistrationResult with the new id and credential.

        Raises:
            PreconditionError: If any required driver or vehicle detail
                is missing.
        """
        required = (name, phone, make, model, plate)
        if any(is_blank(value) for value in required):
            raise PreconditionError("Complete driver and vehicle details")
        vehicle = Vehicle(
            make=make.strip(),
            model=model.strip(),
            plate=plate.strip(),
            color=None if is_blank(color) else color.strip(),
        )
        result = await self._client.create_driver(
            name=name.strip(),
            phone=phone.strip(),
            vehicle=vehicle,
            is_available=is_available,
        )
        session.add_driver(result.id, result.api_key)
        logger.info("driver_registered", extra={"driver_id": result.id})
        await self._store.refresh_drivers()
        return result

    def use_existing_rider(
        self,
        session: RideSession,
        *,
        rider_id: str | None,
        credential: str | None,
    ) -> None:
        """Set a previously registered rider as active.

        Args:
            session: Session to update.
            rider_id: Existing rider identifier.
            credential: That rider's credential.

        Raises:
            PreconditionError: If either value is missing.
        """
        if is_blank(rider_id) or is_blank(credential):
            raise PreconditionError("Enter an existing rider id and credential")
        session.set_rider(rider_id.strip(), credential.strip())
