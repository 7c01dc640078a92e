"""Driver proximity lookup and live location updates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from payana.services.snapshot import NearbyQuery, SnapshotStore
from payana.shared.errors import PreconditionError, RemoteUnavailable
from payana.shared.validators import coerce_location, is_blank, parse_finite

if TYPE_CHECKING:
    from payana.services.payana_client import PayanaClient
    from payana.shared.models import Driver

logger = logging.getLogger(__name__)


class DriverLocator:
    """Finds drivers near a point and records driver positions."""

    def __init__(
        self,
        client: PayanaClient,
        store: SnapshotStore,
        *,
        default_radius_km: float = 5.0,
    ) -> None:
        """Initialize DriverLocator.

        Args:
            client: Remote service client.
            store: Snapshot store whose driver set is replaced.
            default_radius_km: Radius used when none is given.
        """
        self._client = client
        self._store = store
        self.default_radius_km = default_radius_km

    async def find_nearby(
        self,
        origin: Any,
        radius_km: Any = None,
    ) -> tuple[Driver, ...]:
        """Replace the displayed drivers with those near ``origin``.

        The nearby set is a different selection than "all drivers", so
        the store's driver list is replaced, not merged, and later
        refreshes re-run this lookup. If the service is unreachable the
        last known drivers stay displayed.

        Args:
            origin: Search center (Location, dict, or lat/lng pair).
            radius_km: Search radius; defaults to default_radius_km.

        Returns:
            The driver snapshot after the lookup.

        Raises:
            PreconditionError: If origin is incomplete or the radius
                is not a positive number.
        """
        location = coerce_location(origin)
        if location is None:
            raise PreconditionError("Enter a complete origin to find nearby drivers")
        radius = self.default_radius_km if is_blank(radius_km) else parse_finite(radius_km)
        if radius is None or radius <= 0:
            raise PreconditionError("Search radius must be a positive number")

        try:
            drivers = await self._client.nearby_drivers(location, radius)
        except RemoteUnavailable:
            logger.warning(
                "nearby_lookup_failed, keeping last drivers",
                extra={"radius_km": radius},
            )
            return self._store.drivers
        self._store.show_nearby(NearbyQuery(location, radius), drivers)
        logger.info(
            "nearby_drivers_loaded",
            extra={"count": len(drivers), "radius_km": radius},
        )
        return self._store.drivers

    async def update_location(
        self,
        driver_id: str | None,
        credential: str | None,
        location: Any,
    ) -> bool:
        """Submit a driver's new position under their own credential.

        Args:
            driver_id: Driver identifier.
            credential: The driver's credential.
            location: New position.

        Returns:
            True if the service recorded a change, False if the new
            position equals the stored one.

        Raises:
            PreconditionError: If any argument is missing or invalid.
            RemoteUnavailable: If the update could not be delivered.
        """
        if is_blank(driver_id) or is_blank(credential):
            raise PreconditionError("Driver id and credential are required")
        new_location = coerce_location(location)
        if new_location is None:
            raise PreconditionError("Enter a complete driver location")

        updated = await self._client.update_driver_location(
            driver_id,
            credential=credential,
            location=new_location,
        )
        logger.info(
            "driver_location_submitted",
            extra={"driver_id": driver_id, "updated": updated},
        )
        return updated
