"""Ride lifecycle controller: creation, assignment, and status transitions.

States run requested -> assigned -> ongoing -> completed, with cancelled
reachable from any non-terminal state. The controller decides which
transition is being asked for and whose credential to present; the
remote service decides whether it actually applies. Nothing here
patches displayed state. Every success is followed by a full ride
refresh, which is the only way the displayed list changes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from payana.shared.errors import PreconditionError
from payana.shared.money import round2
from payana.shared.types import Actor, RideStatus, actor_for_target, next_status
from payana.shared.validators import coerce_location, is_blank, parse_finite

if TYPE_CHECKING:
    from payana.services.payana_client import PayanaClient
    from payana.services.snapshot import SnapshotStore
    from payana.shared.models import Ride
    from payana.shared.session import RideSession

logger = logging.getLogger(__name__)


def _optional_amount(value: Any, label: str) -> float | None:
    """Parse an optional non-negative numeric input.

    Args:
        value: Raw input.
        label: Field name used in the error message.

    Returns:
        The number, or None when blank.

    Raises:
        PreconditionError: If present but not a non-negative number.
    """
    if is_blank(value):
        return None
    number = parse_finite(value)
    if number is None or number < 0:
        raise PreconditionError(f"{label} must be a non-negative number")
    return number


class RideLifecycleController:
    """Owns ride status transitions and driver assignment."""

    def __init__(self, client: PayanaClient, store: SnapshotStore) -> None:
        """Initialize RideLifecycleController.

        Args:
            client: Remote service client.
            store: Snapshot store refreshed after each success.
        """
        self._client = client
        self._store = store

    async def request_ride(
        self,
        session: RideSession,
        *,
        pickup: Any,
        dropoff: Any,
        distance_km: Any = None,
        duration_min: Any = None,
        fare_estimate: Any = None,
    ) -> Ride:
        """Create a ride for the session's active rider.

        Args:
            session: Session holding the rider id and credential.
            pickup: Pickup location (Location, dict, or lat/lng pair).
            dropoff: Dropoff location.
            distance_km: Optional trip distance.
            duration_min: Optional trip duration.
            fare_estimate: Optional displayed fare.

        Returns:
            The new ride, in requested status with no driver.

        Raises:
            PreconditionError: If the rider or a location is missing
                or a numeric input is invalid. No request is sent.
        """
        if is_blank(session.rider_id) or is_blank(session.rider_credential):
            raise PreconditionError("Create or set a rider first")
        pickup_location = coerce_location(pickup)
        dropoff_location = coerce_location(dropoff)
        if pickup_location is None or dropoff_location is None:
            raise PreconditionError("Enter pickup and dropoff coordinates")
        distance = _optional_amount(distance_km, "Distance")
        duration = _optional_amount(duration_min, "Duration")
        fare = _optional_amount(fare_estimate, "Fare estimate")

        ride = await self._client.create_ride(
            rider_id=session.rider_id,
            credential=session.rider_credential,
            pickup=pickup_location,
            dropoff=dropoff_location,
            distance_km=distance,
            duration_min=duration,
            fare_estimate=None if fare is None else round2(fare),
        )
        logger.info(
            "ride_requested",
            extra={"ride_id": ride.id, "rider_id": session.rider_id},
        )
        await self._store.refresh_rides()
        return ride

    async def assign_driver(
        self,
        ride_id: str | None,
        driver_id: str | None,
        driver_credential: str | None,
    ) -> Ride:
        """Ask the service to assign a driver to a ride.

        The driver acts on a ride they do not own yet; the service
        rejects the request if the ride is already taken or terminal.

        Args:
            ride_id: Ride to take.
            driver_id: Driver taking it.
            driver_credential: That driver's credential.

        Returns:
            The ride as confirmed by the service.

        Raises:
            PreconditionError: If any argument is empty.
            TransitionRejected: If the service refuses the assignment.
        """
        if is_blank(ride_id) or is_blank(driver_id):
            raise PreconditionError("Select a ride and a driver")
        if is_blank(driver_credential):
            raise PreconditionError(f"No credential held for driver {driver_id}")

        ride = await self._client.update_ride(
            ride_id,
            credential=driver_credential,
            status=RideStatus.ASSIGNED,
            driver_id=driver_id,
        )
        logger.info(
            "driver_assigned",
            extra={"ride_id": ride_id, "driver_id": driver_id},
        )
        await self._store.refresh_rides()
        return ride

    async def advance(
        self,
        ride: Ride,
        session: RideSession,
        explicit_target: RideStatus | str | None = None,
    ) -> Ride:
        """Move a ride to its successor status, or cancel it.

        Args:
            ride: Ride as last displayed.
            session: Session holding rider and driver credentials.
            explicit_target: Only ``cancelled`` is accepted; bypasses
                the successor table.

        Returns:
            The ride as confirmed by the service, or ``ride`` itself
            unchanged when it is already terminal.

        Raises:
            PreconditionError: For an unsupported target, a requested
                ride with no driver, or a missing credential.
            TransitionRejected: If the service refuses the change.
        """
        target = self._resolve_target(ride, explicit_target)
        if ride.status.is_terminal:
            logger.info(
                "ride_already_terminal",
                extra={"ride_id": ride.id, "status": ride.status.value},
            )
            return ride

        credential = self._credential_for(ride, target, session)
        updated = await self._client.update_ride(
            ride.id,
            credential=credential,
            status=target,
        )
        logger.info(
            "ride_advanced",
            extra={
                "ride_id": ride.id,
                "from_status": ride.status.value,
                "to_status": target.value,
            },
        )
        await self._store.refresh_rides()
        return updated

    async def cancel(self, ride: Ride, session: RideSession) -> Ride:
        """Cancel a ride on the rider's behalf.

        Args:
            ride: Ride as last displayed.
            session: Session holding the rider credential.

        Returns:
            The cancelled ride, or ``ride`` unchanged if terminal.
        """
        return await self.advance(ride, session, RideStatus.CANCELLED)

    @staticmethod
    def _resolve_target(
        ride: Ride,
        explicit_target: RideStatus | str | None,
    ) -> RideStatus:
        if explicit_target is None:
            target = next_status(ride.status)
        else:
            try:
                target = RideStatus(explicit_target)
            except ValueError as exc:
                raise PreconditionError(f"Unknown ride status {explicit_target!r}") from exc
            if target is not RideStatus.CANCELLED:
                raise PreconditionError("Only cancellation may bypass the status order")
        if target is RideStatus.ASSIGNED:
            raise PreconditionError("Assign a driver to move a requested ride forward")
        return target

    @staticmethod
    def _credential_for(
        ride: Ride,
        target: RideStatus,
        session: RideSession,
    ) -> str:
        if actor_for_target(target) is Actor.RIDER:
            if ride.rider_id != session.rider_id or is_blank(session.rider_credential):
                raise PreconditionError("Only the ride's rider can cancel it")
            return session.rider_credential
        credential = session.driver_credential(ride.driver_id)
        if is_blank(credential):
            raise PreconditionError(f"No credential held for driver {ride.driver_id}")
        return credential
