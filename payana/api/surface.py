"""Wiring of the orchestration components behind the presentation surface.

The surface owns one session (like the single-page app it serves),
the shared snapshot store, and the transient notification shown to
the user. Components never talk to the surface; it subscribes to them
and pushes what changed over the event bus.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from payana.api import event_bus
from payana.api.route_overlay import route_positions
from payana.services.driver_locator import DriverLocator
from payana.services.fare_estimator import FareEstimator
from payana.services.geosearch import GeosearchResolver
from payana.services.payana_client import PayanaClient
from payana.services.registration import RegistrationService
from payana.services.ride_lifecycle import RideLifecycleController
from payana.services.snapshot import NearbyQuery, SnapshotPoller, SnapshotStore
from payana.shared.session import RideSession

if TYPE_CHECKING:
    import httpx

    from payana.config.settings import Settings
    from payana.shared.models import FareEstimate, Ride

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """A transient message shown to the user.

    Attributes:
        message: Text to display.
        level: "info" or "error".
        expires_at: Monotonic deadline after which it is hidden.
    """

    message: str
    level: str
    expires_at: float

    @property
    def active(self) -> bool:
        """Whether the notification should still be shown."""
        return time.monotonic() < self.expires_at


@dataclass
class Surface:
    """All orchestration components for one user session."""

    settings: Settings
    client: PayanaClient
    store: SnapshotStore
    poller: SnapshotPoller
    session: RideSession
    registration: RegistrationService
    lifecycle: RideLifecycleController
    fares: FareEstimator
    geosearch: GeosearchResolver
    locator: DriverLocator
    notification: Notification | None = None
    _broadcasts: set[asyncio.Task[None]] = field(default_factory=set)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Surface:
        """Build and wire every component from settings.

        Args:
            settings: Application settings.
            transport: Optional httpx transport for the remote client.

        Returns:
            A wired Surface.
        """
        client = PayanaClient.from_settings(settings, transport=transport)
        store = SnapshotStore(client)
        surface = cls(
            settings=settings,
            client=client,
            store=store,
            poller=SnapshotPoller(store, interval_seconds=settings.refresh_interval_seconds),
            session=RideSession(),
            registration=RegistrationService(client, store),
            lifecycle=RideLifecycleController(client, store),
            fares=FareEstimator.from_settings(client, settings),
            geosearch=GeosearchResolver.from_settings(client, settings),
            locator=DriverLocator(
                client, store, default_radius_km=settings.nearby_radius_km,
            ),
        )
        store.subscribe(lambda _store: surface.push("snapshot", surface.snapshot()))
        surface.fares.subscribe(lambda _fare: surface.push("fare", surface.fare_view()))
        return surface

    async def start(self) -> None:
        """Load initial lists and begin periodic refresh."""
        await self.store.refresh_all()
        self.poller.start()

    async def stop(self) -> None:
        """Stop polling and cancel outstanding searches."""
        await self.poller.stop()
        await self.geosearch.close()

    def notify(self, message: str, *, level: str = "info") -> None:
        """Show a transient notification and broadcast it.

        Args:
            message: Text to display.
            level: "info" or "error".
        """
        self.notification = Notification(
            message=message,
            level=level,
            expires_at=time.monotonic() + self.settings.notification_ttl_seconds,
        )
        self.push("notification", {"message": message, "level": level})

    def push(self, event_type: str, data: dict[str, Any]) -> None:
        """Schedule an event broadcast without blocking the caller."""
        try:
            task = asyncio.get_running_loop().create_task(
                event_bus.broadcast_event(event_type, data),
            )
        except RuntimeError:
            return
        self._broadcasts.add(task)
        task.add_done_callback(self._broadcasts.discard)

    def find_ride(self, ride_id: str) -> Ride | None:
        """Look up a ride in the current snapshot."""
        return next((r for r in self.store.rides if r.id == ride_id), None)

    def snapshot(self) -> dict[str, Any]:
        """Serialize everything the UI displays.

        Returns:
            JSON-safe dict of rides, drivers, session, fare, and
            the active notification.
        """
        notification = self.notification
        return {
            "rides": [serialize_ride(r) for r in self.store.rides],
            "drivers": [d.model_dump(mode="json") for d in self.store.drivers],
            "driver_query": _serialize_query(self.store.driver_query),
            "session": {
                "rider_id": self.session.rider_id,
                "driver_ids": sorted(self.session.driver_credentials),
            },
            "fare": self.fare_view(),
            "notification": (
                {"message": notification.message, "level": notification.level}
                if notification is not None and notification.active
                else None
            ),
        }

    def fare_view(self) -> dict[str, Any] | None:
        """Serialize the current fare estimate."""
        return serialize_fare(self.fares.current)


def serialize_ride(ride: Ride) -> dict[str, Any]:
    """Convert a Ride to an API dict with its overlay points."""
    data = ride.model_dump(mode="json")
    data["route"] = route_positions([ride.pickup, ride.dropoff])
    return data


def serialize_fare(estimate: FareEstimate | None) -> dict[str, Any] | None:
    """Convert a FareEstimate to an API dict; None means cleared."""
    if estimate is None:
        return None
    return estimate.model_dump(mode="json")


def _serialize_query(query: NearbyQuery | None) -> dict[str, Any] | None:
    if query is None:
        return None
    return {"origin": query.origin.model_dump(mode="json"), "radius_km": query.radius_km}
