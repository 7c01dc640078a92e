"""Authoritative ride and driver snapshots, plus periodic refresh.

Display state is only ever replaced wholesale by the most recently
completed refresh. Lists are stored as tuples so a consumer can never
observe a half-updated snapshot. Two concurrent refreshes race and the
later-arriving response wins.

The driver snapshot follows the active driver query: every driver, or
the drivers near a point once a nearby lookup has succeeded. Periodic
refreshes re-issue that query until "all drivers" is chosen again.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from payana.shared.errors import RemoteUnavailable

if TYPE_CHECKING:
    from payana.services.payana_client import PayanaClient
    from payana.shared.models import Driver, Location, Ride

logger = logging.getLogger(__name__)

SnapshotListener = Callable[["SnapshotStore"], None]


@dataclass(frozen=True)
class NearbyQuery:
    """A driver proximity query kept alive across refreshes."""

    origin: Location
    radius_km: float


class SnapshotStore:
    """Holds the last successfully refreshed rides and drivers.

    Attributes:
        rides: Last ride snapshot.
        drivers: Last driver snapshot (all drivers, or a nearby set).
        driver_query: Active nearby query, or None for all drivers.
    """

    def __init__(self, client: PayanaClient) -> None:
        """Initialize SnapshotStore.

        Args:
            client: Remote service client used for refreshes.
        """
        self._client = client
        self.rides: tuple[Ride, ...] = ()
        self.drivers: tuple[Driver, ...] = ()
        self.driver_query: NearbyQuery | None = None
        self._query_generation = 0
        self._listeners: list[SnapshotListener] = []

    def subscribe(self, listener: SnapshotListener) -> None:
        """Register a callback run after every snapshot replacement.

        Args:
            listener: Callable receiving this store.
        """
        self._listeners.append(listener)

    async def refresh_rides(self) -> tuple[Ride, ...]:
        """Replace the ride snapshot from the service.

        Keeps the previous snapshot if the service is unreachable.

        Returns:
            The ride snapshot after the attempt.
        """
        try:
            rides = await self._client.list_rides()
        except RemoteUnavailable:
            logger.warning("ride_refresh_failed, keeping last snapshot")
            return self.rides
        self.rides = tuple(rides)
        self._notify()
        return self.rides

    async def refresh_drivers(self) -> tuple[Driver, ...]:
        """Replace the driver snapshot by re-running the active query.

        Keeps the previous snapshot if the service is unreachable. A
        response for a query that was switched while it was in flight
        is discarded.

        Returns:
            The driver snapshot after the attempt.
        """
        query = self.driver_query
        generation = self._query_generation
        try:
            if query is None:
                drivers = await self._client.list_drivers()
            else:
                drivers = await self._client.nearby_drivers(query.origin, query.radius_km)
        except RemoteUnavailable:
            logger.warning("driver_refresh_failed, keeping last snapshot")
            return self.drivers
        if generation != self._query_generation:
            logger.debug("driver_refresh_superseded")
            return self.drivers
        self.replace_drivers(drivers)
        return self.drivers

    def show_nearby(self, query: NearbyQuery, drivers: Iterable[Driver]) -> None:
        """Make ``query`` the active driver query and display its result.

        Args:
            query: The nearby query that produced ``drivers``.
            drivers: The drivers it returned.
        """
        self.driver_query = query
        self._query_generation += 1
        self.replace_drivers(drivers)

    async def show_all_drivers(self) -> tuple[Driver, ...]:
        """Drop any nearby query and reload every driver."""
        self.driver_query = None
        self._query_generation += 1
        return await self.refresh_drivers()

    async def refresh_all(self) -> None:
        """Refresh drivers and rides concurrently."""
        await asyncio.gather(self.refresh_drivers(), self.refresh_rides())

    def replace_drivers(self, drivers: Iterable[Driver]) -> None:
        """Swap in a new driver set without merging.

        Args:
            drivers: The complete new driver set.
        """
        self.drivers = tuple(drivers)
        self._notify()

    def _notify(self) -> None:
        for listener in self._listeners:
            try:
                listener(self)
            except Exception:
                logger.warning("snapshot_listener_failed", exc_info=True)


class SnapshotPoller:
    """Background loop converging on changes made by other actors.

    Attributes:
        interval_seconds: Delay between refreshes.
    """

    def __init__(self, store: SnapshotStore, *, interval_seconds: float = 5.0) -> None:
        """Initialize SnapshotPoller.

        Args:
            store: Store to refresh.
            interval_seconds: Delay between refreshes.
        """
        self._store = store
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Whether the polling task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling; a second call while running is ignored."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "snapshot_poller_started",
            extra={"interval_seconds": self.interval_seconds},
        )

    async def stop(self) -> None:
        """Cancel the polling task and wait for it to finish."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("snapshot_poller_stopped")

    async def _loop(self) -> None:
        while True:
            try:
                await self._store.refresh_all()
            except Exception:
                logger.exception("snapshot_poll_failed")
            await asyncio.sleep(self.interval_seconds)
