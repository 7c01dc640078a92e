"""Fare estimation with a local deterministic fallback.

Prefers the pricing service's surge-aware quote. Any failure on that
path falls back to ``base + per_km * distance + per_min * duration``
with surge fixed at 1.0, so a fare is always shown when the inputs
are usable.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from payana.shared.errors import RemoteUnavailable
from payana.shared.models import FareEstimate
from payana.shared.money import round2
from payana.shared.validators import parse_finite

if TYPE_CHECKING:
    from payana.config.settings import Settings
    from payana.services.payana_client import PayanaClient

logger = logging.getLogger(__name__)

DEFAULT_BASE = 2.0
DEFAULT_PER_KM = 1.2
DEFAULT_PER_MIN = 0.2

EstimateListener = Callable[[FareEstimate | None], None]


def local_fare(
    distance_km: float,
    duration_min: float | None = None,
    *,
    base: float = DEFAULT_BASE,
    per_km: float = DEFAULT_PER_KM,
    per_min: float = DEFAULT_PER_MIN,
) -> FareEstimate:
    """Compute the fallback fare.

    Args:
        distance_km: Trip distance.
        duration_min: Trip duration; treated as 0 when None.
        base: Flat fee.
        per_km: Rate per kilometre.
        per_min: Rate per minute.

    Returns:
        Degraded FareEstimate with surge 1.0.
    """
    fare = round2(base + per_km * distance_km + per_min * (duration_min or 0.0))
    return FareEstimate(fare=fare, surge_multiplier=1.0, degraded=True)


class FareEstimator:
    """Produces the displayed fare as distance and duration change.

    Attributes:
        current: Last estimate to arrive, or None when cleared.
    """

    def __init__(
        self,
        client: PayanaClient,
        *,
        base: float = DEFAULT_BASE,
        per_km: float = DEFAULT_PER_KM,
        per_min: float = DEFAULT_PER_MIN,
    ) -> None:
        """Initialize FareEstimator.

        Args:
            client: Remote service client for authoritative quotes.
            base: Fallback flat fee.
            per_km: Fallback rate per kilometre.
            per_min: Fallback rate per minute.
        """
        self._client = client
        self.base = base
        self.per_km = per_km
        self.per_min = per_min
        self.current: FareEstimate | None = None
        self._listeners: list[EstimateListener] = []
        self._pending: set[asyncio.Task[FareEstimate | None]] = set()

    @classmethod
    def from_settings(cls, client: PayanaClient, settings: Settings) -> FareEstimator:
        """Build an estimator using the configured fallback constants."""
        return cls(
            client,
            base=settings.fare_base,
            per_km=settings.fare_per_km,
            per_min=settings.fare_per_min,
        )

    def subscribe(self, listener: EstimateListener) -> None:
        """Register a callback run whenever ``current`` changes.

        Args:
            listener: Callable receiving the new estimate or None.
        """
        self._listeners.append(listener)

    async def estimate(
        self,
        distance_km: Any,
        duration_min: Any = None,
    ) -> FareEstimate | None:
        """Estimate a fare for raw form inputs.

        Args:
            distance_km: Distance input; number or numeric string.
            duration_min: Optional duration input.

        Returns:
            FareEstimate, or None when distance is absent, not a
            finite number, or negative.
        """
        distance = parse_finite(distance_km)
        if distance is None or distance < 0:
            return None
        duration = parse_finite(duration_min)
        if duration is not None and duration < 0:
            duration = None

        try:
            quote = await self._client.estimate_fare(
                distance_km=distance,
                duration_min=duration,
            )
        except RemoteUnavailable as exc:
            logger.warning(
                "fare_estimate_degraded",
                extra={"distance_km": distance, "reason": str(exc)},
            )
            return local_fare(
                distance,
                duration,
                base=self.base,
                per_km=self.per_km,
                per_min=self.per_min,
            )
        return quote.model_copy(update={"fare": round2(quote.fare)})

    def on_input_changed(
        self,
        distance_km: Any,
        duration_min: Any = None,
    ) -> asyncio.Task[FareEstimate | None]:
        """Re-estimate in the background after an input edit.

        Earlier estimates are not cancelled; whichever finishes last
        becomes ``current``.

        Args:
            distance_km: New distance input.
            duration_min: New duration input.

        Returns:
            The scheduled estimation task.
        """
        task = asyncio.create_task(self._estimate_and_publish(distance_km, duration_min))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _estimate_and_publish(
        self,
        distance_km: Any,
        duration_min: Any,
    ) -> FareEstimate | None:
        result = await self.estimate(distance_km, duration_min)
        self.current = result
        for listener in self._listeners:
            try:
                listener(result)
            except Exception:
                logger.warning("fare_listener_failed", exc_info=True)
        return result
