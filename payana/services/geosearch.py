"""Debounced, cancellable place search.

Each query bumps a generation counter and cancels the previous task,
whether it is still waiting out the debounce window or already has a
request in flight. A finished lookup only populates ``results`` when
its generation is still current, so at most one search request is
outstanding and only the latest query can ever be displayed.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from payana.shared.errors import RemoteUnavailable

if TYPE_CHECKING:
    from payana.config.settings import Settings
    from payana.services.payana_client import PayanaClient
    from payana.shared.models import GeoSearchResult

logger = logging.getLogger(__name__)

ResultsListener = Callable[[list["GeoSearchResult"]], None]


class GeosearchResolver:
    """Turns free text into place candidates without flooding the service.

    Attributes:
        results: Results of the latest completed, non-superseded search.
        debounce_seconds: Quiet period before a request is issued.
        limit: Maximum number of results kept.
        min_length: Shortest query that triggers a request.
    """

    def __init__(
        self,
        client: PayanaClient,
        *,
        debounce_seconds: float = 0.25,
        limit: int = 6,
        min_length: int = 2,
    ) -> None:
        """Initialize GeosearchResolver.

        Args:
            client: Remote service client.
            debounce_seconds: Quiet period before a request is issued.
            limit: Maximum number of results kept.
            min_length: Shortest query that triggers a request.
        """
        self._client = client
        self.debounce_seconds = debounce_seconds
        self.limit = limit
        self.min_length = min_length
        self.results: list[GeoSearchResult] = []
        self._generation = 0
        self._task: asyncio.Task[list[GeoSearchResult]] | None = None
        self._listeners: list[ResultsListener] = []

    @classmethod
    def from_settings(cls, client: PayanaClient, settings: Settings) -> GeosearchResolver:
        """Build a resolver from configured debounce and limits."""
        return cls(
            client,
            debounce_seconds=settings.geo_debounce_seconds,
            limit=settings.geo_result_limit,
            min_length=settings.geo_min_query_length,
        )

    @property
    def generation(self) -> int:
        """Counter of queries submitted so far."""
        return self._generation

    def subscribe(self, listener: ResultsListener) -> None:
        """Register a callback run when ``results`` is replaced.

        Args:
            listener: Callable receiving the new result list.
        """
        self._listeners.append(listener)

    def submit(self, term: str | None) -> asyncio.Task[list[GeoSearchResult]] | None:
        """Schedule a search for ``term``, superseding any earlier one.

        Args:
            term: Raw query text.

        Returns:
            The scheduled task, or None when the term is too short
            (results are cleared and no request is made).
        """
        self._generation += 1
        self._cancel_pending()
        query = (term or "").strip()
        if len(query) < self.min_length:
            self._publish([])
            return None
        self._task = asyncio.create_task(self._run(query, self._generation))
        return self._task

    async def search(self, term: str | None) -> list[GeoSearchResult]:
        """Search and wait for the outcome.

        Args:
            term: Raw query text.

        Returns:
            This query's results; an empty list if the query was too
            short, superseded, or failed.
        """
        task = self.submit(term)
        if task is None:
            return []
        await asyncio.wait({task})
        if task.cancelled():
            return []
        return task.result()

    async def close(self) -> None:
        """Cancel any pending search and wait for it to unwind."""
        task = self._task
        self._cancel_pending()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, query: str, generation: int) -> list[GeoSearchResult]:
        await asyncio.sleep(self.debounce_seconds)
        try:
            found = await self._client.search_places(query, limit=self.limit)
        except RemoteUnavailable:
            logger.debug("geosearch_failed", extra={"query": query})
            return []
        if generation != self._generation:
            return []
        found = found[: self.limit]
        self._publish(found)
        return found

    def _publish(self, results: list[GeoSearchResult]) -> None:
        self.results = results
        for listener in self._listeners:
            try:
                listener(results)
            except Exception:
                logger.warning("geosearch_listener_failed", exc_info=True)
