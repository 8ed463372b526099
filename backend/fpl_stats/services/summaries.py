"""Per-request element-summary cache.

The squad resolver, the season fold and the watchlist all need player
element-summary feeds. Each player's feed is fetched at most once per
request and every consumer sees the same data. Instances must not be
shared between requests.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Protocol

from fpl_stats.services.fpl_client import ElementSummary

logger = logging.getLogger(__name__)


class SummaryFetcher(Protocol):
    """Anything that can fetch an element summary (FplApiClient or a test double)."""

    async def get_element_summary(self, player_id: int) -> ElementSummary: ...


class ElementSummaryCache:
    """Memoizes element-summary fetches by player id for one request."""

    def __init__(self, fpl_client: SummaryFetcher) -> None:
        self.fpl_client = fpl_client
        self._tasks: dict[int, asyncio.Future[ElementSummary]] = {}

    async def get(self, player_id: int) -> ElementSummary:
        """Fetch a player's feed, or join the fetch already in flight."""
        task = self._tasks.get(player_id)
        if task is None:
            task = asyncio.ensure_future(self.fpl_client.get_element_summary(player_id))
            self._tasks[player_id] = task
        return await task

    async def get_many(self, player_ids: Iterable[int]) -> dict[int, ElementSummary]:
        """Fetch feeds for many players concurrently.

        Raises the first upstream failure; in-flight fetches are cancelled
        since the request fails as a whole.
        """
        unique_ids = list(dict.fromkeys(player_ids))
        try:
            results = await asyncio.gather(*(self.get(pid) for pid in unique_ids))
        except Exception:
            self.cancel_pending()
            raise
        return dict(zip(unique_ids, results))

    def fetched(self) -> dict[int, ElementSummary]:
        """Feeds that have completed successfully so far."""
        return {
            player_id: task.result()
            for player_id, task in self._tasks.items()
            if task.done() and not task.cancelled() and task.exception() is None
        }

    def cancel_pending(self) -> None:
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.debug(f"Cancelled {len(pending)} in-flight element-summary fetches")

    def __len__(self) -> int:
        return len(self._tasks)
