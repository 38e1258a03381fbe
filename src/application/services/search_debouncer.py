import asyncio

import structlog

from src.application.services.listing_query_cache import ListingQueryCache
from src.domain.entities.listing import Listing

logger = structlog.get_logger(__name__)


class SearchDebouncer:
    """Runs a cache search only once input has been quiet for the delay window."""

    def __init__(self, cache: ListingQueryCache, delay_seconds: float = 0.3) -> None:
        self._cache = cache
        self._delay = delay_seconds
        self._pending: asyncio.Task[list[Listing]] | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def submit(self, term: str) -> asyncio.Task[list[Listing]]:
        """Cancel any scheduled search and schedule this one."""
        self.cancel()
        self._pending = asyncio.create_task(self._run(term))
        return self._pending

    def cancel(self) -> None:
        task = self._pending
        if task is not None and not task.done():
            task.cancel()
            logger.debug("search_superseded")

    async def wait(self) -> list[Listing] | None:
        """Await the last scheduled search; None if it was superseded or none was scheduled.

        Cancelling the caller does not cancel the search itself, and the
        caller's CancelledError propagates.
        """
        task = self._pending
        if task is None:
            return None
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise

    async def _run(self, term: str) -> list[Listing]:
        await asyncio.sleep(self._delay)
        return await self._cache.search(term)
