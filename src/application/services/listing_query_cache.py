import math
from enum import Enum

import structlog

from src.application.interfaces.ledger_client import LedgerNotFoundError, LedgerQueryError
from src.application.schemas.ledger_messages import (
    all_listings_query,
    listing_from_response,
    listing_query,
    listings_from_response,
    search_listings_query,
)
from src.application.session import WalletSession
from src.domain.entities.listing import Listing

logger = structlog.get_logger(__name__)

PAGE_SIZES: tuple[int, ...] = (9, 18, 27)
DEFAULT_PAGE_SIZE = PAGE_SIZES[0]


class SortOrder(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class InvalidPageError(ValueError):
    pass


class ListingQueryCache:
    """
    In-memory copy of the last listing page the contract returned.

    Reads replace the whole snapshot. Sorting and pagination work on the
    snapshot alone and never reach the network. A failed read leaves the
    previous snapshot in place.
    """

    def __init__(self, session: WalletSession, limit: int = 50) -> None:
        self._session = session
        self._limit = limit
        self._listings: list[Listing] = []

    @property
    def listings(self) -> list[Listing]:
        return list(self._listings)

    def __len__(self) -> int:
        return len(self._listings)

    # -------------------------------------------------------------------------
    # Network reads
    # -------------------------------------------------------------------------

    async def refresh(self) -> list[Listing]:
        """Refetch the bounded listing page unconditionally."""
        try:
            payload = await self._session.ledger.query(
                self._session.contract_address, all_listings_query(self._limit)
            )
            listings = listings_from_response(payload, "all_listings")
        except LedgerQueryError as exc:
            logger.error("listing_refresh_failed", error=str(exc), cached=len(self._listings))
            return self.listings

        self._listings = listings
        logger.info("listing_cache_refreshed", count=len(listings))
        return self.listings

    async def search(self, term: str) -> list[Listing]:
        """Title search on the contract; blank terms refresh instead.

        When the remote search fails the cache is refreshed and narrowed
        locally by case-insensitive title substring.
        """
        term = (term or "").strip()
        if not term:
            return await self.refresh()

        try:
            payload = await self._session.ledger.query(
                self._session.contract_address, search_listings_query(term, self._limit)
            )
            results = listings_from_response(payload, "search_listings_by_title")
        except LedgerQueryError as exc:
            logger.warning("listing_search_failed", term=term, error=str(exc))
            await self.refresh()
            self._listings = [listing for listing in self._listings if listing.matches_title(term)]
            return self.listings

        self._listings = results
        logger.info("listing_search_completed", term=term, count=len(results))
        return self.listings

    async def fetch_listing(self, listing_id: int) -> Listing | None:
        """Query one listing; None when the contract does not know it."""
        try:
            payload = await self._session.ledger.query(
                self._session.contract_address, listing_query(listing_id)
            )
        except LedgerNotFoundError:
            return None
        listing = listing_from_response(payload)

        self._listings = [listing if l.listing_id == listing_id else l for l in self._listings]
        return listing

    # -------------------------------------------------------------------------
    # In-memory views
    # -------------------------------------------------------------------------

    def get(self, listing_id: int) -> Listing | None:
        for listing in self._listings:
            if listing.listing_id == listing_id:
                return listing
        return None

    def sorted(self, order: SortOrder = SortOrder.NEWEST) -> list[Listing]:
        if order is SortOrder.PRICE_ASC:
            return sorted(self._listings, key=lambda l: l.price)
        if order is SortOrder.PRICE_DESC:
            return sorted(self._listings, key=lambda l: l.price, reverse=True)
        return sorted(self._listings, key=lambda l: l.listing_id, reverse=True)

    def page_count(self, page_size: int = DEFAULT_PAGE_SIZE) -> int:
        _check_page_size(page_size)
        return math.ceil(len(self._listings) / page_size)

    def page(
        self,
        number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        order: SortOrder = SortOrder.NEWEST,
    ) -> list[Listing]:
        """Return one 1-based page of the sorted snapshot; past the end is empty."""
        _check_page_size(page_size)
        if number < 1:
            raise InvalidPageError(f"Page numbers start at 1; got {number}.")
        start = (number - 1) * page_size
        return self.sorted(order)[start : start + page_size]


def _check_page_size(page_size: int) -> None:
    if page_size not in PAGE_SIZES:
        raise InvalidPageError(f"Page size must be one of {list(PAGE_SIZES)}; got {page_size}.")
