from dataclasses import dataclass, field

import structlog

from src.application.services.listing_query_cache import ListingQueryCache
from src.application.services.media_pipeline import MediaPipeline
from src.application.session import WalletSession
from src.application.use_cases.transition_listing_state import ListingNotFoundError
from src.domain.entities.listing import Listing
from src.domain.enums.listing_event import ListingEvent
from src.domain.state_machine.lifecycle_state_machine import LifecycleStateMachine

logger = structlog.get_logger(__name__)


@dataclass
class GetListingDetailOutput:
    listing: Listing
    image_urls: list[str] = field(default_factory=list)
    allowed_events: list[ListingEvent] = field(default_factory=list)


class GetListingDetail:
    """Use case: Fetch one listing fresh from the contract, with its images and the
    actions open to the connected wallet."""

    def __init__(
        self,
        session: WalletSession,
        cache: ListingQueryCache,
        media_pipeline: MediaPipeline,
        state_machine: LifecycleStateMachine | None = None,
    ) -> None:
        self._session = session
        self._cache = cache
        self._media_pipeline = media_pipeline
        self._state_machine = state_machine or LifecycleStateMachine()

    async def execute(self, listing_id: int) -> GetListingDetailOutput:
        listing = await self._cache.fetch_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        image_urls: list[str] = []
        if listing.media_ref:
            try:
                image_urls = (await self._media_pipeline.load(listing.media_ref)).image_urls
            except Exception as exc:
                logger.warning(
                    "listing_images_unavailable",
                    listing_id=listing_id,
                    media_ref=listing.media_ref,
                    error=str(exc),
                )

        return GetListingDetailOutput(
            listing=listing,
            image_urls=image_urls,
            allowed_events=self._state_machine.get_allowed_events(listing, self._session.address),
        )
