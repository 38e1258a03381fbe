"""
Listing lifecycle controller: one entry point per participant action.

Thin facade over the create / transition use cases so callers speak in terms
of "purchase" or "mark received" instead of event enums.
"""
from src.application.interfaces.event_publisher import EventPublisher
from src.application.services.listing_query_cache import ListingQueryCache
from src.application.services.media_pipeline import MediaPipeline
from src.application.session import WalletSession
from src.application.use_cases.create_listing import (
    CreateListing,
    CreateListingInput,
    CreateListingOutput,
)
from src.application.use_cases.transition_listing_state import (
    TransitionListingState,
    TransitionListingStateInput,
    TransitionListingStateOutput,
)
from src.domain.entities.listing import Listing
from src.domain.enums.listing_event import ListingEvent
from src.domain.state_machine.lifecycle_state_machine import LifecycleStateMachine


class ListingLifecycleController:
    def __init__(
        self,
        session: WalletSession,
        cache: ListingQueryCache,
        media_pipeline: MediaPipeline,
        event_publisher: EventPublisher,
        *,
        denom: str,
        denomination_factor: int,
    ) -> None:
        self._session = session
        self._state_machine = LifecycleStateMachine()
        self._create = CreateListing(
            session, cache, media_pipeline, event_publisher, denomination_factor
        )
        self._transition = TransitionListingState(
            session, cache, media_pipeline, event_publisher, denom, self._state_machine
        )

    async def create(self, input_data: CreateListingInput) -> CreateListingOutput:
        return await self._create.execute(input_data)

    async def purchase(self, listing_id: int) -> TransitionListingStateOutput:
        return await self._apply(listing_id, ListingEvent.PURCHASE)

    async def delete(self, listing_id: int) -> TransitionListingStateOutput:
        return await self._apply(listing_id, ListingEvent.DELETE)

    async def mark_shipped(self, listing_id: int) -> TransitionListingStateOutput:
        return await self._apply(listing_id, ListingEvent.MARK_SHIPPED)

    async def seller_cancel(self, listing_id: int) -> TransitionListingStateOutput:
        return await self._apply(listing_id, ListingEvent.SELLER_CANCEL)

    async def buyer_cancel(self, listing_id: int) -> TransitionListingStateOutput:
        return await self._apply(listing_id, ListingEvent.BUYER_CANCEL)

    async def mark_received(self, listing_id: int) -> TransitionListingStateOutput:
        return await self._apply(listing_id, ListingEvent.MARK_RECEIVED)

    async def request_arbitration(self, listing_id: int) -> TransitionListingStateOutput:
        return await self._apply(listing_id, ListingEvent.REQUEST_ARBITRATION)

    def allowed_events(self, listing: Listing) -> list[ListingEvent]:
        return self._state_machine.get_allowed_events(listing, self._session.address)

    async def _apply(self, listing_id: int, event: ListingEvent) -> TransitionListingStateOutput:
        return await self._transition.execute(
            TransitionListingStateInput(listing_id=listing_id, event=event)
        )
