from dataclasses import dataclass

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.ledger_client import LedgerExecuteError
from src.application.schemas.ledger_messages import listing_action_msg
from src.application.services.listing_query_cache import ListingQueryCache
from src.application.services.media_pipeline import MediaPipeline, ReleaseReport
from src.application.session import WalletSession
from src.domain.enums.listing_event import ListingEvent
from src.domain.enums.listing_state import ListingState
from src.domain.events.domain_events import (
    DomainEvent,
    ListingStateChangedEvent,
    MediaReleasedEvent,
)
from src.domain.pricing import Coin
from src.domain.state_machine.lifecycle_state_machine import LifecycleStateMachine

logger = structlog.get_logger(__name__)


class ListingNotFoundError(Exception):
    def __init__(self, listing_id: int) -> None:
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} not found.")


@dataclass
class TransitionListingStateInput:
    listing_id: int
    event: ListingEvent


@dataclass
class TransitionListingStateOutput:
    listing_id: int
    event: ListingEvent
    from_state: ListingState
    to_state: ListingState
    transaction_hash: str | None = None
    media_release: ReleaseReport | None = None


class TransitionListingState:
    """
    Use case: Move a listing through the escrow lifecycle.

    Checks the event against the last observed snapshot, issues exactly one
    signed contract call, releases the media bundle when the listing no longer
    needs it, refreshes the query cache and only then reports success. Nothing
    is mutated locally; the contract's answer is the outcome.
    """

    def __init__(
        self,
        session: WalletSession,
        cache: ListingQueryCache,
        media_pipeline: MediaPipeline,
        event_publisher: EventPublisher,
        denom: str,
        state_machine: LifecycleStateMachine | None = None,
    ) -> None:
        self._session = session
        self._cache = cache
        self._media_pipeline = media_pipeline
        self._event_publisher = event_publisher
        self._denom = denom
        self._state_machine = state_machine or LifecycleStateMachine()

    async def execute(
        self, input_data: TransitionListingStateInput
    ) -> TransitionListingStateOutput:
        actor = self._session.require_signer()

        listing = self._cache.get(input_data.listing_id)
        if listing is None:
            listing = await self._cache.fetch_listing(input_data.listing_id)
        if listing is None:
            raise ListingNotFoundError(input_data.listing_id)

        from_state = listing.state

        # May raise TransitionRejectedError; no ledger call has been made yet
        to_state = self._state_machine.validate_transition(listing, input_data.event, actor)

        funds = None
        if input_data.event is ListingEvent.PURCHASE:
            funds = [Coin(amount=str(listing.price), denom=self._denom)]

        try:
            result = await self._session.ledger.execute(
                actor,
                self._session.contract_address,
                listing_action_msg(input_data.event, listing.listing_id),
                funds,
            )
        except LedgerExecuteError as exc:
            logger.error(
                "listing_transition_failed",
                listing_id=listing.listing_id,
                listing_event=input_data.event.value,
                from_state=from_state.value,
                error=str(exc),
            )
            # The contract's view wins; refetch so the next guard check sees it
            await self._cache.refresh()
            raise

        release_report = None
        if to_state.releases_media and listing.media_ref:
            release_report = await self._media_pipeline.release(listing.media_ref)

        await self._cache.refresh()

        events: list[DomainEvent] = [
            ListingStateChangedEvent(
                listing_id=listing.listing_id,
                event=input_data.event,
                from_state=from_state,
                to_state=to_state,
                triggered_by=actor,
                transaction_hash=result.transaction_hash,
            )
        ]
        if release_report is not None and release_report.attempted:
            events.append(
                MediaReleasedEvent(
                    manifest_address=release_report.manifest_address,
                    released_cids=tuple(release_report.released),
                    failed_cids=tuple(release_report.failed),
                )
            )
        await self._event_publisher.publish_many(events)

        logger.info(
            "listing_transitioned",
            listing_id=listing.listing_id,
            listing_event=input_data.event.value,
            from_state=from_state.value,
            to_state=to_state.value,
            triggered_by=actor,
            transaction_hash=result.transaction_hash,
        )

        return TransitionListingStateOutput(
            listing_id=listing.listing_id,
            event=input_data.event,
            from_state=from_state,
            to_state=to_state,
            transaction_hash=result.transaction_hash,
            media_release=release_report,
        )
