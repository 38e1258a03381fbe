from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.ledger_client import LedgerExecuteError
from src.application.schemas.ledger_messages import create_listing_msg
from src.application.services.listing_query_cache import ListingQueryCache
from src.application.services.media_pipeline import MediaPipeline
from src.application.session import WalletSession
from src.domain.entities.media_bundle import ImageUpload
from src.domain.events.domain_events import ListingCreatedEvent
from src.domain.pricing import to_base_units

logger = structlog.get_logger(__name__)


def normalize_tags(tags: str | Sequence[str] | None) -> list[str]:
    """Accept a list or a comma-separated string; trim and drop empties."""
    if not tags:
        return []
    items = tags.split(",") if isinstance(tags, str) else tags
    return [tag.strip() for tag in items if tag and tag.strip()]


@dataclass
class CreateListingInput:
    title: str
    text: str
    contact: str
    price: str | int | float | Decimal  # display units, e.g. "2.5"
    tags: str | list[str] | None = None
    images: list[ImageUpload] = field(default_factory=list)


@dataclass
class CreateListingOutput:
    price: int  # base units submitted to the contract
    media_ref: str
    tags: list[str]
    transaction_hash: str | None = None


class CreateListing:
    """
    Use case: Publish a new listing.

    Images are pinned and bundled first; a media failure aborts before the
    contract is called, so no listing ever points at a missing manifest.
    """

    def __init__(
        self,
        session: WalletSession,
        cache: ListingQueryCache,
        media_pipeline: MediaPipeline,
        event_publisher: EventPublisher,
        denomination_factor: int,
    ) -> None:
        self._session = session
        self._cache = cache
        self._media_pipeline = media_pipeline
        self._event_publisher = event_publisher
        self._denomination_factor = denomination_factor

    async def execute(self, input_data: CreateListingInput) -> CreateListingOutput:
        seller = self._session.require_signer()
        price = to_base_units(input_data.price, self._denomination_factor)
        tags = normalize_tags(input_data.tags)

        media_ref = ""
        if input_data.images:
            # May raise MediaBatchSizeError / MediaUploadError
            media_ref = await self._media_pipeline.compose(input_data.images)

        msg = create_listing_msg(
            title=input_data.title,
            media_ref=media_ref,
            text=input_data.text,
            tags=tags,
            contact=input_data.contact,
            price=price,
        )
        try:
            result = await self._session.ledger.execute(seller, self._session.contract_address, msg)
        except LedgerExecuteError as exc:
            logger.error(
                "listing_create_failed",
                seller=seller,
                media_ref=media_ref,
                error=str(exc),
            )
            raise

        await self._cache.refresh()

        await self._event_publisher.publish(
            ListingCreatedEvent(
                seller=seller,
                title=input_data.title,
                price=price,
                media_ref=media_ref,
                transaction_hash=result.transaction_hash,
            )
        )
        logger.info(
            "listing_created",
            seller=seller,
            price=price,
            media_ref=media_ref,
            transaction_hash=result.transaction_hash,
        )

        return CreateListingOutput(
            price=price,
            media_ref=media_ref,
            tags=tags,
            transaction_hash=result.transaction_hash,
        )
