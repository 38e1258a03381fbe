from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.enums.listing_event import ListingEvent
from src.domain.enums.listing_state import ListingState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ListingCreatedEvent(DomainEvent):
    """Published once the contract has accepted a create_listing call."""

    seller: str = ""
    title: str = ""
    price: int = 0
    media_ref: str = ""
    transaction_hash: str | None = None


@dataclass(frozen=True)
class ListingStateChangedEvent(DomainEvent):
    """Published whenever the contract commits a listing transition."""

    listing_id: int = 0
    event: ListingEvent = ListingEvent.PURCHASE
    from_state: ListingState = ListingState.ACTIVE
    to_state: ListingState = ListingState.ACTIVE
    triggered_by: str = ""
    transaction_hash: str | None = None


@dataclass(frozen=True)
class MediaReleasedEvent(DomainEvent):
    """Published after a release attempt, whether or not every unpin succeeded."""

    manifest_address: str = ""
    released_cids: tuple[str, ...] = ()
    failed_cids: tuple[str, ...] = ()
