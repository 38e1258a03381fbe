from pydantic import BaseModel

from src.application.services.listing_query_cache import SortOrder
from src.domain.enums.listing_event import ListingEvent
from src.domain.enums.listing_state import ListingState


class ListingResponse(BaseModel):
    listing_id: int
    title: str
    text: str
    tags: list[str]
    seller: str
    buyer: str | None = None
    contact: str
    price: int
    media_ref: str
    bought: bool
    shipped: bool
    received: bool
    arbitration_requested: bool
    state: ListingState


class PaginatedListingsResponse(BaseModel):
    listings: list[ListingResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    sort: SortOrder


class ListingDetailResponse(BaseModel):
    listing: ListingResponse
    image_urls: list[str]
    allowed_actions: list[ListingEvent]


class CreateListingResponse(BaseModel):
    price: int
    media_ref: str
    tags: list[str]
    transaction_hash: str | None = None


class TransitionResponse(BaseModel):
    listing_id: int
    event: ListingEvent
    from_state: ListingState
    to_state: ListingState
    transaction_hash: str | None = None
    media_released: list[str] = []
    media_release_failed: list[str] = []
