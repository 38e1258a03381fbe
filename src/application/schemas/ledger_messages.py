"""
Query / execute message shapes of the marketplace contract.

Every response is validated against its schema before it reaches the core; a
response that does not fit is a MalformedLedgerResponseError rather than a
half-populated object.
"""
from typing import Any, TypeVar

from pydantic import BaseModel, Field, ValidationError

from src.application.interfaces.ledger_client import MalformedLedgerResponseError
from src.domain.entities.listing import Listing, ListingInvariantError
from src.domain.entities.profile import Profile
from src.domain.enums.listing_event import ListingEvent

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class ListingSchema(BaseModel):
    listing_id: int = Field(ge=0)
    listing_title: str
    external_id: str = ""
    text: str = ""
    tags: list[str] | None = None
    seller: str
    contact: str = ""
    price: int = Field(ge=0)
    buyer: str | None = None
    bought: bool
    shipped: bool
    received: bool
    arbitration_requested: bool

    def to_domain(self) -> Listing:
        return Listing(
            listing_id=self.listing_id,
            title=self.listing_title,
            text=self.text,
            tags=tuple(self.tags or ()),
            seller=self.seller,
            buyer=self.buyer,
            contact=self.contact,
            price=self.price,
            media_ref=self.external_id,
            bought=self.bought,
            shipped=self.shipped,
            received=self.received,
            arbitration_requested=self.arbitration_requested,
        )


class ListingsResponse(BaseModel):
    listings: list[ListingSchema]


class ListingResponse(BaseModel):
    listing: ListingSchema


class ProfileSchema(BaseModel):
    profile_name: str
    transaction_count: int = Field(default=0, ge=0)
    ratings: int = Field(default=0, ge=0)
    rating_count: int = Field(default=0, ge=0)
    average_rating: float | None = None

    def to_domain(self, address: str) -> Profile:
        return Profile(
            address=address,
            profile_name=self.profile_name,
            transaction_count=self.transaction_count,
            ratings=self.ratings,
            rating_count=self.rating_count,
            reported_average=self.average_rating,
        )


class ProfileResponse(BaseModel):
    profile: ProfileSchema | None = None


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def parse_response(schema: type[SchemaT], payload: Any, message_name: str) -> SchemaT:
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise MalformedLedgerResponseError(message_name, str(exc)) from exc


def listings_from_response(payload: Any, message_name: str) -> list[Listing]:
    response = parse_response(ListingsResponse, payload, message_name)
    try:
        return [item.to_domain() for item in response.listings]
    except ListingInvariantError as exc:
        raise MalformedLedgerResponseError(message_name, str(exc)) from exc


def listing_from_response(payload: Any) -> Listing:
    response = parse_response(ListingResponse, payload, "listing")
    try:
        return response.listing.to_domain()
    except ListingInvariantError as exc:
        raise MalformedLedgerResponseError("listing", str(exc)) from exc


def profile_from_response(payload: Any, address: str) -> Profile | None:
    response = parse_response(ProfileResponse, payload, "profile")
    if response.profile is None:
        return None
    return response.profile.to_domain(address)


# ---------------------------------------------------------------------------
# Message builders
# ---------------------------------------------------------------------------

def all_listings_query(limit: int, start_after: int | None = None) -> dict[str, Any]:
    return {"all_listings": {"limit": limit, "start_after": start_after}}


def search_listings_query(title: str, limit: int) -> dict[str, Any]:
    return {"search_listings_by_title": {"title": title, "limit": limit}}


def listing_query(listing_id: int) -> dict[str, Any]:
    return {"listing": {"listing_id": listing_id}}


def profile_query(address: str) -> dict[str, Any]:
    return {"profile": {"address": address}}


def create_listing_msg(
    *,
    title: str,
    media_ref: str,
    text: str,
    tags: list[str],
    contact: str,
    price: int,
) -> dict[str, Any]:
    return {
        "create_listing": {
            "listing_title": title,
            "external_id": media_ref,
            "text": text,
            "tags": tags,
            "contact": contact,
            "price": price,
        }
    }


def listing_action_msg(event: ListingEvent, listing_id: int) -> dict[str, Any]:
    return {event.message_name: {"listing_id": listing_id}}


def create_profile_msg(profile_name: str) -> dict[str, Any]:
    return {"create_profile": {"profile_name": profile_name}}


def delete_profile_msg() -> dict[str, Any]:
    return {"delete_profile": {}}
