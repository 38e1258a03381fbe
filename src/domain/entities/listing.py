from dataclasses import dataclass, field

from src.domain.enums.listing_event import Role
from src.domain.enums.listing_state import ListingState


class ListingInvariantError(ValueError):
    """Raised when a snapshot violates the escrow flag invariants."""


@dataclass(frozen=True)
class Listing:
    """
    Read-only snapshot of a listing as last returned by the ledger contract.

    The contract is the only writer. A snapshot may be stale between refetches
    and is never mutated locally; a transition is observed by fetching again.
    """

    # Identity (assigned by the contract, monotonically increasing)
    listing_id: int

    title: str = ""
    text: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)
    seller: str = ""
    buyer: str | None = None
    contact: str = ""

    # Smallest denomination unit (e.g. uatom)
    price: int = 0

    # Manifest address of the media bundle, "" when the listing has no images
    media_ref: str = ""

    # Escrow flags
    bought: bool = False
    shipped: bool = False
    received: bool = False
    arbitration_requested: bool = False

    def __post_init__(self) -> None:
        # Absent tags are normalised to an empty sequence, never None
        object.__setattr__(self, "tags", tuple(self.tags or ()))
        object.__setattr__(self, "media_ref", self.media_ref or "")
        object.__setattr__(self, "buyer", self.buyer or None)

        if self.shipped and not self.bought:
            raise ListingInvariantError(f"Listing {self.listing_id} is shipped but not bought.")
        if self.received and not self.shipped:
            raise ListingInvariantError(f"Listing {self.listing_id} is received but not shipped.")
        if self.bought != (self.buyer is not None):
            raise ListingInvariantError(
                f"Listing {self.listing_id} must have a buyer exactly when it is bought."
            )
        if self.price < 0:
            raise ListingInvariantError(f"Listing {self.listing_id} has a negative price.")

    @property
    def state(self) -> ListingState:
        """Lifecycle state implied by the escrow flags.

        CANCELLED and DELETED are never observable on a snapshot; they are only
        reported as the outcome of a transition.
        """
        if self.received:
            return ListingState.RECEIVED
        if self.arbitration_requested:
            return ListingState.ARBITRATION_REQUESTED
        if self.shipped:
            return ListingState.SHIPPED
        if self.bought:
            return ListingState.PURCHASED
        return ListingState.ACTIVE

    def role_of(self, address: str) -> Role:
        if address and address == self.seller:
            return Role.SELLER
        if address and self.buyer is not None and address == self.buyer:
            return Role.BUYER
        return Role.OTHER

    def matches_title(self, term: str) -> bool:
        return term.strip().lower() in self.title.lower()
