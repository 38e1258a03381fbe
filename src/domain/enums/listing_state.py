from enum import Enum


class ListingState(str, Enum):
    """All possible states in the listing escrow lifecycle."""

    ACTIVE = "ACTIVE"
    PURCHASED = "PURCHASED"
    SHIPPED = "SHIPPED"
    RECEIVED = "RECEIVED"
    ARBITRATION_REQUESTED = "ARBITRATION_REQUESTED"
    CANCELLED = "CANCELLED"
    DELETED = "DELETED"

    @property
    def is_terminal(self) -> bool:
        """Terminal states cannot be transitioned out of.

        Arbitration is resolved outside this system, so it counts as terminal.
        """
        return self in (
            ListingState.RECEIVED,
            ListingState.ARBITRATION_REQUESTED,
            ListingState.CANCELLED,
            ListingState.DELETED,
        )

    @property
    def releases_media(self) -> bool:
        """Entering one of these states means the listing's images are no longer needed."""
        return self in (ListingState.RECEIVED, ListingState.DELETED)
