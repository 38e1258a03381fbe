from enum import Enum


class ListingEvent(str, Enum):
    """Actions a participant can take on an existing listing.

    The value is the contract execute message issued for the action.
    """

    PURCHASE = "purchase"
    DELETE = "delete_listing"
    MARK_SHIPPED = "sign_shipped"
    SELLER_CANCEL = "seller_cancel_sale"
    BUYER_CANCEL = "cancel_purchase"
    MARK_RECEIVED = "sign_received"
    REQUEST_ARBITRATION = "request_arbitration"

    @property
    def message_name(self) -> str:
        return self.value


class Role(str, Enum):
    """How the acting identity relates to a listing."""

    SELLER = "seller"
    BUYER = "buyer"
    OTHER = "other"
