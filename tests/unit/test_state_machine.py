"""Unit tests for the lifecycle state machine."""
import pytest

from src.domain.entities.listing import Listing
from src.domain.enums.listing_event import ListingEvent
from src.domain.enums.listing_state import ListingState
from src.domain.state_machine.lifecycle_state_machine import (
    ActorNotPermittedError,
    InvalidStateTransitionError,
    LifecycleStateMachine,
)

SELLER = "cosmos1seller"
BUYER = "cosmos1buyer"
STRANGER = "cosmos1stranger"


def _listing(**flags) -> Listing:  # type: ignore[no-untyped-def]
    bought = flags.get("bought", False)
    return Listing(
        listing_id=7,
        title="Red Boots",
        seller=SELLER,
        buyer=BUYER if bought else None,
        price=2_500_000,
        **flags,
    )


ACTIVE = dict()
PURCHASED = dict(bought=True)
SHIPPED = dict(bought=True, shipped=True)
RECEIVED = dict(bought=True, shipped=True, received=True)
ARBITRATION = dict(bought=True, shipped=True, arbitration_requested=True)


@pytest.fixture()
def sm() -> LifecycleStateMachine:
    return LifecycleStateMachine()


class TestValidTransitions:
    def test_stranger_can_purchase_active(self, sm: LifecycleStateMachine) -> None:
        target = sm.validate_transition(_listing(**ACTIVE), ListingEvent.PURCHASE, STRANGER)
        assert target == ListingState.PURCHASED

    def test_seller_can_delete_active(self, sm: LifecycleStateMachine) -> None:
        target = sm.validate_transition(_listing(**ACTIVE), ListingEvent.DELETE, SELLER)
        assert target == ListingState.DELETED

    def test_seller_can_mark_shipped(self, sm: LifecycleStateMachine) -> None:
        target = sm.validate_transition(_listing(**PURCHASED), ListingEvent.MARK_SHIPPED, SELLER)
        assert target == ListingState.SHIPPED

    def test_seller_can_cancel_sale(self, sm: LifecycleStateMachine) -> None:
        target = sm.validate_transition(_listing(**PURCHASED), ListingEvent.SELLER_CANCEL, SELLER)
        assert target == ListingState.CANCELLED

    def test_buyer_can_cancel_purchase(self, sm: LifecycleStateMachine) -> None:
        target = sm.validate_transition(_listing(**PURCHASED), ListingEvent.BUYER_CANCEL, BUYER)
        assert target == ListingState.CANCELLED

    def test_buyer_can_mark_received(self, sm: LifecycleStateMachine) -> None:
        target = sm.validate_transition(_listing(**SHIPPED), ListingEvent.MARK_RECEIVED, BUYER)
        assert target == ListingState.RECEIVED

    @pytest.mark.parametrize("actor", [BUYER, SELLER])
    def test_either_party_can_request_arbitration(self, sm: LifecycleStateMachine, actor: str) -> None:
        target = sm.validate_transition(_listing(**SHIPPED), ListingEvent.REQUEST_ARBITRATION, actor)
        assert target == ListingState.ARBITRATION_REQUESTED


class TestRoleGuards:
    def test_seller_cannot_purchase_own_listing(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(ActorNotPermittedError):
            sm.validate_transition(_listing(**ACTIVE), ListingEvent.PURCHASE, SELLER)

    def test_stranger_cannot_delete(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(ActorNotPermittedError):
            sm.validate_transition(_listing(**ACTIVE), ListingEvent.DELETE, STRANGER)

    def test_buyer_cannot_mark_shipped(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(ActorNotPermittedError):
            sm.validate_transition(_listing(**PURCHASED), ListingEvent.MARK_SHIPPED, BUYER)

    def test_seller_cannot_mark_received(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(ActorNotPermittedError):
            sm.validate_transition(_listing(**SHIPPED), ListingEvent.MARK_RECEIVED, SELLER)

    def test_stranger_cannot_request_arbitration(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(ActorNotPermittedError):
            sm.validate_transition(_listing(**SHIPPED), ListingEvent.REQUEST_ARBITRATION, STRANGER)

    def test_anonymous_actor_is_not_the_seller(self, sm: LifecycleStateMachine) -> None:
        listing = Listing(listing_id=1, seller="")
        with pytest.raises(ActorNotPermittedError):
            sm.validate_transition(listing, ListingEvent.DELETE, "")


class TestStateGuards:
    def test_cannot_delete_bought_listing(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(InvalidStateTransitionError):
            sm.validate_transition(_listing(**PURCHASED), ListingEvent.DELETE, SELLER)

    def test_cannot_purchase_bought_listing(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(InvalidStateTransitionError):
            sm.validate_transition(_listing(**PURCHASED), ListingEvent.PURCHASE, STRANGER)

    def test_cannot_cancel_after_shipping(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(InvalidStateTransitionError):
            sm.validate_transition(_listing(**SHIPPED), ListingEvent.SELLER_CANCEL, SELLER)
        with pytest.raises(InvalidStateTransitionError):
            sm.validate_transition(_listing(**SHIPPED), ListingEvent.BUYER_CANCEL, BUYER)

    def test_cannot_receive_before_shipping(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(InvalidStateTransitionError):
            sm.validate_transition(_listing(**PURCHASED), ListingEvent.MARK_RECEIVED, BUYER)

    @pytest.mark.parametrize("flags", [RECEIVED, ARBITRATION])
    def test_terminal_snapshots_allow_nothing(self, sm: LifecycleStateMachine, flags: dict) -> None:  # type: ignore[type-arg]
        listing = _listing(**flags)
        for actor in (SELLER, BUYER, STRANGER):
            assert sm.get_allowed_events(listing, actor) == []

    def test_error_message_names_state_and_event(self, sm: LifecycleStateMachine) -> None:
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            sm.validate_transition(_listing(**PURCHASED), ListingEvent.DELETE, SELLER)
        assert "PURCHASED" in str(exc_info.value)
        assert "delete_listing" in str(exc_info.value)


class TestGetAllowedEvents:
    def test_active_for_stranger(self, sm: LifecycleStateMachine) -> None:
        assert sm.get_allowed_events(_listing(**ACTIVE), STRANGER) == [ListingEvent.PURCHASE]

    def test_active_for_seller(self, sm: LifecycleStateMachine) -> None:
        assert sm.get_allowed_events(_listing(**ACTIVE), SELLER) == [ListingEvent.DELETE]

    def test_purchased_for_seller(self, sm: LifecycleStateMachine) -> None:
        allowed = sm.get_allowed_events(_listing(**PURCHASED), SELLER)
        assert set(allowed) == {ListingEvent.MARK_SHIPPED, ListingEvent.SELLER_CANCEL}

    def test_shipped_for_buyer(self, sm: LifecycleStateMachine) -> None:
        allowed = sm.get_allowed_events(_listing(**SHIPPED), BUYER)
        assert set(allowed) == {ListingEvent.MARK_RECEIVED, ListingEvent.REQUEST_ARBITRATION}


class TestListingState:
    def test_terminal_states(self) -> None:
        assert ListingState.RECEIVED.is_terminal
        assert ListingState.CANCELLED.is_terminal
        assert ListingState.DELETED.is_terminal
        assert ListingState.ARBITRATION_REQUESTED.is_terminal
        assert not ListingState.ACTIVE.is_terminal

    def test_media_is_released_only_on_received_and_deleted(self) -> None:
        releasing = {state for state in ListingState if state.releases_media}
        assert releasing == {ListingState.RECEIVED, ListingState.DELETED}
