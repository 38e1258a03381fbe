from collections.abc import Callable
from dataclasses import dataclass

from src.domain.entities.listing import Listing
from src.domain.enums.listing_event import ListingEvent, Role
from src.domain.enums.listing_state import ListingState


@dataclass(frozen=True)
class TransitionRule:
    to_state: ListingState
    roles: frozenset[Role]
    guard: Callable[[Listing], bool]
    guard_description: str


# (from_state, event) -> rule. Anything not listed is not a legal transition.
TRANSITIONS: dict[tuple[ListingState, ListingEvent], TransitionRule] = {
    (ListingState.ACTIVE, ListingEvent.PURCHASE): TransitionRule(
        to_state=ListingState.PURCHASED,
        roles=frozenset({Role.BUYER, Role.OTHER}),
        guard=lambda listing: not listing.bought,
        guard_description="listing is already bought",
    ),
    (ListingState.ACTIVE, ListingEvent.DELETE): TransitionRule(
        to_state=ListingState.DELETED,
        roles=frozenset({Role.SELLER}),
        guard=lambda listing: not listing.bought,
        guard_description="listing is already bought",
    ),
    (ListingState.PURCHASED, ListingEvent.MARK_SHIPPED): TransitionRule(
        to_state=ListingState.SHIPPED,
        roles=frozenset({Role.SELLER}),
        guard=lambda listing: not listing.shipped,
        guard_description="listing is already shipped",
    ),
    (ListingState.PURCHASED, ListingEvent.SELLER_CANCEL): TransitionRule(
        to_state=ListingState.CANCELLED,
        roles=frozenset({Role.SELLER}),
        guard=lambda listing: not listing.shipped,
        guard_description="listing is already shipped",
    ),
    (ListingState.PURCHASED, ListingEvent.BUYER_CANCEL): TransitionRule(
        to_state=ListingState.CANCELLED,
        roles=frozenset({Role.BUYER}),
        guard=lambda listing: not listing.shipped,
        guard_description="listing is already shipped",
    ),
    (ListingState.SHIPPED, ListingEvent.MARK_RECEIVED): TransitionRule(
        to_state=ListingState.RECEIVED,
        roles=frozenset({Role.BUYER}),
        guard=lambda listing: not listing.received,
        guard_description="listing is already received",
    ),
    (ListingState.SHIPPED, ListingEvent.REQUEST_ARBITRATION): TransitionRule(
        to_state=ListingState.ARBITRATION_REQUESTED,
        roles=frozenset({Role.BUYER, Role.SELLER}),
        guard=lambda listing: not listing.arbitration_requested,
        guard_description="arbitration is already requested",
    ),
}


class TransitionRejectedError(Exception):
    """Base class for transitions refused locally, before any ledger call."""


class InvalidStateTransitionError(TransitionRejectedError):
    """Raised when an event is not legal from the listing's current state."""

    def __init__(self, from_state: ListingState, event: ListingEvent, detail: str | None = None) -> None:
        self.from_state = from_state
        self.event = event
        allowed = [e.value for (s, e) in TRANSITIONS if s == from_state]
        message = f"Invalid transition: {event.value} from {from_state.value}."
        if detail:
            message += f" Guard failed: {detail}."
        super().__init__(f"{message} Allowed events: {allowed}")


class ActorNotPermittedError(TransitionRejectedError):
    """Raised when the acting identity does not hold the role the event requires."""

    def __init__(self, event: ListingEvent, role: Role, actor: str) -> None:
        self.event = event
        self.role = role
        self.actor = actor
        super().__init__(f"{actor or '<anonymous>'} acting as {role.value} may not {event.value}.")


class LifecycleStateMachine:
    """
    Validates listing transitions against the escrow rules.

    Stateless: every call takes the snapshot and the acting identity explicitly.
    The contract remains the final arbiter; passing validation here only means
    the ledger call is worth issuing.
    """

    def can_transition(self, listing: Listing, event: ListingEvent, actor: str) -> bool:
        try:
            self.validate_transition(listing, event, actor)
        except TransitionRejectedError:
            return False
        return True

    def validate_transition(self, listing: Listing, event: ListingEvent, actor: str) -> ListingState:
        """Return the target state, or raise TransitionRejectedError."""
        from_state = listing.state
        rule = TRANSITIONS.get((from_state, event))
        if rule is None:
            raise InvalidStateTransitionError(from_state, event)

        role = listing.role_of(actor)
        if role not in rule.roles:
            raise ActorNotPermittedError(event, role, actor)

        if not rule.guard(listing):
            raise InvalidStateTransitionError(from_state, event, rule.guard_description)

        return rule.to_state

    def get_allowed_events(self, listing: Listing, actor: str) -> list[ListingEvent]:
        """Events the actor may issue on this listing, in declaration order."""
        return [event for event in ListingEvent if self.can_transition(listing, event, actor)]
