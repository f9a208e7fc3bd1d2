"""Order status state machine shared by the admin, driver and customer clients.

Everything here is pure: no database access and no side effects. The
controller in ``order_controller`` asks :func:`decide` whether an event is
legal and which side effects must fire, then performs the conditional write.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from delivery_hub.core.errors import InvalidTransitionError


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Actor(str, Enum):
    ADMIN = "admin"
    RESTAURANT = "restaurant"
    DRIVER = "driver"
    CUSTOMER = "customer"


class OrderEvent(str, Enum):
    CONFIRM = "confirm"
    CLAIM = "claim"
    CANCEL = "cancel"
    START_PREPARING = "start_preparing"
    MARK_READY = "mark_ready"
    MARK_EN_ROUTE = "mark_en_route"
    FINISH_DELIVERY = "finish_delivery"


class SideEffect(str, Enum):
    ASSIGN_DRIVER = "assign_driver"
    NOTIFY_CUSTOMER = "notify_customer"
    RECORD_CANCELLATION = "record_cancellation"
    NOTIFY_AFFECTED_PARTIES = "notify_affected_parties"
    NOTIFY_ELIGIBLE_DRIVERS = "notify_eligible_drivers"
    BEGIN_ETA = "begin_eta"
    ATTACH_PROOF = "attach_proof"
    PROMPT_RATING = "prompt_rating"


ORDER_STATUSES: list[str] = [status.value for status in OrderStatus]
HAPPY_PATH: list[OrderStatus] = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.PICKED_UP,
    OrderStatus.DELIVERED,
]
TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})
CANCELLABLE_STATUSES: frozenset[OrderStatus] = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})
# Unassigned orders a driver may still pick from the available list.
CLAIMABLE_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY}
)


@dataclass(frozen=True)
class Rule:
    sources: frozenset[OrderStatus]
    event: OrderEvent
    actors: frozenset[Actor]
    target: OrderStatus | None  # None keeps the current status
    side_effects: tuple[SideEffect, ...]


@dataclass(frozen=True)
class Transition:
    """Outcome of a legal event: where the order goes and what must fire."""

    from_status: OrderStatus
    event: OrderEvent
    actor: Actor
    to_status: OrderStatus
    side_effects: tuple[SideEffect, ...]

    @property
    def changes_status(self) -> bool:
        return self.from_status != self.to_status


RULES: tuple[Rule, ...] = (
    Rule(
        frozenset({OrderStatus.PENDING}),
        OrderEvent.CONFIRM,
        frozenset({Actor.ADMIN, Actor.RESTAURANT}),
        OrderStatus.CONFIRMED,
        (SideEffect.NOTIFY_CUSTOMER,),
    ),
    Rule(
        frozenset({OrderStatus.PENDING}),
        OrderEvent.CLAIM,
        frozenset({Actor.DRIVER}),
        OrderStatus.CONFIRMED,
        (SideEffect.ASSIGN_DRIVER, SideEffect.NOTIFY_CUSTOMER),
    ),
    Rule(
        frozenset({OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY}),
        OrderEvent.CLAIM,
        frozenset({Actor.DRIVER}),
        None,
        (SideEffect.ASSIGN_DRIVER, SideEffect.NOTIFY_CUSTOMER),
    ),
    Rule(
        CANCELLABLE_STATUSES,
        OrderEvent.CANCEL,
        frozenset({Actor.CUSTOMER, Actor.ADMIN}),
        OrderStatus.CANCELLED,
        (SideEffect.RECORD_CANCELLATION, SideEffect.NOTIFY_AFFECTED_PARTIES),
    ),
    Rule(
        frozenset({OrderStatus.CONFIRMED}),
        OrderEvent.START_PREPARING,
        frozenset({Actor.RESTAURANT, Actor.ADMIN}),
        OrderStatus.PREPARING,
        (SideEffect.NOTIFY_CUSTOMER,),
    ),
    Rule(
        frozenset({OrderStatus.PREPARING}),
        OrderEvent.MARK_READY,
        frozenset({Actor.RESTAURANT, Actor.ADMIN}),
        OrderStatus.READY,
        (SideEffect.NOTIFY_CUSTOMER, SideEffect.NOTIFY_ELIGIBLE_DRIVERS),
    ),
    Rule(
        frozenset({OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY}),
        OrderEvent.MARK_EN_ROUTE,
        frozenset({Actor.DRIVER}),
        OrderStatus.PICKED_UP,
        (SideEffect.NOTIFY_CUSTOMER, SideEffect.BEGIN_ETA),
    ),
    Rule(
        frozenset({OrderStatus.PICKED_UP}),
        OrderEvent.FINISH_DELIVERY,
        frozenset({Actor.DRIVER}),
        OrderStatus.DELIVERED,
        (SideEffect.ATTACH_PROOF, SideEffect.NOTIFY_CUSTOMER, SideEffect.PROMPT_RATING),
    ),
)


def _find_rule(current: OrderStatus, actor: Actor, event: OrderEvent) -> Rule | None:
    if current in TERMINAL_STATUSES:
        return None
    for rule in RULES:
        if rule.event == event and current in rule.sources and actor in rule.actors:
            return rule
    return None


def decide(current: str | OrderStatus, actor: str | Actor, event: str | OrderEvent) -> Transition:
    """Return the transition for ``event`` or raise :class:`InvalidTransitionError`.

    Unknown status, actor or event values are rejected the same way as an
    illegal combination, so callers never have to pre-validate strings coming
    from a form or a request body.
    """
    try:
        current_status = OrderStatus(current)
        actor_value = Actor(actor)
        event_value = OrderEvent(event)
    except ValueError as exc:
        raise InvalidTransitionError(str(current), str(event), str(actor)) from exc

    rule = _find_rule(current_status, actor_value, event_value)
    if rule is None:
        raise InvalidTransitionError(current_status.value, event_value.value, actor_value.value)

    return Transition(
        from_status=current_status,
        event=event_value,
        actor=actor_value,
        to_status=rule.target or current_status,
        side_effects=rule.side_effects,
    )


def is_terminal(status: str | OrderStatus) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def can_transition(current: str, new: str) -> bool:
    """Return whether some actor can move an order from current to new status."""
    try:
        current_status = OrderStatus(current)
        new_status = OrderStatus(new)
    except ValueError:
        return False
    if current_status in TERMINAL_STATUSES:
        return False
    return any(current_status in rule.sources and rule.target == new_status for rule in RULES)


def allowed_events(status: str | OrderStatus, actor: str | Actor) -> list[OrderEvent]:
    """Events the given actor may trigger from ``status``, in table order."""
    current_status = OrderStatus(status)
    actor_value = Actor(actor)
    events: list[OrderEvent] = []
    for rule in RULES:
        if current_status in TERMINAL_STATUSES:
            break
        if current_status in rule.sources and actor_value in rule.actors and rule.event not in events:
            events.append(rule.event)
    return events


def status_step(status: str | OrderStatus) -> int:
    """Index of ``status`` along the happy path; -1 for cancelled orders."""
    current_status = OrderStatus(status)
    if current_status == OrderStatus.CANCELLED:
        return -1
    return HAPPY_PATH.index(current_status)


def actor_for_role(role: str) -> Actor:
    """Map a persisted user role (``ADMIN``, ``DRIVER``...) to a state machine actor."""
    return Actor(str(role).strip().lower())
