"""Order state machine tests."""

import pytest

from delivery_hub.core.errors import InvalidTransitionError
from delivery_hub.services.order_status import (
    Actor,
    OrderEvent,
    OrderStatus,
    SideEffect,
    actor_for_role,
    allowed_events,
    can_transition,
    decide,
    is_terminal,
    status_step,
)


@pytest.mark.parametrize("status", ["delivered", "cancelled"])
def test_terminal_statuses_reject_every_event(status: str) -> None:
    for actor in Actor:
        for event in OrderEvent:
            with pytest.raises(InvalidTransitionError):
                decide(status, actor, event)
        assert allowed_events(status, actor) == []


def test_happy_path_is_walkable_with_the_right_actors() -> None:
    steps = [
        ("pending", "restaurant", "confirm", "confirmed"),
        ("confirmed", "restaurant", "start_preparing", "preparing"),
        ("preparing", "restaurant", "mark_ready", "ready"),
        ("ready", "driver", "mark_en_route", "picked_up"),
        ("picked_up", "driver", "finish_delivery", "delivered"),
    ]
    for current, actor, event, expected in steps:
        transition = decide(current, actor, event)
        assert transition.to_status == OrderStatus(expected)
        assert transition.changes_status


def test_cancel_only_from_pending_or_confirmed() -> None:
    assert decide("pending", "customer", "cancel").to_status == OrderStatus.CANCELLED
    assert decide("confirmed", "admin", "cancel").to_status == OrderStatus.CANCELLED
    for status in ("preparing", "ready", "picked_up"):
        with pytest.raises(InvalidTransitionError):
            decide(status, "customer", "cancel")


def test_cancel_records_reason_and_notifies_both_parties() -> None:
    transition = decide("pending", "customer", "cancel")
    assert transition.side_effects == (SideEffect.RECORD_CANCELLATION, SideEffect.NOTIFY_AFFECTED_PARTIES)


def test_claim_from_pending_confirms_but_later_claims_keep_status() -> None:
    first = decide("pending", "driver", "claim")
    assert first.to_status == OrderStatus.CONFIRMED
    assert SideEffect.ASSIGN_DRIVER in first.side_effects

    late = decide("ready", "driver", "claim")
    assert late.to_status == OrderStatus.READY
    assert not late.changes_status


def test_actors_cannot_fire_events_of_other_roles() -> None:
    with pytest.raises(InvalidTransitionError):
        decide("pending", "customer", "confirm")
    with pytest.raises(InvalidTransitionError):
        decide("picked_up", "restaurant", "finish_delivery")
    with pytest.raises(InvalidTransitionError):
        decide("confirmed", "driver", "start_preparing")


def test_unknown_values_are_rejected_as_invalid_transitions() -> None:
    with pytest.raises(InvalidTransitionError):
        decide("lost", "admin", "confirm")
    with pytest.raises(InvalidTransitionError):
        decide("pending", "robot", "confirm")
    with pytest.raises(InvalidTransitionError):
        decide("pending", "admin", "teleport")


def test_mark_ready_notifies_drivers_and_delivery_attaches_proof() -> None:
    assert SideEffect.NOTIFY_ELIGIBLE_DRIVERS in decide("preparing", "restaurant", "mark_ready").side_effects
    delivered = decide("picked_up", "driver", "finish_delivery")
    assert delivered.side_effects == (SideEffect.ATTACH_PROOF, SideEffect.NOTIFY_CUSTOMER, SideEffect.PROMPT_RATING)


def test_can_transition_matches_the_table() -> None:
    assert can_transition("pending", "confirmed")
    assert can_transition("confirmed", "picked_up")
    assert not can_transition("cancelled", "confirmed")
    assert not can_transition("delivered", "pending")
    assert not can_transition("pending", "delivered")
    assert not can_transition("pending", "unknown")


def test_allowed_events_per_actor() -> None:
    assert allowed_events("pending", "customer") == [OrderEvent.CANCEL]
    assert allowed_events("confirmed", "driver") == [OrderEvent.CLAIM, OrderEvent.MARK_EN_ROUTE]
    assert allowed_events("confirmed", "restaurant") == [OrderEvent.START_PREPARING]


def test_status_step_and_helpers() -> None:
    assert status_step("pending") == 0
    assert status_step("delivered") == 5
    assert status_step("cancelled") == -1
    assert is_terminal("delivered")
    assert not is_terminal("ready")
    assert actor_for_role("DRIVER") == Actor.DRIVER
