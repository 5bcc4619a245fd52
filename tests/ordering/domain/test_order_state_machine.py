"""Tests for the Order state machine — the transition table and the history log."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.order.events import OrderStatusChanged
from ordering.order.order import Order, OrderStatus, allowed_transitions, is_terminal
from ordering.shared.pricing import compute_pricing
from protean.exceptions import InvalidStateError

HAPPY_PATH = [
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.PICKED_UP,
    OrderStatus.COMPLETED,
]

ALLOWED = {
    OrderStatus.PENDING_PAYMENT: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.PICKED_UP, OrderStatus.CANCELLED},
    OrderStatus.PICKED_UP: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


def _make_order():
    return Order.place(
        user_id="user-001",
        store_id="store-001",
        lines=[
            {
                "product_id": "prod-001",
                "product_name": "Classic Burger",
                "quantity": 1,
                "unit_price": 10.0,
                "total_price": 10.0,
            }
        ],
        pricing=compute_pricing(10.0),
        payment_method="card",
    )


def _order_at_state(target_status):
    """Create an order and advance it to the desired state."""
    order = _make_order()
    if target_status == OrderStatus.PENDING_PAYMENT:
        return order
    if target_status == OrderStatus.CANCELLED:
        order.transition_to(OrderStatus.CANCELLED)
        return order
    for status in HAPPY_PATH:
        order.transition_to(status)
        if status == target_status:
            return order
    raise AssertionError(f"unreachable state {target_status}")


class TestTransitionTable:
    @pytest.mark.parametrize("current", list(OrderStatus))
    def test_allowed_transitions_match_table(self, current):
        assert allowed_transitions(current) == ALLOWED[current]

    @pytest.mark.parametrize(
        "current,target",
        [(c, t) for c in OrderStatus for t in OrderStatus if t not in ALLOWED[c]],
    )
    def test_transitions_outside_table_are_rejected(self, current, target):
        order = _order_at_state(current)
        history_before = len(order.status_history)
        with pytest.raises(InvalidStateError):
            order.transition_to(target)
        assert order.status == current.value
        assert len(order.status_history) == history_before

    def test_confirmed_cannot_jump_to_picked_up(self):
        order = _order_at_state(OrderStatus.CONFIRMED)
        with pytest.raises(InvalidStateError):
            order.transition_to(OrderStatus.PICKED_UP)

    def test_terminal_states(self):
        assert is_terminal(OrderStatus.COMPLETED)
        assert is_terminal(OrderStatus.CANCELLED)
        assert not is_terminal(OrderStatus.PICKED_UP)


class TestHappyPath:
    def test_full_lifecycle_records_one_entry_per_transition(self):
        order = _make_order()
        for status in HAPPY_PATH:
            order.transition_to(status, notes=f"to {status.value}")

        assert order.status == OrderStatus.COMPLETED.value
        history = order.history()
        transitions = history[1:]  # the first entry records placement
        assert len(transitions) == 5
        assert [entry.status for entry in transitions] == [s.value for s in HAPPY_PATH]
        assert [entry.sequence for entry in history] == [1, 2, 3, 4, 5, 6]

    def test_each_transition_raises_event(self):
        order = _make_order()
        order._events.clear()
        for status in HAPPY_PATH:
            order.transition_to(status)
        changed = [e for e in order._events if isinstance(e, OrderStatusChanged)]
        assert [(e.previous_status, e.new_status) for e in changed] == [
            ("pending_payment", "confirmed"),
            ("confirmed", "preparing"),
            ("preparing", "ready"),
            ("ready", "picked_up"),
            ("picked_up", "completed"),
        ]


class TestTransitionSideEffects:
    def test_confirm_estimates_ready_time(self):
        order = _make_order()
        now = datetime.now(UTC)
        order.transition_to(OrderStatus.CONFIRMED, prep_minutes=20, now=now)
        assert order.estimated_ready_time == now + timedelta(minutes=20)

    def test_ready_records_actual_ready_time(self):
        order = _order_at_state(OrderStatus.PREPARING)
        now = datetime.now(UTC)
        order.transition_to(OrderStatus.READY, now=now)
        assert order.actual_ready_time == now

    def test_picked_up_records_time(self):
        order = _order_at_state(OrderStatus.READY)
        now = datetime.now(UTC)
        order.transition_to(OrderStatus.PICKED_UP, now=now)
        assert order.picked_up_at == now

    def test_history_records_actor_and_notes(self):
        order = _make_order()
        order.transition_to(OrderStatus.CONFIRMED, changed_by="admin", notes="Kitchen accepted")
        entry = order.history()[-1]
        assert entry.changed_by == "admin"
        assert entry.notes == "Kitchen accepted"


class TestConditionalTransition:
    def test_expected_status_matches(self):
        order = _make_order()
        order.transition_to(OrderStatus.CONFIRMED, expected_status=OrderStatus.PENDING_PAYMENT)
        assert order.status == OrderStatus.CONFIRMED.value

    def test_expected_status_mismatch_is_rejected(self):
        order = _order_at_state(OrderStatus.CONFIRMED)
        with pytest.raises(InvalidStateError):
            order.transition_to(OrderStatus.PREPARING, expected_status=OrderStatus.PENDING_PAYMENT)
        assert order.status == OrderStatus.CONFIRMED.value


class TestAdminCancellation:
    @pytest.mark.parametrize(
        "state",
        [OrderStatus.PENDING_PAYMENT, OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY],
    )
    def test_admin_can_cancel_open_states(self, state):
        order = _order_at_state(state)
        order.transition_to(OrderStatus.CANCELLED, changed_by="admin", notes="Out of stock")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancelled_by == "admin"
        assert order.cancellation_reason == "Out of stock"
        assert order.cancelled_at is not None
