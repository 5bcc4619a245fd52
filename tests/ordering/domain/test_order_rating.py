"""Tests for rating an order."""

import pytest
from ordering.exceptions import ForbiddenError
from ordering.order.events import OrderRated
from ordering.order.order import Order, OrderStatus, Rating
from ordering.shared.pricing import compute_pricing
from protean.exceptions import InvalidStateError, ValidationError


def _make_order(status=OrderStatus.PENDING_PAYMENT, notes=None):
    order = Order.place(
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
        notes=notes,
    )
    for step in ["confirmed", "preparing", "ready", "picked_up", "completed"]:
        if order.status == status.value:
            break
        order.transition_to(step)
    return order


class TestRatingValueObject:
    @pytest.mark.parametrize("score", [1, 3, 5])
    def test_valid_scores(self, score):
        assert Rating(score=score).score == score

    @pytest.mark.parametrize("score", [0, 6, -1])
    def test_out_of_range_scores(self, score):
        with pytest.raises(ValidationError):
            Rating(score=score)


class TestRateOrder:
    def test_rate_completed_order(self):
        order = _make_order(OrderStatus.COMPLETED)
        order.rate("user-001", 3, review="Decent")
        assert order.rating.score == 3
        assert order.review == "Decent"

    def test_rating_is_appended_to_notes(self):
        order = _make_order(OrderStatus.COMPLETED, notes="Leave at door")
        order.rate("user-001", 4, review="Tasty")
        assert order.notes == "Leave at door\nRating: 4/5 - Review: Tasty"

    def test_rating_without_review(self):
        order = _make_order(OrderStatus.COMPLETED)
        order.rate("user-001", 5)
        assert order.notes == "Rating: 5/5"

    def test_rate_preparing_order_is_rejected(self):
        order = _make_order(OrderStatus.PREPARING)
        with pytest.raises(InvalidStateError):
            order.rate("user-001", 3)
        assert order.rating is None

    @pytest.mark.parametrize("status", [OrderStatus.PREPARING, OrderStatus.COMPLETED])
    @pytest.mark.parametrize("score", [0, 6])
    def test_out_of_range_is_bad_request_regardless_of_status(self, status, score):
        order = _make_order(status)
        with pytest.raises(ValidationError):
            order.rate("user-001", score)

    def test_other_user_is_forbidden(self):
        order = _make_order(OrderStatus.COMPLETED)
        with pytest.raises(ForbiddenError):
            order.rate("user-999", 4)

    def test_rate_raises_event(self):
        order = _make_order(OrderStatus.COMPLETED)
        order._events.clear()
        order.rate("user-001", 5, review="Great")
        rated = [e for e in order._events if isinstance(e, OrderRated)]
        assert len(rated) == 1
        assert rated[0].rating == 5
