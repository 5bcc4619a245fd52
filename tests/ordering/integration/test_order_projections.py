"""Integration tests for the order summary projection — projector updates and listing filters."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.cart.items import AddToCart
from ordering.checkout.confirmation import ConfirmCheckout
from ordering.checkout.creation import CreateCheckoutSession
from ordering.order.payment import RecordPaymentResult
from ordering.order.rating import RateOrder
from ordering.order.status import UpdateOrderStatus
from ordering.projections.order_summary import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    OrderSummary,
    list_orders,
    summary_view,
)
from protean import current_domain


def _place_order(product, quantity=1, user_id="user-001"):
    current_domain.process(
        AddToCart(user_id=user_id, product_id=str(product.id), quantity=quantity),
        asynchronous=False,
    )
    checkout_id = current_domain.process(CreateCheckoutSession(user_id=user_id), asynchronous=False)
    return current_domain.process(ConfirmCheckout(checkout_id=checkout_id, user_id=user_id), asynchronous=False)


def _summary(order_id):
    return current_domain.repository_for(OrderSummary).get(order_id)


class TestOrderSummaryProjector:
    def test_placed_order_is_summarised(self, burger):
        order_id = _place_order(burger, quantity=3)
        summary = _summary(order_id)
        assert summary.status == "pending_payment"
        assert summary.payment_status == "pending"
        assert summary.item_count == 3
        assert summary.total == 33.0

    def test_payment_and_status_follow_the_order(self, burger):
        order_id = _place_order(burger)
        current_domain.process(
            RecordPaymentResult(order_id=order_id, payment_status="completed"),
            asynchronous=False,
        )
        summary = _summary(order_id)
        assert summary.payment_status == "completed"
        assert summary.status == "confirmed"

    def test_rating_is_recorded(self, burger):
        order_id = _place_order(burger)
        for status in ["confirmed", "preparing", "ready", "picked_up", "completed"]:
            current_domain.process(UpdateOrderStatus(order_id=order_id, new_status=status), asynchronous=False)
        current_domain.process(RateOrder(order_id=order_id, user_id="user-001", rating=4), asynchronous=False)

        summary = _summary(order_id)
        assert summary.status == "completed"
        assert summary.rating == 4
        assert summary_view(summary)["rating"] == 4


class TestListOrders:
    def test_filters_by_user(self, burger):
        mine = _place_order(burger, user_id="user-001")
        _place_order(burger, user_id="user-002")
        assert [str(s.order_id) for s in list_orders(user_id="user-001")] == [mine]

    def test_filters_by_status(self, burger):
        first = _place_order(burger)
        second = _place_order(burger)
        current_domain.process(UpdateOrderStatus(order_id=second, new_status="confirmed"), asynchronous=False)

        assert [str(s.order_id) for s in list_orders(status="pending_payment")] == [first]
        assert [str(s.order_id) for s in list_orders(status="confirmed")] == [second]

    def test_filters_by_store(self, burger, noodles):
        burger_order = _place_order(burger)
        noodle_order = _place_order(noodles)
        assert [str(s.order_id) for s in list_orders(store_id=str(noodles.store_id))] == [noodle_order]
        assert [str(s.order_id) for s in list_orders(store_id=str(burger.store_id))] == [burger_order]

    def test_newest_first(self, burger):
        older = _place_order(burger)
        newer = _place_order(burger)
        summary = _summary(older)
        summary.created_at = datetime.now(UTC) - timedelta(hours=1)
        current_domain.repository_for(OrderSummary).add(summary)

        assert [str(s.order_id) for s in list_orders(user_id="user-001")] == [newer, older]

    def test_created_range(self, burger):
        older = _place_order(burger)
        newer = _place_order(burger)
        summary = _summary(older)
        summary.created_at = datetime.now(UTC) - timedelta(days=2)
        current_domain.repository_for(OrderSummary).add(summary)

        since_yesterday = list_orders(created_from=datetime.now(UTC) - timedelta(days=1))
        assert [str(s.order_id) for s in since_yesterday] == [newer]
        before_yesterday = list_orders(created_to=datetime.now(UTC) - timedelta(days=1))
        assert [str(s.order_id) for s in before_yesterday] == [older]


class TestListOrdersPaging:
    @pytest.fixture()
    def many_orders(self):
        """105 summaries for one user, one minute apart, newest last."""
        repo = current_domain.repository_for(OrderSummary)
        start = datetime.now(UTC) - timedelta(days=1)
        order_ids = []
        for index in range(105):
            summary = OrderSummary(
                order_id=f"ord-{index:03d}",
                order_number=f"QB-20260101-{index:06X}",
                user_id="user-001",
                store_id="store-001",
                status="pending_payment",
                payment_status="pending",
                item_count=1,
                total=11.0,
                created_at=start + timedelta(minutes=index),
            )
            repo.add(summary)
            order_ids.append(summary.order_id)
        return order_ids

    def test_every_matching_order_is_reachable(self, many_orders):
        listed = list_orders(user_id="user-001", limit=MAX_PAGE_SIZE)
        assert [s.order_id for s in listed] == list(reversed(many_orders))

    def test_pages_walk_newest_to_oldest(self, many_orders):
        first = list_orders(user_id="user-001")
        assert len(first) == DEFAULT_PAGE_SIZE
        assert first[0].order_id == many_orders[-1]

        last = list_orders(user_id="user-001", limit=DEFAULT_PAGE_SIZE, offset=100)
        assert [s.order_id for s in last] == list(reversed(many_orders[:5]))

    def test_date_range_applies_before_paging(self, many_orders):
        cutoff = _summary(many_orders[100]).created_at
        listed = list_orders(user_id="user-001", created_from=cutoff)
        assert [s.order_id for s in listed] == list(reversed(many_orders[100:]))
