"""Order summary — lightweight listing view for customers and store staff."""

from datetime import UTC

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import OrderPaymentUpdated, OrderPlaced, OrderRated, OrderStatusChanged
from ordering.order.order import Order
from ordering.shared.timestamps import as_utc

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


@ordering.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    store_id = Identifier(required=True)
    status = String(required=True)
    payment_status = String()
    item_count = Integer(default=0)
    total = Float()
    rating = Integer()
    created_at = DateTime()
    updated_at = DateTime()


@ordering.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                order_number=event.order_number,
                user_id=event.user_id,
                store_id=event.store_id,
                status=event.status,
                payment_status="pending",
                item_count=event.item_count,
                total=event.total,
                created_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.status = event.new_status
        summary.updated_at = event.changed_at
        repo.add(summary)

    @on(OrderPaymentUpdated)
    def on_order_payment_updated(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.payment_status = event.payment_status
        repo.add(summary)

    @on(OrderRated)
    def on_order_rated(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.rating = event.rating
        repo.add(summary)


def list_orders(
    user_id=None,
    status=None,
    store_id=None,
    created_from=None,
    created_to=None,
    limit=DEFAULT_PAGE_SIZE,
    offset=0,
) -> list[OrderSummary]:
    """One page of orders matching the filters, newest first. ``None`` filters are ignored."""
    criteria = {}
    if user_id is not None:
        criteria["user_id"] = str(user_id)
    if status is not None:
        criteria["status"] = status
    if store_id is not None:
        criteria["store_id"] = str(store_id)
    if created_from is not None:
        criteria["created_at__gte"] = as_utc(created_from).astimezone(UTC)
    if created_to is not None:
        criteria["created_at__lte"] = as_utc(created_to).astimezone(UTC)

    query = current_domain.repository_for(OrderSummary)._dao.query
    if criteria:
        query = query.filter(**criteria)
    return query.order_by("-created_at").limit(limit).offset(offset).all().items


def summary_view(summary: OrderSummary) -> dict:
    return {
        "order_id": str(summary.order_id),
        "order_number": summary.order_number,
        "user_id": str(summary.user_id),
        "store_id": str(summary.store_id),
        "status": summary.status,
        "payment_status": summary.payment_status,
        "item_count": summary.item_count,
        "total": summary.total,
        "rating": summary.rating,
        "created_at": summary.created_at.isoformat() if summary.created_at else None,
    }
