"""Domain events for the Order aggregate.

Events are versioned, immutable facts. Projectors use them to maintain the
order read models; other contexts (notifications, payments) subscribe to
them through the broker.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A confirmed checkout became an order awaiting payment."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    store_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item snapshots
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    tax = Float(required=True)
    delivery_fee = Float()
    discount = Float()
    total = Float(required=True)
    payment_method = String(required=True)
    status = String(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along its state machine. One event per history entry."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = String(required=True)
    notes = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; a refund is pending when payment had completed."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(required=True)
    cancelled_by = String(required=True)
    refund_amount = Float()
    refund_status = String()
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentUpdated:
    """The payment provider reported the outcome of the order's payment."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    payment_status = String(required=True)
    payment_reference = String()
    amount = Float(required=True)


@ordering.event(part_of="Order")
class OrderRated:
    """The customer rated a completed order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    store_id = Identifier(required=True)
    rating = Integer(required=True)
    review = Text()


@ordering.event(part_of="Order")
class DriverAssigned:
    """A driver was assigned to carry the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    driver_id = Identifier(required=True)


@ordering.event(part_of="Order")
class InternalNoteAdded:
    """Staff attached an internal note to the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    note = Text(required=True)
    author = String()
