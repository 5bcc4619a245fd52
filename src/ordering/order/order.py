"""Order aggregate (CQRS) — a placed purchase and its status state machine.

Line items and prices are copied from the checkout session when the order is
placed and never change afterwards: later catalogue price changes cannot
touch a placed order. Only the status and a handful of flags (payment,
refund, rating, driver, notes) mutate.

State Machine (7 states):
    PENDING_PAYMENT → CONFIRMED → PREPARING → READY → PICKED_UP → COMPLETED
    CANCELLED (from PENDING_PAYMENT, CONFIRMED, PREPARING, READY)
    COMPLETED and CANCELLED are terminal.

Every status change appends exactly one StatusChange entry to the order's
history; entries are never edited or removed.
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum
from uuid import uuid4

import structlog
from protean import invariant
from protean.exceptions import InvalidStateError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.domain import ordering
from ordering.exceptions import ForbiddenError
from ordering.order.events import (
    DriverAssigned,
    InternalNoteAdded,
    OrderCancelled,
    OrderPaymentUpdated,
    OrderPlaced,
    OrderRated,
    OrderStatusChanged,
)
from ordering.shared.pricing import Pricing
from ordering.shared.serialization import load_list
from ordering.shared.timestamps import as_utc

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING_PAYMENT = "pending_payment"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked_up"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class RefundStatus(Enum):
    PENDING = "pending"


class Actor(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    PAYMENT = "payment"
    SYSTEM = "system"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.PICKED_UP, OrderStatus.CANCELLED},
    OrderStatus.PICKED_UP: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_CANCELLABLE_STATES = {
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
}

CANCELLATION_WINDOW = timedelta(minutes=5)


def allowed_transitions(status) -> set[OrderStatus]:
    return set(_VALID_TRANSITIONS.get(OrderStatus(status), set()))


def is_terminal(status) -> bool:
    return not _VALID_TRANSITIONS[OrderStatus(status)]


def generate_order_number(now=None) -> str:
    now = now or datetime.now(UTC)
    return f"QB-{now:%Y%m%d}-{uuid4().hex[:6].upper()}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Rating:
    """A star rating from 1 to 5."""

    score = Integer(required=True)

    @invariant.post
    def score_must_be_in_range(self):
        if self.score is not None and (self.score < 1 or self.score > 5):
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """Frozen copy of a cart line at the moment the order was placed."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    customization = Text()  # JSON: list of {customization_type, option_id}
    add_on_ids = Text()  # JSON: list of AddOn ids
    notes = String(max_length=500)


@ordering.entity(part_of="Order")
class StatusChange:
    """One entry of the append-only status history."""

    sequence = Integer(required=True, min_value=1)
    status = String(choices=OrderStatus, required=True)
    changed_at = DateTime(required=True)
    changed_by = String(max_length=50, default=Actor.SYSTEM.value)
    notes = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    user_id = Identifier(required=True)
    store_id = Identifier(required=True)
    checkout_id = Identifier()
    cart_id = Identifier()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING_PAYMENT.value)
    items = HasMany(OrderItem)
    status_history = HasMany(StatusChange)
    pricing = ValueObject(Pricing)
    coupon_code = String(max_length=50)
    payment_method = String(required=True, max_length=50)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_reference = String(max_length=255)
    delivery_address = String(max_length=500)
    notes = Text()
    internal_notes = Text()
    driver_id = Identifier()
    estimated_ready_time = DateTime()
    actual_ready_time = DateTime()
    picked_up_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    refund_amount = Float()
    refund_status = String(max_length=50)
    rating = ValueObject(Rating)
    review = Text()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        store_id,
        lines,
        pricing,
        payment_method,
        delivery_address=None,
        notes=None,
        coupon_code=None,
        checkout_id=None,
        cart_id=None,
        now=None,
    ):
        """Create an order from priced checkout lines.

        Args:
            lines: List of dicts with product_id, product_name, quantity,
                unit_price, total_price, customization, add_on_ids, notes.
            pricing: The Pricing frozen on the checkout session.
        """
        if not lines:
            raise InvalidStateError("Cannot place an order without items")

        now = now or datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(now),
            user_id=user_id,
            store_id=store_id,
            checkout_id=checkout_id,
            cart_id=cart_id,
            status=OrderStatus.PENDING_PAYMENT.value,
            pricing=pricing,
            coupon_code=coupon_code,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            delivery_address=delivery_address,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    product_id=line["product_id"],
                    product_name=line["product_name"],
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    total_price=line["total_price"],
                    customization=json.dumps(load_list(line.get("customization"))),
                    add_on_ids=json.dumps(load_list(line.get("add_on_ids"))),
                    notes=line.get("notes"),
                )
            )
        order._append_history(OrderStatus.PENDING_PAYMENT, Actor.CUSTOMER.value, "Order placed", now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                store_id=str(store_id),
                items=json.dumps(lines),
                item_count=sum(line["quantity"] for line in lines),
                subtotal=pricing.subtotal,
                tax=pricing.tax,
                delivery_fee=pricing.delivery_fee,
                discount=pricing.discount,
                total=pricing.total,
                payment_method=payment_method,
                status=order.status,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def assert_owned_by(self, user_id, action="access"):
        if str(self.user_id) != str(user_id):
            raise ForbiddenError(f"You do not have permission to {action} this order")

    def history(self) -> list[StatusChange]:
        """Status history, oldest first."""
        return sorted(self.status_history, key=lambda entry: entry.sequence)

    def _append_history(self, status, changed_by, notes, now):
        self.add_status_history(
            StatusChange(
                sequence=len(self.status_history) + 1,
                status=status.value,
                changed_at=now,
                changed_by=changed_by,
                notes=notes,
            )
        )

    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS[current]:
            raise InvalidStateError(f"Cannot transition order from {current.value} to {target_status.value}")

    def _change_status(self, target_status, changed_by, notes, now):
        """The only place status is written: validates, logs history, raises the event."""
        self._assert_can_transition(target_status)
        previous = self.status
        self.status = target_status.value
        self.updated_at = now
        self._append_history(target_status, changed_by, notes, now)

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=previous,
                new_status=target_status.value,
                changed_by=changed_by,
                notes=notes,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def transition_to(
        self,
        target_status,
        changed_by=Actor.ADMIN.value,
        notes=None,
        expected_status=None,
        prep_minutes=None,
        now=None,
    ):
        """Move the order to ``target_status`` following the transition table.

        ``expected_status`` turns the call into a conditional update: it fails
        unless the order is still in that state. ``prep_minutes`` is used to
        estimate the ready time when the order is confirmed.
        """
        target = OrderStatus(target_status)
        if expected_status is not None and self.status != OrderStatus(expected_status).value:
            raise InvalidStateError(f"Order is {self.status}, expected {OrderStatus(expected_status).value}")

        now = now or datetime.now(UTC)
        if target == OrderStatus.CANCELLED:
            self._cancel(notes or "Cancelled by store", changed_by, now)
            return

        self._change_status(target, changed_by, notes, now)
        if target == OrderStatus.CONFIRMED and prep_minutes:
            self.estimated_ready_time = now + timedelta(minutes=prep_minutes)
        elif target == OrderStatus.READY:
            self.actual_ready_time = now
        elif target == OrderStatus.PICKED_UP:
            self.picked_up_at = now

    def record_payment(self, payment_status, payment_reference=None, prep_minutes=None, now=None):
        """Apply the payment provider's verdict while the order still awaits payment."""
        if OrderStatus(self.status) != OrderStatus.PENDING_PAYMENT:
            raise InvalidStateError(f"Order is {self.status}; payment updates apply only while pending payment")

        outcome = PaymentStatus(payment_status)
        if outcome == PaymentStatus.PENDING:
            raise ValidationError({"payment_status": ["Payment result must be completed or failed"]})

        now = now or datetime.now(UTC)
        self.payment_status = outcome.value
        self.payment_reference = payment_reference
        self.updated_at = now

        self.raise_(
            OrderPaymentUpdated(
                order_id=str(self.id),
                payment_status=outcome.value,
                payment_reference=payment_reference,
                amount=self.pricing.total,
            )
        )

        if outcome == PaymentStatus.COMPLETED:
            self.transition_to(
                OrderStatus.CONFIRMED,
                changed_by=Actor.PAYMENT.value,
                notes="Payment received",
                prep_minutes=prep_minutes,
                now=now,
            )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel_by_customer(self, user_id, reason, now=None):
        """Customer cancellation: owner only, cancellable states only, within 5 minutes of placement."""
        self.assert_owned_by(user_id, "cancel")

        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise InvalidStateError(f"Cannot cancel an order that is {current.value}")

        now = now or datetime.now(UTC)
        if now - as_utc(self.created_at) > CANCELLATION_WINDOW:
            raise InvalidStateError("Order can only be cancelled within 5 minutes of placement")

        self._cancel(reason, Actor.CUSTOMER.value, now)

    def _cancel(self, reason, cancelled_by, now):
        self._change_status(OrderStatus.CANCELLED, cancelled_by, f"Cancelled by {cancelled_by}: {reason}", now)
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.cancelled_at = now

        if self.payment_status == PaymentStatus.COMPLETED.value:
            self.refund_amount = self.pricing.total
            self.refund_status = RefundStatus.PENDING.value
            logger.info(
                "Refund flagged for cancelled order",
                order_id=str(self.id),
                refund_amount=self.refund_amount,
            )

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                reason=reason,
                cancelled_by=cancelled_by,
                refund_amount=self.refund_amount,
                refund_status=self.refund_status,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Rating
    # -------------------------------------------------------------------
    def rate(self, user_id, rating, review=None):
        """Rate a completed order. The rating range is checked before anything else."""
        score = Rating(score=rating)
        self.assert_owned_by(user_id, "rate")
        if OrderStatus(self.status) != OrderStatus.COMPLETED:
            raise InvalidStateError("Only completed orders can be rated")

        self.rating = score
        self.review = review
        rating_note = f"Rating: {rating}/5" + (f" - Review: {review}" if review else "")
        self.notes = f"{self.notes}\n{rating_note}" if self.notes else rating_note
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderRated(
                order_id=str(self.id),
                user_id=str(self.user_id),
                store_id=str(self.store_id),
                rating=rating,
                review=review,
            )
        )

    # -------------------------------------------------------------------
    # Staff operations
    # -------------------------------------------------------------------
    def assign_driver(self, driver_id):
        if is_terminal(self.status):
            raise InvalidStateError(f"Cannot assign a driver to an order that is {self.status}")

        self.driver_id = driver_id
        self.updated_at = datetime.now(UTC)
        self.raise_(DriverAssigned(order_id=str(self.id), driver_id=str(driver_id)))

    def add_internal_note(self, note, author=None):
        now = datetime.now(UTC)
        entry = f"[{now:%Y-%m-%d %H:%M}] {author or 'staff'}: {note}"
        self.internal_notes = f"{self.internal_notes}\n{entry}" if self.internal_notes else entry
        self.updated_at = now
        self.raise_(InternalNoteAdded(order_id=str(self.id), note=note, author=author))
