"""CheckoutSession aggregate — a priced, frozen snapshot of a cart.

The session copies the cart lines when it starts; later cart edits do not
change it, but a session whose cart has changed can no longer be confirmed. Coupons and the delivery fee adjust its pricing until it is
confirmed into an order. A session lives for ``CHECKOUT_TTL``.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import InvalidStateError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.checkout.events import (
    CheckoutConfirmed,
    CheckoutCouponApplied,
    CheckoutCouponRemoved,
    CheckoutStarted,
)
from ordering.domain import ordering
from ordering.exceptions import ForbiddenError
from ordering.shared.pricing import Pricing, compute_pricing
from ordering.shared.serialization import load_list
from ordering.shared.timestamps import as_utc

CHECKOUT_TTL = timedelta(minutes=30)


class CheckoutStatus(Enum):
    OPEN = "open"
    CONFIRMED = "confirmed"
    EXPIRED = "expired"


class PaymentMethod(Enum):
    CASH = "cash"
    CARD = "card"
    WALLET = "wallet"


@ordering.entity(part_of="CheckoutSession")
class CheckoutItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    customization = Text()
    add_on_ids = Text()
    notes = String(max_length=500)


@ordering.aggregate
class CheckoutSession:
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    store_id = Identifier(required=True)
    items = HasMany(CheckoutItem)
    pricing = ValueObject(Pricing)
    coupon_code = String(max_length=50)
    delivery_address = String(max_length=500)
    notes = String(max_length=500)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CARD.value)
    status = String(choices=CheckoutStatus, default=CheckoutStatus.OPEN.value)
    order_id = Identifier()
    created_at = DateTime()
    expires_at = DateTime()

    @classmethod
    def start(cls, cart, delivery_fee, payment_method=None, delivery_address=None, notes=None, now=None):
        """Freeze ``cart`` into a new open session."""
        now = now or datetime.now(UTC)
        session = cls(
            user_id=cart.user_id,
            cart_id=cart.id,
            store_id=cart.store_id,
            pricing=compute_pricing(cart.pricing.subtotal, delivery_fee=delivery_fee),
            delivery_address=delivery_address,
            notes=notes,
            payment_method=payment_method or PaymentMethod.CARD.value,
            status=CheckoutStatus.OPEN.value,
            created_at=now,
            expires_at=now + CHECKOUT_TTL,
        )
        for item in cart.items:
            session.add_items(
                CheckoutItem(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                    customization=item.customization,
                    add_on_ids=item.add_on_ids,
                    notes=item.notes,
                )
            )

        session.raise_(
            CheckoutStarted(
                checkout_id=str(session.id),
                user_id=str(session.user_id),
                cart_id=str(session.cart_id),
                store_id=str(session.store_id),
                subtotal=session.pricing.subtotal,
                delivery_fee=session.pricing.delivery_fee,
                total=session.pricing.total,
                expires_at=session.expires_at,
            )
        )
        return session

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def assert_owned_by(self, user_id):
        if str(self.user_id) != str(user_id):
            raise ForbiddenError("You do not have permission to access this checkout session")

    def is_expired(self, now=None) -> bool:
        if CheckoutStatus(self.status) == CheckoutStatus.EXPIRED:
            return True
        now = now or datetime.now(UTC)
        return now > as_utc(self.expires_at)

    def assert_open(self, now=None):
        if CheckoutStatus(self.status) == CheckoutStatus.CONFIRMED:
            raise InvalidStateError("Checkout session is already confirmed")
        if self.is_expired(now):
            raise InvalidStateError("Checkout session has expired; start a new checkout")

    # -------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------
    def _reprice(self, discount):
        self.pricing = compute_pricing(
            self.pricing.subtotal,
            delivery_fee=self.pricing.delivery_fee,
            discount=discount,
        )

    def apply_coupon(self, code, discount):
        self.assert_open()
        if self.coupon_code:
            raise InvalidStateError(f"Coupon {self.coupon_code} is already applied; remove it first")

        self.coupon_code = code
        self._reprice(discount)
        self.raise_(
            CheckoutCouponApplied(
                checkout_id=str(self.id),
                coupon_code=code,
                discount=self.pricing.discount,
                total=self.pricing.total,
            )
        )

    def remove_coupon(self):
        self.assert_open()
        if not self.coupon_code:
            raise InvalidStateError("No coupon is applied to this checkout")

        code = self.coupon_code
        self.coupon_code = None
        self._reprice(0.0)
        self.raise_(CheckoutCouponRemoved(checkout_id=str(self.id), coupon_code=code, total=self.pricing.total))

    # -------------------------------------------------------------------
    # Confirmation
    # -------------------------------------------------------------------
    def lines(self) -> list[dict]:
        """The frozen lines in the shape ``Order.place`` expects."""
        return [
            {
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
                "customization": load_list(item.customization),
                "add_on_ids": load_list(item.add_on_ids),
                "notes": item.notes,
            }
            for item in self.items
        ]

    def matches_cart(self, cart) -> bool:
        """True if ``cart`` still holds exactly the lines this session froze."""

        def signature(items):
            return sorted(
                (str(item.product_id), item.quantity, item.customization or "", item.add_on_ids or "")
                for item in items
            )

        return str(cart.store_id) == str(self.store_id) and signature(cart.items) == signature(self.items)

    def expire(self):
        if CheckoutStatus(self.status) != CheckoutStatus.OPEN:
            raise InvalidStateError(f"Cannot expire a checkout session that is {self.status}")
        self.status = CheckoutStatus.EXPIRED.value

    def confirm(self, order_id):
        self.assert_open()
        self.status = CheckoutStatus.CONFIRMED.value
        self.order_id = order_id
        self.raise_(
            CheckoutConfirmed(
                checkout_id=str(self.id),
                user_id=str(self.user_id),
                cart_id=str(self.cart_id),
                order_id=str(order_id),
                total=self.pricing.total,
            )
        )


def session_view(session: CheckoutSession) -> dict:
    return {
        "checkout_id": str(session.id),
        "user_id": str(session.user_id),
        "cart_id": str(session.cart_id),
        "store_id": str(session.store_id),
        "status": session.status,
        "items": session.lines(),
        "subtotal": session.pricing.subtotal,
        "tax": session.pricing.tax,
        "delivery_fee": session.pricing.delivery_fee,
        "discount": session.pricing.discount,
        "total": session.pricing.total,
        "coupon_code": session.coupon_code,
        "delivery_address": session.delivery_address,
        "notes": session.notes,
        "payment_method": session.payment_method,
        "order_id": str(session.order_id) if session.order_id else None,
        "expires_at": session.expires_at.isoformat() if session.expires_at else None,
    }
