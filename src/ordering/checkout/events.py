"""Domain events for the CheckoutSession aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="CheckoutSession")
class CheckoutStarted:
    """A validated cart was frozen into a checkout session."""

    __version__ = "v1"

    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    store_id = Identifier(required=True)
    subtotal = Float(required=True)
    delivery_fee = Float(required=True)
    total = Float(required=True)
    expires_at = DateTime(required=True)


@ordering.event(part_of="CheckoutSession")
class CheckoutCouponApplied:
    __version__ = "v1"

    checkout_id = Identifier(required=True)
    coupon_code = String(required=True)
    discount = Float(required=True)
    total = Float(required=True)


@ordering.event(part_of="CheckoutSession")
class CheckoutCouponRemoved:
    __version__ = "v1"

    checkout_id = Identifier(required=True)
    coupon_code = String(required=True)
    total = Float(required=True)


@ordering.event(part_of="CheckoutSession")
class CheckoutConfirmed:
    """The session produced an order and its cart was converted."""

    __version__ = "v1"

    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
    total = Float(required=True)
