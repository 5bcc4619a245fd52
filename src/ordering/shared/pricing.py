"""Pricing value object shared by carts, checkout sessions and orders.

All three use the same formula::

    tax   = subtotal * TAX_RATE
    total = subtotal + tax + delivery_fee - discount
"""

from protean.fields import Float

from ordering.domain import ordering

TAX_RATE = 0.10


def to_cents(amount) -> float:
    return round(float(amount or 0.0), 2)


@ordering.value_object
class Pricing:
    """Money summary of a cart, checkout session or order."""

    subtotal = Float(default=0.0)
    tax = Float(default=0.0)
    delivery_fee = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)


def compute_pricing(subtotal, delivery_fee=0.0, discount=0.0) -> Pricing:
    """Build a Pricing from a subtotal; the discount never exceeds the subtotal."""
    subtotal = to_cents(subtotal)
    delivery_fee = to_cents(delivery_fee)
    discount = min(to_cents(discount), subtotal)
    tax = to_cents(subtotal * TAX_RATE)
    return Pricing(
        subtotal=subtotal,
        tax=tax,
        delivery_fee=delivery_fee,
        discount=discount,
        total=to_cents(subtotal + tax + delivery_fee - discount),
    )
