"""Delivery fee rules.

Pickup orders (no delivery address) pay nothing. Delivered orders pay the
store's flat fee unless the subtotal reaches the store's free-delivery
minimum.
"""

from ordering.menu.store import Store
from ordering.shared.pricing import to_cents


def delivery_fee_for(store: Store, subtotal: float, delivery_address: str | None) -> float:
    if not delivery_address:
        return 0.0
    if store.free_delivery_minimum is not None and subtotal >= store.free_delivery_minimum:
        return 0.0
    return to_cents(store.delivery_fee)


def delivery_charges(store: Store, subtotal: float, delivery_address: str | None) -> dict:
    """What the customer will pay for delivery, and how far they are from free delivery."""
    fee = delivery_fee_for(store, subtotal, delivery_address)
    remaining = None
    if delivery_address and store.free_delivery_minimum is not None and fee:
        remaining = to_cents(store.free_delivery_minimum - subtotal)
    return {
        "store_id": str(store.id),
        "delivery": bool(delivery_address),
        "delivery_fee": fee,
        "free_delivery_minimum": store.free_delivery_minimum,
        "amount_to_free_delivery": remaining,
    }
