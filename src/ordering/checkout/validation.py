"""Checkout validation — re-check the active cart against the current menu.

Lines are priced when they enter the cart, but products and add-ons can be
switched off afterwards. Validation collects every line that can no longer
be ordered and fails with all of them at once.
"""

from protean import handle
from protean.exceptions import InvalidStateError, ObjectNotFoundError
from protean.fields import Identifier, String

from ordering.cart.cart import Cart, cart_lines
from ordering.cart.items import active_cart_or_fail
from ordering.checkout.delivery import delivery_fee_for
from ordering.checkout.session import CheckoutSession
from ordering.domain import ordering
from ordering.menu.catalogue import Catalogue
from ordering.menu.store import Store
from ordering.shared.pricing import compute_pricing
from ordering.shared.serialization import load_list


@ordering.command(part_of="CheckoutSession")
class ValidateCheckout:
    user_id = Identifier(required=True)
    delivery_address = String(max_length=500)


def _line_is_orderable(catalogue: Catalogue, item) -> bool:
    product = catalogue.product_or_none(item.product_id)
    if product is None or not product.is_available:
        return False
    for add_on_id in load_list(item.add_on_ids):
        try:
            add_on = catalogue.find_add_on(add_on_id)
        except ObjectNotFoundError:
            return False
        if not add_on.is_available:
            return False
    return True


def validate_cart(cart: Cart, catalogue: Catalogue) -> Store:
    """Return the cart's store if every line can still be ordered.

    Raises InvalidStateError naming the unavailable items otherwise.
    """
    if not cart.items:
        raise InvalidStateError("Cart is empty")

    store = catalogue.find_store(cart.store_id)
    if not store.is_active:
        raise InvalidStateError(f"Store {store.name} is not accepting orders")

    unavailable = [item.product_name for item in cart.items if not _line_is_orderable(catalogue, item)]
    if unavailable:
        raise InvalidStateError(f"Some items are no longer available: {', '.join(sorted(unavailable))}")
    return store


@ordering.command_handler(part_of=CheckoutSession)
class ValidateCheckoutHandler:
    @handle(ValidateCheckout)
    def validate_checkout(self, command):
        cart = active_cart_or_fail(command.user_id)
        store = validate_cart(cart, Catalogue())

        address = command.delivery_address or cart.delivery_address
        pricing = compute_pricing(
            cart.pricing.subtotal,
            delivery_fee=delivery_fee_for(store, cart.pricing.subtotal, address),
        )
        return {
            "cart_id": str(cart.id),
            "store_id": str(cart.store_id),
            "items": cart_lines(cart),
            "delivery_address": address,
            **pricing.to_dict(),
        }
