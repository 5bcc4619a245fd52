"""Cart item management — commands and handler.

Every command addresses the customer's single active cart; the cart is
created when the customer adds their first item.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.menu.catalogue import Catalogue


@ordering.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    customization = Text()  # JSON: list of {customization_type, option_id}
    add_on_ids = Text()  # JSON: list of AddOn ids
    notes = String(max_length=500)


@ordering.command(part_of="Cart")
class UpdateCartQuantity:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class UpdateCartDetails:
    """Set the delivery address and/or free-text notes on the active cart."""

    user_id = Identifier(required=True)
    delivery_address = String(max_length=500)
    notes = String(max_length=500)


@ordering.command(part_of="Cart")
class AbandonCart:
    """Give up on the active cart; the next add starts a fresh one."""

    user_id = Identifier(required=True)


def active_cart_or_fail(user_id) -> Cart:
    cart = current_domain.repository_for(Cart).active_for(user_id)
    if cart is None:
        raise ObjectNotFoundError(f"No active cart for user {user_id}")
    return cart


@ordering.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        catalogue = Catalogue()
        product = catalogue.orderable_product(command.product_id)
        line = catalogue.price_line(product, command.customization, command.add_on_ids, strict=True)

        repo = current_domain.repository_for(Cart)
        cart = repo.active_for(command.user_id) or Cart.create(user_id=command.user_id, store_id=product.store_id)
        item_id = cart.add_item(
            product_id=str(product.id),
            product_name=product.name,
            store_id=product.store_id,
            quantity=command.quantity,
            unit_price=line["unit_price"],
            customization=line["customization"],
            add_on_ids=line["add_on_ids"],
            notes=command.notes,
        )
        repo.add(cart)
        return item_id

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        cart = active_cart_or_fail(command.user_id)
        cart.update_item_quantity(item_id=command.item_id, new_quantity=command.new_quantity)
        current_domain.repository_for(Cart).add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = active_cart_or_fail(command.user_id)
        cart.remove_item(item_id=command.item_id)
        current_domain.repository_for(Cart).add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = current_domain.repository_for(Cart).active_for(command.user_id)
        if cart is None:
            return
        cart.clear()
        current_domain.repository_for(Cart).add(cart)

    @handle(UpdateCartDetails)
    def update_cart_details(self, command):
        cart = active_cart_or_fail(command.user_id)
        cart.update_details(delivery_address=command.delivery_address, notes=command.notes)
        current_domain.repository_for(Cart).add(cart)

    @handle(AbandonCart)
    def abandon_cart(self, command):
        cart = active_cart_or_fail(command.user_id)
        cart.abandon()
        current_domain.repository_for(Cart).add(cart)
