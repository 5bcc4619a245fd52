"""Reorder — repopulate the customer's cart from a past order.

Each line is re-resolved against the current menu and re-priced at today's
prices (base price, customization modifiers and add-ons), not the price
frozen on the order. Products that no longer exist or are unavailable are
skipped; the rest are added. A reorder never fails because of menu drift.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.menu.catalogue import Catalogue
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class Reorder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class ReorderHandler:
    @handle(Reorder)
    def reorder(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        order.assert_owned_by(command.user_id, "reorder")
        if not order.items:
            raise ValidationError({"order_id": ["Order has no items to reorder"]})

        catalogue = Catalogue()
        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.active_for(command.user_id)

        added, skipped = [], []
        for item in order.items:
            product = catalogue.product_or_none(item.product_id)
            if product is None or not product.is_available:
                reason = "not_found" if product is None else "unavailable"
                logger.info(
                    "Skipping product on reorder",
                    order_id=str(order.id),
                    product_id=str(item.product_id),
                    reason=reason,
                )
                skipped.append({"product_id": str(item.product_id), "product_name": item.product_name, "reason": reason})
                continue

            line = catalogue.price_line(product, item.customization, item.add_on_ids, strict=False)
            if cart is None:
                cart = Cart.create(user_id=command.user_id, store_id=product.store_id)
            item_id = cart.add_item(
                product_id=str(product.id),
                product_name=product.name,
                store_id=product.store_id,
                quantity=item.quantity,
                unit_price=line["unit_price"],
                customization=line["customization"],
                add_on_ids=line["add_on_ids"],
                notes=item.notes,
            )
            added.append(
                {
                    "item_id": item_id,
                    "product_id": str(product.id),
                    "quantity": item.quantity,
                    "unit_price": line["unit_price"],
                }
            )

        if added:
            cart_repo.add(cart)

        logger.info(
            "Reorder completed",
            order_id=str(order.id),
            added_count=len(added),
            skipped_count=len(skipped),
        )
        return {
            "cart_id": str(cart.id) if cart is not None and added else None,
            "added": added,
            "skipped": skipped,
        }
