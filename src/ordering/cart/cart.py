"""Cart aggregate (CQRS) — the pre-purchase basket of one customer at one store.

A customer has at most one active cart. Lines are priced when they are added
(base price + customization modifiers + add-on prices) and the cart totals are
recomputed after every mutation. Adding a product from a different store
empties the cart first: a cart never mixes stores.
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import InvalidStateError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.cart.events import (
    CartCleared,
    CartConverted,
    CartDetailsUpdated,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartStoreSwitched,
)
from ordering.domain import ordering
from ordering.shared.pricing import Pricing, compute_pricing, to_cents
from ordering.shared.serialization import canonical_add_on_ids, canonical_customization, load_list

logger = structlog.get_logger(__name__)


class CartStatus(Enum):
    ACTIVE = "active"
    CONVERTED = "converted"
    ABANDONED = "abandoned"


@ordering.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    customization = Text()  # JSON: sorted list of {customization_type, option_id}
    add_on_ids = Text()  # JSON: sorted list of AddOn ids
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    notes = String(max_length=500)
    added_at = DateTime()

    def same_configuration(self, product_id, customization, add_on_ids) -> bool:
        """True if this line holds the same product with the same choices, in any order."""
        return (
            str(self.product_id) == str(product_id)
            and canonical_customization(self.customization) == canonical_customization(customization)
            and canonical_add_on_ids(self.add_on_ids) == canonical_add_on_ids(add_on_ids)
        )

    def reprice(self, unit_price=None):
        if unit_price is not None:
            self.unit_price = to_cents(unit_price)
        self.total_price = to_cents(self.unit_price * self.quantity)


@ordering.aggregate
class Cart:
    user_id = Identifier(required=True)
    store_id = Identifier(required=True)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    # Holds user_id while the cart is active; unique, so a user never has two active carts
    active_owner = Identifier(unique=True)
    items = HasMany(CartItem)
    pricing = ValueObject(Pricing)
    delivery_address = String(max_length=500)
    notes = String(max_length=500)
    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, store_id):
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            store_id=store_id,
            status=CartStatus.ACTIVE.value,
            active_owner=user_id,
            pricing=compute_pricing(0.0),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_active(self, action):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise InvalidStateError(f"Cannot {action}: cart is {self.status}")

    def _find_item(self, item_id) -> CartItem:
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ObjectNotFoundError(f"Item {item_id} not found in cart")
        return item

    def _recalculate_pricing(self):
        """subtotal = sum of line totals; tax and total follow from it."""
        if not self.items:
            self.pricing = compute_pricing(0.0)
        else:
            current = self.pricing or Pricing()
            self.pricing = compute_pricing(
                sum(item.total_price for item in self.items),
                delivery_fee=current.delivery_fee,
                discount=current.discount,
            )
        self.updated_at = datetime.now(UTC)

    def _drop_all_items(self) -> int:
        items = list(self.items)
        for item in items:
            self.remove_items(item)
        return len(items)

    @staticmethod
    def _assert_positive(quantity):
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1; remove the item instead"]})

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def switch_store(self, store_id):
        """Move the cart to another store, dropping every line from the old one."""
        self._assert_active("switch store")
        if str(self.store_id) == str(store_id):
            return

        previous_store_id = str(self.store_id)
        dropped = self._drop_all_items()
        self.store_id = store_id
        self._recalculate_pricing()

        logger.info(
            "Cart switched store",
            cart_id=str(self.id),
            previous_store_id=previous_store_id,
            new_store_id=str(store_id),
            dropped_count=dropped,
        )
        self.raise_(
            CartStoreSwitched(
                cart_id=str(self.id),
                previous_store_id=previous_store_id,
                new_store_id=str(store_id),
                dropped_count=dropped,
            )
        )

    def add_item(
        self,
        product_id,
        product_name,
        store_id,
        quantity,
        unit_price,
        customization=None,
        add_on_ids=None,
        notes=None,
    ):
        """Add a priced line, merging it into an identical existing line.

        Returns the id of the line that now holds the quantity.
        """
        self._assert_active("add items")
        self._assert_positive(quantity)
        self.switch_store(store_id)

        customization = canonical_customization(customization)
        add_on_ids = canonical_add_on_ids(add_on_ids)
        now = datetime.now(UTC)

        existing = next(
            (i for i in self.items if i.same_configuration(product_id, customization, add_on_ids)),
            None,
        )
        if existing:
            existing.quantity += quantity
            existing.reprice(unit_price)
            line = existing
        else:
            line = CartItem(
                product_id=product_id,
                product_name=product_name,
                quantity=quantity,
                customization=json.dumps(customization),
                add_on_ids=json.dumps(add_on_ids),
                unit_price=to_cents(unit_price),
                total_price=to_cents(unit_price * quantity),
                notes=notes,
                added_at=now,
            )
            self.add_items(line)

        self._recalculate_pricing()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                item_id=str(line.id),
                product_id=str(product_id),
                quantity=quantity,
                line_quantity=line.quantity,
                unit_price=line.unit_price,
                cart_total=self.pricing.total,
            )
        )
        return str(line.id)

    def update_item_quantity(self, item_id, new_quantity):
        self._assert_active("update quantities")
        self._assert_positive(new_quantity)
        item = self._find_item(item_id)

        previous_quantity = item.quantity
        item.quantity = new_quantity
        item.reprice()
        self._recalculate_pricing()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                cart_total=self.pricing.total,
            )
        )

    def remove_item(self, item_id):
        self._assert_active("remove items")
        item = self._find_item(item_id)

        self.remove_items(item)
        self._recalculate_pricing()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
                cart_total=self.pricing.total,
            )
        )

    def clear(self):
        self._assert_active("clear")
        removed = self._drop_all_items()
        self._recalculate_pricing()

        self.raise_(CartCleared(cart_id=str(self.id), removed_count=removed))

    def update_details(self, delivery_address=None, notes=None):
        """Set the delivery address and/or the notes; ``None`` leaves a value untouched."""
        self._assert_active("update details")
        if delivery_address is not None:
            self.delivery_address = delivery_address
        if notes is not None:
            self.notes = notes
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartDetailsUpdated(
                cart_id=str(self.id),
                delivery_address=self.delivery_address,
                notes=self.notes,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def convert(self, order_id):
        """Mark the cart as turned into ``order_id``. Only an active, non-empty cart converts."""
        self._assert_active("convert")
        if not self.items:
            raise InvalidStateError("Cannot convert an empty cart")

        self.status = CartStatus.CONVERTED.value
        self.active_owner = None
        self.order_id = order_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartConverted(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                order_id=str(order_id),
                items=json.dumps(
                    [{"product_id": str(item.product_id), "quantity": item.quantity} for item in self.items]
                ),
            )
        )

    def abandon(self):
        self._assert_active("abandon")
        self.status = CartStatus.ABANDONED.value
        self.active_owner = None
        self.updated_at = datetime.now(UTC)


@ordering.repository(part_of=Cart)
class CartRepository:
    def active_for(self, user_id) -> Cart | None:
        """The customer's active cart, if there is one."""
        carts = self._dao.query.filter(active_owner=str(user_id)).all().items
        return carts[0] if carts else None


def cart_summary(cart: Cart | None) -> dict:
    """Compact view of a cart for badges and the checkout button."""
    if cart is None:
        return {
            "cart_id": None,
            "store_id": None,
            "line_count": 0,
            "item_count": 0,
            "subtotal": 0.0,
            "tax": 0.0,
            "delivery_fee": 0.0,
            "discount": 0.0,
            "total": 0.0,
        }
    return {
        "cart_id": str(cart.id),
        "store_id": str(cart.store_id),
        "line_count": len(cart.items),
        "item_count": cart.item_count,
        "subtotal": cart.pricing.subtotal,
        "tax": cart.pricing.tax,
        "delivery_fee": cart.pricing.delivery_fee,
        "discount": cart.pricing.discount,
        "total": cart.pricing.total,
    }


def cart_lines(cart: Cart) -> list[dict]:
    return [
        {
            "item_id": str(item.id),
            "product_id": str(item.product_id),
            "product_name": item.product_name,
            "quantity": item.quantity,
            "customization": load_list(item.customization),
            "add_on_ids": load_list(item.add_on_ids),
            "unit_price": item.unit_price,
            "total_price": item.total_price,
            "notes": item.notes,
        }
        for item in cart.items
    ]
