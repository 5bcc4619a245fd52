"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or merged into an identical line."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)
    unit_price = Float(required=True)
    cart_total = Float(required=True)


@ordering.event(part_of="Cart")
class CartQuantityUpdated:
    """The quantity of a cart line was changed."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    cart_total = Float(required=True)


@ordering.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    cart_total = Float(required=True)


@ordering.event(part_of="Cart")
class CartCleared:
    """Every line was removed from the cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    removed_count = Integer(required=True)


@ordering.event(part_of="Cart")
class CartStoreSwitched:
    """The cart moved to another store; lines from the previous store were dropped."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    previous_store_id = Identifier(required=True)
    new_store_id = Identifier(required=True)
    dropped_count = Integer(required=True)


@ordering.event(part_of="Cart")
class CartConverted:
    """The cart was turned into an order at checkout."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}


@ordering.event(part_of="Cart")
class CartDetailsUpdated:
    """Delivery address or notes on the cart changed."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    delivery_address = String()
    notes = String()
