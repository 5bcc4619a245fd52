"""Domain events for the menu aggregates (products and add-ons)."""

from protean.fields import Boolean, Float, Identifier

from ordering.domain import ordering


@ordering.event(part_of="Product")
class ProductPriceChanged:
    """The base price of a product changed. Existing orders keep their frozen prices."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)


@ordering.event(part_of="Product")
class ProductAvailabilityChanged:
    """A product was taken off or put back on the menu."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    store_id = Identifier(required=True)
    is_available = Boolean(required=True)


@ordering.event(part_of="AddOn")
class AddOnAvailabilityChanged:
    """An add-on was taken off or put back on the menu."""

    __version__ = "v1"

    add_on_id = Identifier(required=True)
    is_available = Boolean(required=True)
