"""AddOn aggregate — an extra (sauce, topping, side) priced on top of a product."""

from protean.fields import Boolean, Float, String

from ordering.domain import ordering
from ordering.menu.events import AddOnAvailabilityChanged


@ordering.aggregate
class AddOn:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    is_available = Boolean(default=True)

    def change_availability(self, is_available):
        if self.is_available == is_available:
            return
        self.is_available = is_available
        self.raise_(
            AddOnAvailabilityChanged(
                add_on_id=str(self.id),
                is_available=is_available,
            )
        )
