"""Product aggregate — a menu item sold by one store.

Customizations are stored as JSON::

    [{"customization_type": "size",
      "options": [{"option_id": "large", "name": "Large", "price_modifier": 1.5}]}]

``add_on_ids`` lists the add-ons a customer may order with the product.
"""

import json

from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, String, Text

from ordering.domain import ordering
from ordering.menu.events import ProductAvailabilityChanged, ProductPriceChanged
from ordering.shared.serialization import canonical_customization, load_list


@ordering.aggregate
class Product:
    store_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    base_price = Float(required=True, min_value=0.01)
    is_available = Boolean(default=True)
    customizations = Text()  # JSON, see module docstring
    add_on_ids = Text()  # JSON array of AddOn ids

    @classmethod
    def create(cls, store_id, name, base_price, customizations=None, add_on_ids=None, is_available=True):
        return cls(
            store_id=store_id,
            name=name,
            base_price=base_price,
            customizations=json.dumps(load_list(customizations)),
            add_on_ids=json.dumps([str(a) for a in load_list(add_on_ids)]),
            is_available=is_available,
        )

    def offers_add_on(self, add_on_id) -> bool:
        return str(add_on_id) in load_list(self.add_on_ids)

    def _option(self, customization_type, option_id):
        for customization in load_list(self.customizations):
            if customization.get("customization_type") != customization_type:
                continue
            for option in customization.get("options", []):
                if str(option.get("option_id")) == option_id:
                    return option
        return None

    def price_customization(self, selections, strict=True):
        """Resolve customization selections against this product.

        Returns ``(kept_selections, surcharge)``. Unknown choices raise in strict
        mode and are dropped otherwise.
        """
        kept = []
        surcharge = 0.0
        for selection in canonical_customization(selections):
            option = self._option(selection["customization_type"], selection["option_id"])
            if option is None:
                if strict:
                    raise ValidationError(
                        {
                            "customization": [
                                f"Unknown {selection['customization_type']} option "
                                f"'{selection['option_id']}' for {self.name}"
                            ]
                        }
                    )
                continue
            kept.append(selection)
            surcharge += float(option.get("price_modifier", 0.0))
        return kept, surcharge

    def change_price(self, new_price):
        previous_price = self.base_price
        self.base_price = new_price
        self.raise_(
            ProductPriceChanged(
                product_id=str(self.id),
                previous_price=previous_price,
                new_price=new_price,
            )
        )

    def change_availability(self, is_available):
        if self.is_available == is_available:
            return
        self.is_available = is_available
        self.raise_(
            ProductAvailabilityChanged(
                product_id=str(self.id),
                store_id=str(self.store_id),
                is_available=is_available,
            )
        )
