"""Catalogue — read-only price and availability lookups over the menu.

Cart and order handlers build one ``Catalogue`` per command and use it to
resolve products and add-ons at their *current* price.
"""

import structlog
from protean.exceptions import InvalidStateError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.menu.add_on import AddOn
from ordering.menu.coupon import Coupon
from ordering.menu.product import Product
from ordering.menu.store import Store
from ordering.shared.pricing import to_cents
from ordering.shared.serialization import canonical_add_on_ids

logger = structlog.get_logger(__name__)


class Catalogue:
    def find_product(self, product_id) -> Product:
        return current_domain.repository_for(Product).get(product_id)

    def find_add_on(self, add_on_id) -> AddOn:
        return current_domain.repository_for(AddOn).get(add_on_id)

    def find_store(self, store_id) -> Store:
        return current_domain.repository_for(Store).get(store_id)

    def find_coupon(self, code) -> Coupon:
        return current_domain.repository_for(Coupon).by_code(code)

    def product_or_none(self, product_id) -> Product | None:
        try:
            return self.find_product(product_id)
        except ObjectNotFoundError:
            return None

    def prep_minutes(self, store_id) -> int | None:
        """Average preparation time of a store, used to estimate ready times."""
        try:
            return self.find_store(store_id).average_prep_time
        except ObjectNotFoundError:
            logger.warning("Store not found for prep time", store_id=str(store_id))
            return None

    def orderable_product(self, product_id) -> Product:
        """Return the product if it can be ordered right now."""
        product = self.find_product(product_id)
        if not product.is_available:
            raise InvalidStateError(f"Product {product.name} is not available")
        return product

    def _resolve_add_ons(self, product, add_on_ids, strict):
        resolved = []
        for add_on_id in canonical_add_on_ids(add_on_ids):
            if not product.offers_add_on(add_on_id):
                if strict:
                    raise ValidationError({"add_on_ids": [f"Add-on {add_on_id} is not offered with {product.name}"]})
                continue

            try:
                add_on = self.find_add_on(add_on_id)
            except ObjectNotFoundError:
                if strict:
                    raise
                logger.info("Dropping missing add-on", product_id=str(product.id), add_on_id=add_on_id)
                continue

            if not add_on.is_available:
                if strict:
                    raise InvalidStateError(f"Add-on {add_on.name} is not available")
                logger.info("Dropping unavailable add-on", product_id=str(product.id), add_on_id=add_on_id)
                continue
            resolved.append(add_on)
        return resolved

    def price_line(self, product, customization=None, add_on_ids=None, strict=True) -> dict:
        """Price one unit of ``product`` with the chosen customization and add-ons.

        unit price = base price + customization modifiers + add-on prices

        In strict mode every choice must resolve; in lenient mode (reorder)
        choices that no longer resolve are dropped from the line.
        """
        selections, surcharge = product.price_customization(customization, strict=strict)
        add_ons = self._resolve_add_ons(product, add_on_ids, strict)
        unit_price = product.base_price + surcharge + sum(add_on.price for add_on in add_ons)
        return {
            "customization": selections,
            "add_on_ids": [str(add_on.id) for add_on in add_ons],
            "unit_price": to_cents(unit_price),
        }
