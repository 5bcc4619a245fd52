"""Menu management — admin commands that populate the catalogue.

Products, add-ons, stores and coupons are owned by store administrators; the
ordering flow only ever reads them.
"""

from protean import handle
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.menu.add_on import AddOn
from ordering.menu.coupon import Coupon
from ordering.menu.product import Product
from ordering.menu.store import Store


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
@ordering.command(part_of="Product")
class AddProduct:
    store_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    base_price = Float(required=True, min_value=0.01)
    customizations = Text()  # JSON: see Product
    add_on_ids = Text()  # JSON array
    is_available = Boolean(default=True)


@ordering.command(part_of="Product")
class ChangeProductPrice:
    product_id = Identifier(required=True)
    new_price = Float(required=True, min_value=0.01)


@ordering.command(part_of="Product")
class ChangeProductAvailability:
    product_id = Identifier(required=True)
    is_available = Boolean(required=True)


@ordering.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.create(
            store_id=command.store_id,
            name=command.name,
            base_price=command.base_price,
            customizations=command.customizations,
            add_on_ids=command.add_on_ids,
            is_available=command.is_available,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(ChangeProductPrice)
    def change_price(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.change_price(command.new_price)
        repo.add(product)

    @handle(ChangeProductAvailability)
    def change_availability(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.change_availability(command.is_available)
        repo.add(product)


# ---------------------------------------------------------------------------
# Add-ons
# ---------------------------------------------------------------------------
@ordering.command(part_of="AddOn")
class AddAddOn:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    is_available = Boolean(default=True)


@ordering.command(part_of="AddOn")
class ChangeAddOnAvailability:
    add_on_id = Identifier(required=True)
    is_available = Boolean(required=True)


@ordering.command_handler(part_of=AddOn)
class ManageAddOnHandler:
    @handle(AddAddOn)
    def add_add_on(self, command):
        add_on = AddOn(name=command.name, price=command.price, is_available=command.is_available)
        current_domain.repository_for(AddOn).add(add_on)
        return str(add_on.id)

    @handle(ChangeAddOnAvailability)
    def change_availability(self, command):
        repo = current_domain.repository_for(AddOn)
        add_on = repo.get(command.add_on_id)
        add_on.change_availability(command.is_available)
        repo.add(add_on)


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------
@ordering.command(part_of="Store")
class RegisterStore:
    name = String(required=True, max_length=255)
    delivery_fee = Float(default=0.0, min_value=0.0)
    free_delivery_minimum = Float(min_value=0.0)
    average_prep_time = Integer(default=15, min_value=1)


@ordering.command_handler(part_of=Store)
class RegisterStoreHandler:
    @handle(RegisterStore)
    def register_store(self, command):
        store = Store(
            name=command.name,
            delivery_fee=command.delivery_fee or 0.0,
            free_delivery_minimum=command.free_delivery_minimum,
            average_prep_time=command.average_prep_time or 15,
        )
        current_domain.repository_for(Store).add(store)
        return str(store.id)


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
@ordering.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    discount_type = String(required=True, max_length=20)
    value = Float(required=True, min_value=0.0)
    minimum_order = Float(default=0.0, min_value=0.0)
    max_discount = Float(min_value=0.0)
    expires_at = DateTime()


@ordering.command(part_of="Coupon")
class DeactivateCoupon:
    code = String(required=True, max_length=50)


@ordering.command_handler(part_of=Coupon)
class ManageCouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        coupon = Coupon.create(
            code=command.code,
            discount_type=command.discount_type,
            value=command.value,
            minimum_order=command.minimum_order,
            max_discount=command.max_discount,
            expires_at=command.expires_at,
        )
        current_domain.repository_for(Coupon).add(coupon)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.by_code(command.code)
        coupon.deactivate()
        repo.add(coupon)
