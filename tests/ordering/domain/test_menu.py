"""Tests for menu records — customization pricing and coupon discounts."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.menu.coupon import Coupon
from ordering.menu.events import ProductAvailabilityChanged, ProductPriceChanged
from ordering.menu.product import Product
from protean.exceptions import InvalidStateError, ValidationError


def _make_product():
    return Product.create(
        store_id="store-001",
        name="Classic Burger",
        base_price=10.0,
        customizations=[
            {
                "customization_type": "size",
                "options": [
                    {"option_id": "regular", "name": "Regular", "price_modifier": 0.0},
                    {"option_id": "large", "name": "Large", "price_modifier": 2.5},
                ],
            },
        ],
        add_on_ids=["addon-cheese"],
    )


class TestProduct:
    def test_customization_surcharge(self):
        product = _make_product()
        kept, surcharge = product.price_customization([{"customization_type": "size", "option_id": "large"}])
        assert surcharge == 2.5
        assert kept == [{"customization_type": "size", "option_id": "large"}]

    def test_unknown_option_is_rejected_in_strict_mode(self):
        product = _make_product()
        with pytest.raises(ValidationError):
            product.price_customization([{"customization_type": "size", "option_id": "huge"}])

    def test_unknown_option_is_dropped_in_lenient_mode(self):
        product = _make_product()
        kept, surcharge = product.price_customization(
            [{"customization_type": "size", "option_id": "huge"}],
            strict=False,
        )
        assert kept == []
        assert surcharge == 0.0

    def test_offers_add_on(self):
        product = _make_product()
        assert product.offers_add_on("addon-cheese")
        assert not product.offers_add_on("addon-bacon")

    def test_change_price_raises_event(self):
        product = _make_product()
        product.change_price(11.0)
        assert product.base_price == 11.0
        changed = [e for e in product._events if isinstance(e, ProductPriceChanged)]
        assert changed[0].previous_price == 10.0

    def test_change_availability_is_idempotent(self):
        product = _make_product()
        product.change_availability(True)
        assert not [e for e in product._events if isinstance(e, ProductAvailabilityChanged)]
        product.change_availability(False)
        assert product.is_available is False
        assert len([e for e in product._events if isinstance(e, ProductAvailabilityChanged)]) == 1


class TestCoupon:
    def test_code_is_upper_cased(self):
        coupon = Coupon.create(code=" save5 ", discount_type="fixed", value=5.0)
        assert coupon.code == "SAVE5"

    def test_fixed_discount(self):
        coupon = Coupon.create(code="SAVE5", discount_type="fixed", value=5.0)
        assert coupon.discount_for(30.0) == 5.0

    def test_fixed_discount_is_capped_at_subtotal(self):
        coupon = Coupon.create(code="SAVE50", discount_type="fixed", value=50.0)
        assert coupon.discount_for(20.0) == 20.0

    def test_percentage_discount_with_cap(self):
        coupon = Coupon.create(code="HALF", discount_type="percentage", value=50.0, max_discount=8.0)
        assert coupon.discount_for(10.0) == 5.0
        assert coupon.discount_for(40.0) == 8.0

    def test_minimum_order_not_met(self):
        coupon = Coupon.create(code="BIG", discount_type="fixed", value=5.0, minimum_order=25.0)
        with pytest.raises(InvalidStateError):
            coupon.discount_for(24.99)

    def test_expired_coupon(self):
        coupon = Coupon.create(
            code="OLD",
            discount_type="fixed",
            value=5.0,
            expires_at=datetime.now(UTC) - timedelta(days=1),
        )
        with pytest.raises(InvalidStateError):
            coupon.discount_for(30.0)

    def test_inactive_coupon(self):
        coupon = Coupon.create(code="GONE", discount_type="fixed", value=5.0)
        coupon.deactivate()
        with pytest.raises(InvalidStateError):
            coupon.discount_for(30.0)

    def test_percentage_above_hundred_is_invalid(self):
        with pytest.raises(ValidationError):
            Coupon.create(code="FREE", discount_type="percentage", value=150.0)
