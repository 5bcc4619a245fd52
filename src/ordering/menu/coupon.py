"""Coupon aggregate — a discount code redeemable at checkout."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import InvalidStateError, ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, String

from ordering.domain import ordering
from ordering.shared.pricing import to_cents
from ordering.shared.timestamps import as_utc


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    discount_type = String(choices=DiscountType, default=DiscountType.FIXED.value)
    value = Float(required=True, min_value=0.0)
    minimum_order = Float(default=0.0, min_value=0.0)
    max_discount = Float(min_value=0.0)  # Cap for percentage coupons
    expires_at = DateTime()
    is_active = Boolean(default=True)

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["Percentage discount cannot exceed 100"]})

    @classmethod
    def create(cls, code, discount_type, value, minimum_order=0.0, max_discount=None, expires_at=None):
        return cls(
            code=code.strip().upper(),
            discount_type=discount_type,
            value=value,
            minimum_order=minimum_order or 0.0,
            max_discount=max_discount,
            expires_at=expires_at,
        )

    def discount_for(self, subtotal, now=None) -> float:
        """Discount this coupon grants on ``subtotal``, or InvalidStateError if it does not apply."""
        now = now or datetime.now(UTC)
        if not self.is_active:
            raise InvalidStateError(f"Coupon {self.code} is no longer active")
        if self.expires_at is not None and as_utc(self.expires_at) < now:
            raise InvalidStateError(f"Coupon {self.code} has expired")
        if subtotal < (self.minimum_order or 0.0):
            raise InvalidStateError(f"Coupon {self.code} requires a minimum order of {self.minimum_order:.2f}")

        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = subtotal * self.value / 100
            if self.max_discount is not None:
                discount = min(discount, self.max_discount)
        else:
            discount = self.value
        return to_cents(min(discount, subtotal))

    def deactivate(self):
        self.is_active = False


@ordering.repository(part_of=Coupon)
class CouponRepository:
    def by_code(self, code) -> Coupon:
        normalised = code.strip().upper()
        matches = self._dao.query.filter(code=normalised).all().items
        if not matches:
            raise ObjectNotFoundError(f"Coupon {normalised} does not exist")
        return matches[0]
