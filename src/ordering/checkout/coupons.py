"""Coupon application on a checkout session — commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.checkout.session import CheckoutSession
from ordering.domain import ordering
from ordering.menu.catalogue import Catalogue


@ordering.command(part_of="CheckoutSession")
class ApplyCoupon:
    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)


@ordering.command(part_of="CheckoutSession")
class RemoveCoupon:
    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)


@ordering.command_handler(part_of=CheckoutSession)
class CheckoutCouponHandler:
    @handle(ApplyCoupon)
    def apply_coupon(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        session.assert_owned_by(command.user_id)
        session.assert_open()

        coupon = Catalogue().find_coupon(command.coupon_code)
        session.apply_coupon(coupon.code, coupon.discount_for(session.pricing.subtotal))
        repo.add(session)
        return session.pricing.discount

    @handle(RemoveCoupon)
    def remove_coupon(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        session.assert_owned_by(command.user_id)
        session.remove_coupon()
        repo.add(session)
