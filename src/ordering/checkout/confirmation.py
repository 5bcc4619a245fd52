"""Checkout confirmation — turn a session into an order.

The handler runs inside a single unit of work: the cart conversion, the new
order (with its first history entry) and the session confirmation are
committed together or not at all. The cart must still be active and hold the
lines the session froze, so two sessions over the same cart can never both
produce an order and no cart line is lost. Confirming a
session that is already confirmed returns the order it produced.
"""

import structlog
from protean import handle
from protean.exceptions import InvalidStateError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.checkout.session import CheckoutSession, CheckoutStatus
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.shared.pricing import Pricing

logger = structlog.get_logger(__name__)


@ordering.command(part_of="CheckoutSession")
class ConfirmCheckout:
    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)


@ordering.command_handler(part_of=CheckoutSession)
class ConfirmCheckoutHandler:
    @handle(ConfirmCheckout)
    def confirm_checkout(self, command):
        session_repo = current_domain.repository_for(CheckoutSession)
        session = session_repo.get(command.checkout_id)
        session.assert_owned_by(command.user_id)

        if CheckoutStatus(session.status) == CheckoutStatus.CONFIRMED:
            logger.info(
                "Checkout already confirmed",
                checkout_id=str(session.id),
                order_id=str(session.order_id),
            )
            return str(session.order_id)
        session.assert_open()

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.get(session.cart_id)
        if not session.matches_cart(cart):
            raise InvalidStateError("Cart has changed since checkout started; start a new checkout")

        order = Order.place(
            user_id=session.user_id,
            store_id=session.store_id,
            lines=session.lines(),
            pricing=Pricing(**session.pricing.to_dict()),
            payment_method=session.payment_method,
            delivery_address=session.delivery_address,
            notes=session.notes,
            coupon_code=session.coupon_code,
            checkout_id=session.id,
            cart_id=cart.id,
        )
        cart.convert(order.id)
        session.confirm(order.id)

        cart_repo.add(cart)
        current_domain.repository_for(Order).add(order)
        session_repo.add(session)

        logger.info(
            "Checkout confirmed",
            checkout_id=str(session.id),
            order_id=str(order.id),
            order_number=order.order_number,
            total=order.pricing.total,
        )
        return str(order.id)
