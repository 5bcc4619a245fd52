"""Checkout session creation and expiry — commands and handlers."""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.items import active_cart_or_fail
from ordering.checkout.delivery import delivery_fee_for
from ordering.checkout.session import CheckoutSession, CheckoutStatus, PaymentMethod
from ordering.checkout.validation import validate_cart
from ordering.domain import ordering
from ordering.menu.catalogue import Catalogue
from ordering.shared.timestamps import as_utc

logger = structlog.get_logger(__name__)

EXPIRY_BATCH_SIZE = 100


@ordering.command(part_of="CheckoutSession")
class CreateCheckoutSession:
    """Validate the active cart and freeze it into a priced session.

    ``delivery_address`` and ``notes`` default to those stored on the cart.
    """

    user_id = Identifier(required=True)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CARD.value)
    delivery_address = String(max_length=500)
    notes = String(max_length=500)
    coupon_code = String(max_length=50)


@ordering.command(part_of="CheckoutSession")
class ExpireCheckoutSessions:
    """Mark open sessions past their expiry time as expired.

    Meant to be run periodically by an external scheduler.
    """

    as_of = DateTime()


@ordering.command_handler(part_of=CheckoutSession)
class CreateCheckoutSessionHandler:
    @handle(CreateCheckoutSession)
    def create_checkout_session(self, command):
        catalogue = Catalogue()
        cart = active_cart_or_fail(command.user_id)
        store = validate_cart(cart, catalogue)

        address = command.delivery_address or cart.delivery_address
        session = CheckoutSession.start(
            cart,
            delivery_fee=delivery_fee_for(store, cart.pricing.subtotal, address),
            payment_method=command.payment_method,
            delivery_address=address,
            notes=command.notes or cart.notes,
        )
        if command.coupon_code:
            coupon = catalogue.find_coupon(command.coupon_code)
            session.apply_coupon(coupon.code, coupon.discount_for(session.pricing.subtotal))

        current_domain.repository_for(CheckoutSession).add(session)
        logger.info(
            "Checkout session started",
            checkout_id=str(session.id),
            cart_id=str(cart.id),
            total=session.pricing.total,
        )
        return str(session.id)

    @handle(ExpireCheckoutSessions)
    def expire_checkout_sessions(self, command):
        as_of = as_utc(command.as_of or datetime.now(UTC)).astimezone(UTC)
        repo = current_domain.repository_for(CheckoutSession)
        query = (
            repo._dao.query.filter(status=CheckoutStatus.OPEN.value, expires_at__lt=as_of)
            .order_by("expires_at")
            .limit(EXPIRY_BATCH_SIZE)
        )

        # Collect every page before writing; expiring a session moves it out of the filter
        overdue = []
        page = query.all()
        overdue.extend(page.items)
        while page.has_next:
            page = query.offset(page.offset + page.limit).all()
            overdue.extend(page.items)

        for session in overdue:
            session.expire()
            repo.add(session)

        logger.info("Expired checkout sessions", count=len(overdue))
        return len(overdue)
