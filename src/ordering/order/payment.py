"""Order payment — command and handler.

The payment provider reports its verdict asynchronously. The result only
applies while the order is still pending payment: a completed payment
confirms the order, a failed one leaves it pending so the customer can
retry or cancel.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.menu.catalogue import Catalogue
from ordering.order.order import Order, PaymentStatus


@ordering.command(part_of="Order")
class RecordPaymentResult:
    order_id = Identifier(required=True)
    payment_status = String(required=True, choices=PaymentStatus)
    payment_reference = String(max_length=255)


@ordering.command_handler(part_of=Order)
class RecordPaymentHandler:
    @handle(RecordPaymentResult)
    def record_payment_result(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment(
            payment_status=command.payment_status,
            payment_reference=command.payment_reference,
            prep_minutes=Catalogue().prep_minutes(order.store_id),
        )
        repo.add(order)
        return order.status
