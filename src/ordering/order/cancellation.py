"""Customer cancellation — command and handler.

The order is re-read inside the handler so the status and the five-minute
window are checked against its current state, never a stale copy.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel_by_customer(user_id=command.user_id, reason=command.reason)
        repo.add(order)
