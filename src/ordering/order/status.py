"""Order status updates by store staff — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.menu.catalogue import Catalogue
from ordering.order.order import Actor, Order, OrderStatus


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    """Move an order along the transition table.

    When ``expected_status`` is given the update only applies if the order is
    still in that state.
    """

    order_id = Identifier(required=True)
    new_status = String(required=True, choices=OrderStatus)
    notes = String(max_length=500)
    changed_by = String(max_length=50, default=Actor.ADMIN.value)
    expected_status = String(choices=OrderStatus)


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        prep_minutes = None
        if command.new_status == OrderStatus.CONFIRMED.value:
            prep_minutes = Catalogue().prep_minutes(order.store_id)

        order.transition_to(
            command.new_status,
            changed_by=command.changed_by,
            notes=command.notes,
            expected_status=command.expected_status,
            prep_minutes=prep_minutes,
        )
        repo.add(order)
        return order.status
