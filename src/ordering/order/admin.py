"""Staff-only order operations — driver assignment and internal notes."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class AssignDriver:
    order_id = Identifier(required=True)
    driver_id = Identifier(required=True)


@ordering.command(part_of="Order")
class AddInternalNote:
    order_id = Identifier(required=True)
    note = Text(required=True)
    author = String(max_length=100)


@ordering.command_handler(part_of=Order)
class OrderAdminHandler:
    @handle(AssignDriver)
    def assign_driver(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assign_driver(command.driver_id)
        repo.add(order)

    @handle(AddInternalNote)
    def add_internal_note(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.add_internal_note(command.note, author=command.author)
        repo.add(order)
