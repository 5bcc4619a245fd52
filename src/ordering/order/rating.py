"""Order rating — command and handler."""

from protean import handle
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RateOrder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)  # 1-5, checked by the Rating value object
    review = Text()


@ordering.command_handler(part_of=Order)
class RateOrderHandler:
    @handle(RateOrder)
    def rate_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.rate(user_id=command.user_id, rating=command.rating, review=command.review)
        repo.add(order)
