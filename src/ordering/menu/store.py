"""Store aggregate — the outlet an order is placed with and picked up from."""

from protean.fields import Boolean, Float, Integer, String

from ordering.domain import ordering


@ordering.aggregate
class Store:
    name = String(required=True, max_length=255)
    is_active = Boolean(default=True)
    delivery_fee = Float(default=0.0, min_value=0.0)
    free_delivery_minimum = Float(min_value=0.0)  # None: delivery is never free
    average_prep_time = Integer(default=15, min_value=1)  # minutes
