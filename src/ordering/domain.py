"""Ordering bounded context — Cart, Checkout and Order lifecycle.

Handles the food-ordering flow: a customer fills a cart for one store, the
cart is frozen into a checkout session, and confirming the session places an
order that is then advanced through its status state machine.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
