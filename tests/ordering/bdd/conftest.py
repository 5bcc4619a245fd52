"""Shared BDD fixtures and step definitions for the Ordering domain."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.cart.cart import Cart
from ordering.cart.items import AddToCart
from ordering.checkout.confirmation import ConfirmCheckout
from ordering.checkout.creation import CreateCheckoutSession
from ordering.exceptions import ForbiddenError
from ordering.menu.product import Product
from ordering.order.order import Order
from ordering.order.status import UpdateOrderStatus
from protean import current_domain
from protean.exceptions import InvalidStateError, ObjectNotFoundError, ValidationError
from pytest_bdd import given, parsers, then

HAPPY_PATH = ["confirmed", "preparing", "ready", "picked_up", "completed"]

# Map outcome phrases to the exceptions the domain raises
_REJECTIONS = {
    "a bad request": ValidationError,
    "an invalid state": InvalidStateError,
    "forbidden": ForbiddenError,
    "not found": ObjectNotFoundError,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer_id():
    return "user-001"


@pytest.fixture()
def happy_path():
    return list(HAPPY_PATH)


@pytest.fixture()
def error():
    """Container for the exception a When step raised, if any."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Command helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def attempt(error):
    """Build and process a command, capturing a domain rejection in ``error``."""

    def _attempt(build, **fields):
        try:
            return current_domain.process(build(**fields), asynchronous=False)
        except tuple(_REJECTIONS.values()) as exc:
            error["exc"] = exc
            return None

    return _attempt


@pytest.fixture()
def menu(burger, fries, noodles, cheese):
    return {
        "Classic Burger": burger,
        "Fries": fries,
        "Dan Dan Noodles": noodles,
        "Extra cheese": cheese,
    }


@pytest.fixture()
def add_to_cart(menu, customer_id):
    """Build an AddToCart command for a menu product by name."""

    def _command(product, quantity, customization=None, add_on_ids=None):
        return AddToCart(
            user_id=customer_id,
            product_id=str(menu[product].id),
            quantity=quantity,
            customization=customization,
            add_on_ids=add_on_ids,
        )

    return _command


@pytest.fixture()
def active_cart(customer_id):
    def _active_cart():
        return current_domain.repository_for(Cart).active_for(customer_id)

    return _active_cart


# ---------------------------------------------------------------------------
# Menu steps
# ---------------------------------------------------------------------------
@given("the menu of Downtown Diner and Uptown Noodles")
def _(menu):
    pass


@given(parsers.cfparse('"{product}" is no longer available'))
def product_unavailable(menu, product):
    record = menu[product]
    record.change_availability(False)
    current_domain.repository_for(Product).add(record)


# ---------------------------------------------------------------------------
# Cart steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the customer has {quantity:d} "{product}" in the cart'))
def customer_has_in_cart(add_to_cart, quantity, product):
    current_domain.process(add_to_cart(product, quantity), asynchronous=False)


@then(parsers.cfparse("the cart has {count:d} line"))
@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_lines(active_cart, count):
    assert len(active_cart().items) == count


@then(parsers.cfparse("the cart subtotal is {amount:f}"))
def cart_subtotal(active_cart, amount):
    assert active_cart().pricing.subtotal == pytest.approx(amount)


# ---------------------------------------------------------------------------
# Order steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('the customer placed an order for {quantity:d} "{product}"'),
    target_fixture="order_id",
)
def customer_placed_order(add_to_cart, customer_id, quantity, product):
    current_domain.process(add_to_cart(product, quantity), asynchronous=False)
    checkout_id = current_domain.process(CreateCheckoutSession(user_id=customer_id), asynchronous=False)
    return current_domain.process(ConfirmCheckout(checkout_id=checkout_id, user_id=customer_id), asynchronous=False)


@given(parsers.cfparse('the order has reached "{status}"'))
def order_reached(order_id, happy_path, status):
    for step in happy_path:
        current_domain.process(UpdateOrderStatus(order_id=order_id, new_status=step), asynchronous=False)
        if step == status:
            return


@given(parsers.cfparse("the order was placed {minutes:d} minutes ago"))
def order_placed_ago(order_id, minutes):
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    order.created_at = datetime.now(UTC) - timedelta(minutes=minutes)
    repo.add(order)


@then(parsers.cfparse('the order is "{status}"'))
def order_is(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse("the order history has {count:d} entries"))
def order_history_count(order_id, count):
    assert len(current_domain.repository_for(Order).get(order_id).history()) == count


# ---------------------------------------------------------------------------
# Outcome steps
# ---------------------------------------------------------------------------
@then("the request succeeds")
def request_succeeds(error):
    assert error["exc"] is None


@then(parsers.cfparse("the request is rejected as {outcome}"))
def request_rejected(error, outcome):
    assert isinstance(error["exc"], _REJECTIONS[outcome])
