import json

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        # Clear all databases and drain the event store
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Menu fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def store():
    from ordering.menu.store import Store

    store = Store(name="Downtown Diner", delivery_fee=4.0, free_delivery_minimum=50.0, average_prep_time=20)
    current_domain.repository_for(Store).add(store)
    return store


@pytest.fixture()
def other_store():
    from ordering.menu.store import Store

    store = Store(name="Uptown Noodles", delivery_fee=3.0, average_prep_time=10)
    current_domain.repository_for(Store).add(store)
    return store


@pytest.fixture()
def cheese():
    from ordering.menu.add_on import AddOn

    add_on = AddOn(name="Extra cheese", price=1.0)
    current_domain.repository_for(AddOn).add(add_on)
    return add_on


@pytest.fixture()
def bacon():
    from ordering.menu.add_on import AddOn

    add_on = AddOn(name="Bacon", price=2.0)
    current_domain.repository_for(AddOn).add(add_on)
    return add_on


@pytest.fixture()
def burger(store, cheese, bacon):
    """10.00 burger; large size +2.50, spicy sauce +0.50; cheese and bacon add-ons."""
    from ordering.menu.product import Product

    product = Product.create(
        store_id=store.id,
        name="Classic Burger",
        base_price=10.0,
        customizations=[
            {
                "customization_type": "size",
                "options": [
                    {"option_id": "regular", "name": "Regular", "price_modifier": 0.0},
                    {"option_id": "large", "name": "Large", "price_modifier": 2.5},
                ],
            },
            {
                "customization_type": "sauce",
                "options": [{"option_id": "spicy", "name": "Spicy", "price_modifier": 0.5}],
            },
        ],
        add_on_ids=[cheese.id, bacon.id],
    )
    current_domain.repository_for(Product).add(product)
    return product


@pytest.fixture()
def fries(store):
    from ordering.menu.product import Product

    product = Product.create(store_id=store.id, name="Fries", base_price=3.0)
    current_domain.repository_for(Product).add(product)
    return product


@pytest.fixture()
def noodles(other_store):
    from ordering.menu.product import Product

    product = Product.create(store_id=other_store.id, name="Dan Dan Noodles", base_price=12.0)
    current_domain.repository_for(Product).add(product)
    return product


@pytest.fixture()
def large_spicy():
    """Customization choosing the large size and the spicy sauce (+3.00)."""
    return json.dumps(
        [
            {"customization_type": "size", "option_id": "large"},
            {"customization_type": "sauce", "option_id": "spicy"},
        ]
    )
