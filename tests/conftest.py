import json
import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the config overlay before the domain is imported and initialized.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    for name in ("STOREFRONT_GATEWAY", "STOREFRONT_REPRICE_FROM_CATALOGUE", "STOREFRONT_ORDER_PREFIX"):
        os.environ.pop(name, None)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    """Run every test inside the storefront domain with clean infrastructure."""
    from storefront.channel import reset_channels
    from storefront.gateway import reset_gateway

    with storefront_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_channels()


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
SHIPPING_ADDRESS = {
    "street": "100 Calle Luna",
    "city": "San Juan",
    "state": "PR",
    "zip_code": "00901",
    "country": "USA",
}


@pytest.fixture
def create_product():
    """Store a product and return it."""
    from protean import current_domain
    from storefront.product.product import Product

    def _create(name="Breaker 20A", sku="BRK-20", price=10.0, quantity=5, cost_price=6.0, **kwargs):
        product = Product.create(name=name, sku=sku, price=price, quantity=quantity, cost_price=cost_price, **kwargs)
        current_domain.repository_for(Product).add(product)
        return current_domain.repository_for(Product).get(product.id)

    return _create


def order_lines(lines):
    """Checkout items for ``[(product, quantity), ...]`` at catalogue price."""
    return [
        {
            "product_id": str(product.id),
            "product_name": product.name,
            "quantity": quantity,
            "unit_price": product.effective_price,
        }
        for product, quantity in lines
    ]


def order_totals(items, tax_rate=0.115, shipping=0.0, discount=0.0):
    from storefront.shared.money import calculate_tax, calculate_total, line_total, round_money

    subtotal = round_money(sum(line_total(item["unit_price"], item["quantity"]) for item in items))
    tax = calculate_tax(subtotal, tax_rate)
    return {
        "subtotal": subtotal,
        "tax": tax,
        "tax_rate": tax_rate,
        "shipping": shipping,
        "discount": discount,
        "total": calculate_total(subtotal, tax, shipping, discount),
    }


@pytest.fixture
def place_order_command():
    """Build a PlaceOrder command for ``[(product, quantity), ...]``.

    Totals are computed from the lines; keyword overrides replace any
    command field afterwards.
    """
    from storefront.order.placement import PlaceOrder

    def _build(lines, tax_rate=0.115, shipping=0.0, discount=0.0, **overrides):
        items = order_lines(lines)
        data = {
            "user_id": None,
            "customer_name": "Ana Rivera",
            "customer_email": "ana@example.com",
            "customer_phone": "787-555-0100",
            "items": json.dumps(items),
            "shipping_address": json.dumps(SHIPPING_ADDRESS),
            **order_totals(items, tax_rate=tax_rate, shipping=shipping, discount=discount),
        }
        data.update(overrides)
        return PlaceOrder(**data)

    return _build


@pytest.fixture
def place_order(place_order_command):
    """Place an order through the command handler and return it."""
    from protean import current_domain
    from storefront.order.order import Order

    def _place(lines, **kwargs):
        order_id = current_domain.process(place_order_command(lines, **kwargs), asynchronous=False)
        return current_domain.repository_for(Order).get(order_id)

    return _place


def checkout_event(event_type, order_id, session_id="cs_test_123", payment_intent="pi_test_123", event_id="evt_1"):
    """A gateway webhook event as the FakeGateway would deliver it."""
    return {
        "id": event_id,
        "type": event_type,
        "data": {
            "object": {
                "id": session_id,
                "payment_intent": payment_intent,
                "metadata": {"orderId": order_id} if order_id else {},
            }
        },
    }


@pytest.fixture
def make_checkout_event():
    return checkout_event


@pytest.fixture
def checkout_payload():
    """JSON body for POST /checkout/sessions for ``[(product, quantity), ...]``."""

    def _build(lines, user_id=None, customer=None, **totals):
        items = order_lines(lines)
        return {
            "user_id": user_id,
            "customer": customer or {"name": "Ana Rivera", "email": "ana@example.com", "phone": "787-555-0100"},
            "items": items,
            "shipping_address": dict(SHIPPING_ADDRESS),
            **order_totals(items, **totals),
        }

    return _build
