"""Shared BDD fixtures and step definitions for checkout and payment."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then, when
from storefront.channel import get_channel
from storefront.checkout.initiation import initiate_checkout
from storefront.exceptions import SignatureInvalid
from storefront.gateway.fake_adapter import TEST_SIGNATURE
from storefront.order.order import Order
from storefront.payment.webhook import CHECKOUT_COMPLETED, CHECKOUT_EXPIRED, receive_payment_event
from storefront.product.product import Product


@pytest.fixture
def context():
    return {"products": {}}


def _order(context):
    return current_domain.repository_for(Order).get(context["order_id"])


def _deliver(context, event_type, make_checkout_event, signature=TEST_SIGNATURE):
    event = make_checkout_event(event_type, context["order_id"], session_id=context.get("session_id", "cs_test_bdd"))
    return receive_payment_event(json.dumps(event).encode("utf-8"), signature)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:f} with stock {stock:d}'))
def _product(context, create_product, name, price, stock):
    sku = name.upper().replace(" ", "-")
    context["products"][name] = create_product(name=name, sku=sku, price=price, quantity=stock)


@given(parsers.cfparse('a pending order for {quantity:d} "{name}"'))
def _pending_order(context, place_order, quantity, name):
    context["order_id"] = str(place_order([(context["products"][name], quantity)]).id)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse(
        'the buyer checks out {qty_a:d} "{name_a}" and {qty_b:d} "{name_b}" at a tax rate of {rate:f}'
    )
)
def _checkout(context, place_order_command, qty_a, name_a, qty_b, name_b, rate):
    products = context["products"]
    result = initiate_checkout(
        place_order_command([(products[name_a], qty_a), (products[name_b], qty_b)], tax_rate=rate)
    )
    context["order_id"] = result.order_id
    context["session_id"] = result.session_id


@when("the gateway reports the checkout completed")
def _completed(context, make_checkout_event):
    _deliver(context, CHECKOUT_COMPLETED, make_checkout_event)


@when("the gateway reports the checkout expired")
def _expired(context, make_checkout_event):
    _deliver(context, CHECKOUT_EXPIRED, make_checkout_event)


@when("a forged completion event arrives")
def _forged(context, make_checkout_event):
    try:
        _deliver(context, CHECKOUT_COMPLETED, make_checkout_event, signature="t=0,v1=forged")
    except SignatureInvalid as exc:
        context["error"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order {field} is {amount:f}"))
def _order_amount(context, field, amount):
    assert getattr(_order(context), field) == amount


@then(parsers.cfparse('the order status is "{status}"'))
def _order_status(context, status):
    assert _order(context).status == status


@then(parsers.cfparse('the order payment status is "{status}"'))
def _payment_status(context, status):
    assert _order(context).payment_status == status


@then("the order has a checkout session")
def _has_session(context):
    assert _order(context).checkout_session_id == context["session_id"]


@then(parsers.cfparse('the stock of "{name}" is {quantity:d}'))
def _stock(context, name, quantity):
    product = current_domain.repository_for(Product).get(context["products"][name].id)
    assert product.quantity == quantity


@then("an order confirmation was emailed to the buyer")
def _confirmation_sent(context):
    order = _order(context)
    emails = get_channel("Email").sent_to(order.customer_email)
    assert [email["subject"] for email in emails] == [f"Order Confirmation - Order #{order.order_number}"]


@then("the event is rejected")
def _rejected(context):
    assert isinstance(context.get("error"), SignatureInvalid)
