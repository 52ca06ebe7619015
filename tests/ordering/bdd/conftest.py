"""Shared BDD fixtures and step definitions for order status management."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from pytest_bdd import given, parsers, then, when
from storefront.activity.activity import ActivityLog
from storefront.activity.recorder import Actor
from storefront.channel import get_channel, set_channel
from storefront.channel.fake_email import FakeEmailAdapter
from storefront.exceptions import OrderNotFound
from storefront.order.deletion import delete_order
from storefront.order.order import Order
from storefront.order.payment import ConfirmOrderPayment
from storefront.order.status import update_order_status

ADMIN = Actor(name="Luis Ortiz", role="admin", user_id="admin-001")


class _UnreachableMailer(FakeEmailAdapter):
    def send(self, to, subject, body, html_body=None):
        raise ConnectionError("SMTP relay unreachable")


@pytest.fixture
def context():
    return {}


def _order(context):
    return current_domain.repository_for(Order).get(context["order_id"])


def _activity():
    return current_domain.repository_for(ActivityLog)._dao.query.all().items


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a paid order for {quantity:d} "{name}"'))
def _paid_order(context, create_product, place_order, quantity, name):
    product = create_product(name=name, quantity=10)
    order = place_order([(product, quantity)])
    current_domain.process(
        ConfirmOrderPayment(order_id=str(order.id), checkout_session_id="cs_bdd", payment_intent_id="pi_bdd"),
        asynchronous=False,
    )
    context["order_id"] = str(order.id)


@given("the mail provider is failing")
def _mail_failing():
    set_channel("Email", _UnreachableMailer())


@given("the order was shipped and delivered")
def _shipped_and_delivered(context):
    update_order_status(context["order_id"], "shipped", actor=ADMIN)
    update_order_status(context["order_id"], "delivered", actor=ADMIN)
    for entry in _activity():
        current_domain.repository_for(ActivityLog)._dao.delete(entry)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('an admin marks the order "{status}" with tracking number "{tracking_number}"'))
def _mark_with_tracking(context, status, tracking_number):
    update_order_status(context["order_id"], status, tracking_number=tracking_number, actor=ADMIN)


@when(parsers.cfparse('an admin marks the order "{status}"'))
def _mark(context, status):
    try:
        update_order_status(context["order_id"], status, actor=ADMIN)
    except ValidationError as exc:
        context["error"] = exc


@when("an admin deletes the order")
def _delete(context):
    delete_order(context["order_id"], actor=ADMIN)


@when("an admin deletes an order that does not exist")
def _delete_missing(context):
    try:
        delete_order("missing-order", actor=ADMIN)
    except OrderNotFound as exc:
        context["error"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _status(context, status):
    assert _order(context).status == status


@then(parsers.cfparse('the activity log has 1 status change from "{old}" to "{new}"'))
def _status_change_logged(context, old, new):
    [entry] = _activity()
    assert entry.action == "status_changed"
    assert entry.target_id == context["order_id"]
    assert json.loads(entry.details) == {"old_status": old, "new_status": new}


@then(parsers.cfparse('the activity log has 1 "{action}" entry'))
def _action_logged(context, action):
    assert [entry.action for entry in _activity()] == [action]


@then("the activity log is empty")
def _no_activity():
    assert _activity() == []


@then(parsers.cfparse('the buyer was emailed "{title}"'))
def _emailed(context, title):
    order = _order(context)
    subjects = [email["subject"] for email in get_channel("Email").sent_to(order.customer_email)]
    assert f"{title} - Order #{order.order_number}" in subjects


@then("the status change is rejected")
def _rejected(context):
    assert isinstance(context.get("error"), ValidationError)


@then("the order no longer exists")
def _gone(context):
    with pytest.raises(ObjectNotFoundError):
        _order(context)


@then("the order is reported as not found")
def _not_found(context):
    assert isinstance(context.get("error"), OrderNotFound)
