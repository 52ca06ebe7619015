"""Application tests for admin status changes and their side effects."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.activity.activity import ActivityLog
from storefront.activity.recorder import Actor
from storefront.channel import get_channel
from storefront.exceptions import OrderNotFound
from storefront.order.order import Order
from storefront.order.status import update_order_status

ADMIN = Actor(name="Luis Ortiz", role="admin", user_id="admin-001", ip_address="10.0.0.7")


def _activity():
    return current_domain.repository_for(ActivityLog)._dao.query.all().items


def _emails():
    return get_channel("Email").sent_emails


class TestUpdateOrderStatus:
    def test_status_is_changed(self, create_product, place_order):
        order = place_order([(create_product(), 1)])
        updated = update_order_status(str(order.id), "processing", actor=ADMIN)
        assert updated.status == "processing"
        assert current_domain.repository_for(Order).get(order.id).status == "processing"

    def test_change_is_audited(self, create_product, place_order):
        order = place_order([(create_product(), 1)])
        update_order_status(str(order.id), "processing", actor=ADMIN)

        [entry] = _activity()
        assert entry.action == "status_changed"
        assert entry.category == "order"
        assert entry.target_id == str(order.id)
        assert entry.target_name == order.order_number
        assert entry.user_name == "Luis Ortiz"
        assert entry.ip_address == "10.0.0.7"
        assert json.loads(entry.details) == {"old_status": "pending", "new_status": "processing"}

    def test_shipping_notifies_customer(self, create_product, place_order):
        order = place_order([(create_product(), 1)])
        update_order_status(str(order.id), "processing")
        update_order_status(str(order.id), "shipped", tracking_number="1Z999", estimated_delivery="Nov 3")

        shipped = _emails()[-1]
        assert shipped["to"] == "ana@example.com"
        assert shipped["subject"] == f"Order Shipped! - Order #{order.order_number}"
        assert "Tracking Number: 1Z999" in shipped["body"]
        assert "Estimated Delivery: Nov 3" in shipped["body"]

    def test_confirmed_is_not_notified(self, create_product, place_order):
        order = place_order([(create_product(), 1)])
        update_order_status(str(order.id), "confirmed")
        assert _emails() == []

    def test_same_status_has_no_side_effects(self, create_product, place_order):
        order = place_order([(create_product(), 1)])
        update_order_status(str(order.id), "processing")
        emails, entries = len(_emails()), len(_activity())

        updated = update_order_status(str(order.id), "processing", tracking_number="1Z111")

        assert updated.tracking_number == "1Z111"
        assert len(_emails()) == emails
        assert len(_activity()) == entries

    def test_email_failure_does_not_block_change(self, create_product, place_order):
        order = place_order([(create_product(), 1)])
        get_channel("Email").configure(should_succeed=False)

        updated = update_order_status(str(order.id), "processing")
        assert updated.status == "processing"

    def test_illegal_transition(self, create_product, place_order):
        order = place_order([(create_product(), 1)])
        with pytest.raises(ValidationError):
            update_order_status(str(order.id), "delivered")
        assert current_domain.repository_for(Order).get(order.id).status == "pending"
        assert _activity() == []

    def test_unknown_status(self, create_product, place_order):
        order = place_order([(create_product(), 1)])
        with pytest.raises(ValidationError):
            update_order_status(str(order.id), "misplaced")

    def test_unknown_order(self):
        with pytest.raises(OrderNotFound):
            update_order_status("missing-order", "processing")
