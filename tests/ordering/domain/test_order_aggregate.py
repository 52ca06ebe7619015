"""Domain tests for the Order aggregate: placement, totals and purchasers."""

import pytest
from protean.exceptions import ValidationError
from storefront.order.events import OrderPlaced
from storefront.order.order import Address, Order, OrderStatus, PaymentStatus, Purchaser, PurchaserKind


def _address():
    return Address(street="100 Calle Luna", city="San Juan", state="PR", zip_code="00901")


def _items(**overrides):
    item = {
        "product_id": "prod-001",
        "product_name": "Breaker 20A",
        "product_sku": "BRK-20",
        "quantity": 2,
        "unit_price": 10.0,
        "unit_cost": 6.0,
    }
    item.update(overrides)
    return [item]


def _place(**overrides):
    data = {
        "order_number": "MES-2510-00001",
        "purchaser": Purchaser.guest(name="Ana Rivera", email="ana@example.com"),
        "items_data": _items(),
        "shipping_address": _address(),
        "subtotal": 20.0,
        "tax": 2.3,
        "tax_rate": 0.115,
        "total": 22.3,
    }
    data.update(overrides)
    return Order.place(**data)


class TestOrderPlacement:
    def test_new_order_is_pending(self):
        order = _place()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.payment_method == "card"
        assert order.created_at is not None

    def test_line_totals_are_computed(self):
        order = _place()
        item = order.items[0]
        assert item.total_price == 20.0
        assert item.total_cost == 12.0
        assert order.total_cost == 12.0

    def test_item_count_sums_quantities(self):
        order = _place(
            items_data=_items() + _items(product_id="prod-002", product_name="Wire", quantity=3, unit_price=1.0),
            subtotal=23.0,
            tax=0.0,
            total=23.0,
        )
        assert order.item_count == 5

    def test_placement_raises_event(self):
        order = _place()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.order_number == "MES-2510-00001"
        assert event.purchaser_kind == PurchaserKind.GUEST.value
        assert event.item_count == 2

    def test_shipping_and_discount_balance(self):
        order = _place(shipping=5.0, discount=2.3, total=25.0)
        assert order.total == 25.0


class TestOrderInvariants:
    def test_order_requires_items(self):
        with pytest.raises(ValidationError) as exc:
            _place(items_data=[], subtotal=0.0, tax=0.0, total=0.0)
        assert "items" in exc.value.messages

    def test_total_must_balance(self):
        with pytest.raises(ValidationError) as exc:
            _place(total=30.0)
        assert "total" in exc.value.messages

    def test_line_total_must_match_quantity(self):
        with pytest.raises(ValidationError):
            _place(items_data=_items(total_price=25.0))

    def test_item_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _place(items_data=_items(quantity=0), subtotal=0.0, tax=0.0, total=0.0)

    def test_shipping_address_required(self):
        with pytest.raises(ValidationError):
            _place(shipping_address=None)


class TestPurchaser:
    def test_registered_purchaser(self):
        purchaser = Purchaser.registered(user_id="user-001", name="Ana", email="ana@example.com")
        assert purchaser.kind == PurchaserKind.REGISTERED.value

    def test_registered_requires_user_id(self):
        with pytest.raises(ValidationError):
            Purchaser(kind=PurchaserKind.REGISTERED.value, name="Ana", email="ana@example.com")

    def test_guest_requires_email(self):
        with pytest.raises(ValidationError):
            Purchaser.guest(name="Ana", email=None)

    def test_guest_cannot_carry_user_id(self):
        with pytest.raises(ValidationError):
            Purchaser(kind=PurchaserKind.GUEST.value, user_id="user-001", name="Ana", email="ana@example.com")

    def test_customer_shortcuts(self):
        order = _place()
        assert order.customer_name == "Ana Rivera"
        assert order.customer_email == "ana@example.com"


class TestInternalNotes:
    def test_notes_are_appended_with_timestamps(self):
        order = _place()
        order.add_internal_note("First")
        order.add_internal_note("Second")
        lines = order.internal_notes.splitlines()
        assert len(lines) == 2
        assert lines[0].endswith("First")
        assert lines[1].startswith("[")
