"""Order aggregate: the record a checkout creates and admins advance.

Fulfillment status and payment status move independently. Payment status is
driven by gateway webhooks; fulfillment status is driven by the webhook on
payment and by admins afterwards.

Fulfillment state machine:
    pending -> confirmed -> processing -> shipped -> delivered
    processing -> ready_for_pickup -> delivered
    cancelled from any open state; refunded from any state but itself
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.order.events import (
    CheckoutExpired,
    CheckoutSessionRecorded,
    OrderPaid,
    OrderPlaced,
    OrderStatusChanged,
)
from storefront.shared.money import amounts_match, calculate_total, line_total, round_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    READY_FOR_PICKUP = "ready_for_pickup"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIAL_REFUND = "partial_refund"


class PurchaserKind(Enum):
    REGISTERED = "registered"
    GUEST = "guest"


class PaymentOutcome(Enum):
    """What a payment confirmation did to an order."""

    APPLIED = "applied"
    ALREADY_PAID = "already_paid"
    REFUND_PENDING = "refund_pending"

    @property
    def fulfils_order(self) -> bool:
        return self is PaymentOutcome.APPLIED


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.PROCESSING: {
        OrderStatus.READY_FOR_PICKUP,
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.READY_FOR_PICKUP: {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: {OrderStatus.REFUNDED},
    OrderStatus.REFUNDED: set(),  # Terminal
}

# A payment landing on one of these is owed back, never fulfilled
_CLOSED_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

# Statuses whose arrival is announced to the customer by email
NOTIFIABLE_STATUSES = frozenset(
    {
        OrderStatus.PROCESSING.value,
        OrderStatus.READY_FOR_PICKUP.value,
        OrderStatus.SHIPPED.value,
        OrderStatus.DELIVERED.value,
        OrderStatus.CANCELLED.value,
    }
)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class Address:
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(max_length=100, default="USA")


@storefront.value_object(part_of="Order")
class Purchaser:
    """Who placed the order: a registered account or a guest.

    A registered purchaser is identified by ``user_id``; contact fields are
    a snapshot taken at checkout. A guest has no account and is identified
    by name and email alone.
    """

    kind = String(required=True, choices=PurchaserKind)
    user_id = Identifier()
    name = String(max_length=255)
    email = String(max_length=254)
    phone = String(max_length=50)

    @invariant.post
    def identity_must_match_kind(self):
        if self.kind == PurchaserKind.REGISTERED.value:
            if not self.user_id:
                raise ValidationError({"purchaser": ["A registered purchaser requires a user id"]})
        elif self.user_id:
            raise ValidationError({"purchaser": ["A guest purchaser cannot carry a user id"]})
        elif not (self.name and self.email):
            raise ValidationError({"purchaser": ["A guest purchaser requires a name and an email"]})

    @classmethod
    def registered(cls, user_id, name=None, email=None, phone=None):
        return cls(kind=PurchaserKind.REGISTERED.value, user_id=user_id, name=name, email=email, phone=phone)

    @classmethod
    def guest(cls, name, email, phone=None):
        return cls(kind=PurchaserKind.GUEST.value, name=name, email=email, phone=phone)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A purchased product captured at checkout.

    Name, SKU, image and prices are snapshots; later catalogue edits never
    rewrite an order.
    """

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_sku = String(max_length=50)
    product_image = String(max_length=500)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    unit_cost = Float(default=0.0, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    total_cost = Float(default=0.0, min_value=0.0)

    @invariant.post
    def line_totals_must_match_quantity(self):
        if not amounts_match(self.total_price, line_total(self.unit_price, self.quantity)):
            raise ValidationError(
                {"items": [f"Line total for {self.product_name} must equal unit price times quantity"]}
            )
        if not amounts_match(self.total_cost or 0.0, line_total(self.unit_cost or 0.0, self.quantity)):
            raise ValidationError({"items": [f"Line cost for {self.product_name} must equal unit cost times quantity"]})


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    purchaser = ValueObject(Purchaser, required=True)
    items = HasMany(OrderItem)

    subtotal = Float(required=True, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    tax_rate = Float(default=0.0, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    total_cost = Float(default=0.0, min_value=0.0)

    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(max_length=50, default="card")
    checkout_session_id = String(max_length=255)
    payment_intent_id = String(max_length=255)

    shipping_address = ValueObject(Address, required=True)
    billing_address = ValueObject(Address)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=50)

    notes = Text()
    internal_notes = Text()

    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order must contain at least one item"]})

    @invariant.post
    def total_must_balance(self):
        expected = calculate_total(self.subtotal, self.tax or 0.0, self.shipping or 0.0, self.discount or 0.0)
        if not amounts_match(self.total, expected):
            raise ValidationError({"total": ["Total must equal subtotal plus tax plus shipping minus discount"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        purchaser,
        items_data,
        shipping_address,
        subtotal,
        total,
        tax=0.0,
        tax_rate=0.0,
        shipping=0.0,
        discount=0.0,
        billing_address=None,
        notes=None,
    ):
        """Record a new pending order.

        Args:
            order_number: Human-facing number, assigned once and never changed.
            purchaser: Purchaser value object.
            items_data: List of dicts with product_id, product_name, product_sku,
                        product_image, quantity, unit_price, unit_cost.
            shipping_address: Address value object.
        """
        now = datetime.now(UTC)

        items = []
        for data in items_data:
            quantity = int(data["quantity"])
            unit_cost = data.get("unit_cost") or 0.0
            items.append(
                OrderItem(
                    product_id=data["product_id"],
                    product_name=data["product_name"],
                    product_sku=data.get("product_sku"),
                    product_image=data.get("product_image"),
                    quantity=quantity,
                    unit_price=data["unit_price"],
                    unit_cost=unit_cost,
                    total_price=data.get("total_price") or line_total(data["unit_price"], quantity),
                    total_cost=line_total(unit_cost, quantity),
                )
            )

        order = cls(
            order_number=order_number,
            purchaser=purchaser,
            items=items,
            subtotal=subtotal,
            tax=tax or 0.0,
            tax_rate=tax_rate or 0.0,
            shipping=shipping or 0.0,
            discount=discount or 0.0,
            total=total,
            total_cost=round_money(sum(item.total_cost for item in items)),
            shipping_address=shipping_address,
            billing_address=billing_address,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                purchaser_kind=purchaser.kind,
                customer_email=purchaser.email,
                item_count=order.item_count,
                total=order.total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def customer_name(self) -> str | None:
        return self.purchaser.name if self.purchaser else None

    @property
    def customer_email(self) -> str | None:
        return self.purchaser.email if self.purchaser else None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    def add_internal_note(self, note: str) -> None:
        stamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M")
        line = f"[{stamp}] {note}"
        self.internal_notes = f"{self.internal_notes}\n{line}" if self.internal_notes else line

    # -------------------------------------------------------------------
    # Payment transitions (driven by gateway webhooks)
    # -------------------------------------------------------------------
    def record_checkout_session(self, checkout_session_id: str) -> None:
        self.checkout_session_id = checkout_session_id
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CheckoutSessionRecorded(
                order_id=str(self.id),
                checkout_session_id=checkout_session_id,
            )
        )

    def confirm_payment(self, checkout_session_id=None, payment_intent_id=None) -> PaymentOutcome:
        """Mark the order paid and start processing it.

        Returns ``ALREADY_PAID`` without changing anything when the order is
        already paid, which makes redelivered webhooks harmless. A cancelled
        or refunded order keeps its status and is marked paid pending a
        refund; the outcome is then ``REFUND_PENDING`` and the order must not
        be fulfilled.
        """
        if self.is_paid:
            return PaymentOutcome.ALREADY_PAID

        now = datetime.now(UTC)
        current = OrderStatus(self.status)
        with atomic_change(self):
            self.payment_status = PaymentStatus.PAID.value
            self.paid_at = now
            if checkout_session_id:
                self.checkout_session_id = checkout_session_id
            if payment_intent_id:
                self.payment_intent_id = payment_intent_id
            if current in _CLOSED_STATUSES:
                outcome = PaymentOutcome.REFUND_PENDING
                self.add_internal_note(f"Payment received on {current.value} order, refund pending")
            elif current in (OrderStatus.PENDING, OrderStatus.CONFIRMED):
                outcome = PaymentOutcome.APPLIED
                self.status = OrderStatus.PROCESSING.value
            else:
                outcome = PaymentOutcome.APPLIED
                self.add_internal_note(f"Payment received while order was {current.value}")
            self.updated_at = now

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                checkout_session_id=self.checkout_session_id,
                payment_intent_id=self.payment_intent_id,
                total=self.total,
                paid_at=now,
            )
        )
        return outcome

    def expire_checkout(self) -> bool:
        """Abandon an unpaid checkout. Paid or already-settled orders are left alone."""
        if self.payment_status != PaymentStatus.PENDING.value:
            return False

        now = datetime.now(UTC)
        current = OrderStatus(self.status)
        with atomic_change(self):
            self.payment_status = PaymentStatus.FAILED.value
            if OrderStatus.CANCELLED in _VALID_TRANSITIONS[current]:
                self.status = OrderStatus.CANCELLED.value
            self.updated_at = now

        self.raise_(
            CheckoutExpired(
                order_id=str(self.id),
                order_number=self.order_number,
                expired_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Admin status management
    # -------------------------------------------------------------------
    def change_status(self, new_status, tracking_number=None, estimated_delivery=None) -> str:
        """Move the order to ``new_status`` and return the previous status.

        Setting the current status again only stores any tracking details
        supplied; it raises no event.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Invalid status: {new_status}"]}) from None

        current = OrderStatus(self.status)
        if target != current and target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            if tracking_number:
                self.tracking_number = tracking_number
            if estimated_delivery:
                self.estimated_delivery = estimated_delivery
            if target != current:
                self.status = target.value
                if target == OrderStatus.SHIPPED:
                    self.shipped_at = now
                elif target == OrderStatus.DELIVERED:
                    self.delivered_at = now
            self.updated_at = now

        if target != current:
            self.raise_(
                OrderStatusChanged(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    previous_status=current.value,
                    new_status=target.value,
                    tracking_number=self.tracking_number,
                    changed_at=now,
                )
            )
        return current.value
