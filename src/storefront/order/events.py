"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A buyer started checkout and a pending order was recorded."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    purchaser_kind = String(required=True)
    customer_email = String()
    item_count = Integer(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class CheckoutSessionRecorded:
    __version__ = 1

    order_id = Identifier(required=True)
    checkout_session_id = String(required=True)


@storefront.event(part_of="Order")
class OrderPaid:
    """The gateway reported a completed checkout for this order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    checkout_session_id = String()
    payment_intent_id = String()
    total = Float(required=True)
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class CheckoutExpired:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    expired_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    tracking_number = String()
    changed_at = DateTime(required=True)
