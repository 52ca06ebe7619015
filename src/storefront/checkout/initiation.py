"""Checkout initiation: place a pending order and open a hosted payment page.

The order is committed before the gateway is called. If the gateway fails
the order stays pending with no session attached; it can be retried or
will simply never be paid. Nothing is reserved, so no cleanup is needed.
"""

from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from storefront.config import Settings, get_settings
from storefront.exceptions import GatewayError
from storefront.gateway import get_gateway
from storefront.gateway.port import CheckoutLineItem
from storefront.order.order import Order
from storefront.order.payment import RecordCheckoutSession
from storefront.order.placement import PlaceOrder
from storefront.shared.money import format_rate, to_minor_units

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    session_id: str
    session_url: str | None
    order_id: str
    order_number: str


def build_line_items(order: Order) -> list[CheckoutLineItem]:
    """Gateway line items: one per order item, then shipping and tax lines."""
    line_items = [
        CheckoutLineItem(
            name=item.product_name,
            unit_amount=to_minor_units(item.unit_price),
            quantity=item.quantity,
            images=[item.product_image] if item.product_image else [],
            metadata={"productId": str(item.product_id), "sku": item.product_sku or ""},
        )
        for item in order.items
    ]
    if order.shipping and order.shipping > 0:
        line_items.append(CheckoutLineItem(name="Shipping", unit_amount=to_minor_units(order.shipping), quantity=1))
    if order.tax and order.tax > 0:
        line_items.append(
            CheckoutLineItem(
                name=f"Tax ({format_rate(order.tax_rate)})",
                unit_amount=to_minor_units(order.tax),
                quantity=1,
            )
        )
    return line_items


def success_url(settings: Settings, order: Order) -> str:
    return f"{settings.base_url}/store/order-confirmation/{order.order_number}?payment=success"


def cancel_url(settings: Settings, order: Order) -> str:
    return f"{settings.base_url}/store/checkout?payment=cancelled&orderId={order.id}"


def initiate_checkout(command: PlaceOrder) -> CheckoutResult:
    """Place the order described by ``command`` and open a checkout session.

    Raises:
        ProductNotFound, InsufficientStock: an item can't be sold; nothing
            was stored.
        ValidationError: the order data is inconsistent; nothing was stored.
        GatewayError: the order was stored as pending but the gateway
            could not create a session.
    """
    settings = get_settings()
    order_id = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)

    try:
        session = get_gateway().create_checkout_session(
            line_items=build_line_items(order),
            currency=settings.currency,
            success_url=success_url(settings, order),
            cancel_url=cancel_url(settings, order),
            customer_email=order.customer_email,
            metadata={"orderId": str(order.id), "orderNumber": order.order_number},
        )
    except GatewayError as exc:
        logger.error(
            "Checkout session could not be created",
            order_id=order_id,
            order_number=order.order_number,
            error=str(exc),
        )
        raise

    current_domain.process(
        RecordCheckoutSession(order_id=order_id, checkout_session_id=session.id),
        asynchronous=False,
    )
    logger.info(
        "Checkout session created",
        order_id=order_id,
        order_number=order.order_number,
        checkout_session_id=session.id,
    )
    return CheckoutResult(
        session_id=session.id,
        session_url=session.url,
        order_id=order_id,
        order_number=order.order_number,
    )
