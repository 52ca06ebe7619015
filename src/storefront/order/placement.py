"""Order placement: command and handler.

Every requested item is checked against the catalogue before anything is
written. Stock is only checked here; it is claimed when payment succeeds.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.domain import storefront
from storefront.exceptions import ProductNotFound
from storefront.order.order import Address, Order, Purchaser
from storefront.order.sequence import next_order_number
from storefront.product.product import Product
from storefront.shared.money import calculate_tax, calculate_total, line_total, round_money

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier()
    customer_name = String(max_length=255)
    customer_email = String(max_length=254)
    customer_phone = String(max_length=50)
    items = Text(required=True)  # JSON: list of item dicts
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict
    subtotal = Float(required=True, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    tax_rate = Float(min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    notes = Text()


def _loads(value):
    return json.loads(value) if isinstance(value, str) else value


def _build_purchaser(command) -> Purchaser:
    if command.user_id:
        return Purchaser.registered(
            user_id=command.user_id,
            name=command.customer_name,
            email=command.customer_email,
            phone=command.customer_phone,
        )
    return Purchaser.guest(
        name=command.customer_name,
        email=command.customer_email,
        phone=command.customer_phone,
    )


def _resolve_items(requested: list[dict], reprice: bool) -> list[dict]:
    """Check each item against the catalogue and fill in product snapshots.

    Raises ProductNotFound or InsufficientStock on the first item that
    cannot be sold.
    """
    repo = current_domain.repository_for(Product)
    resolved = []
    for item in requested:
        name = item.get("product_name") or item.get("product_id")
        try:
            product = repo.get(item["product_id"])
        except ObjectNotFoundError:
            raise ProductNotFound(name) from None

        quantity = int(item["quantity"])
        product.ensure_available(quantity)

        unit_price = product.effective_price if reprice else item["unit_price"]
        resolved.append(
            {
                "product_id": str(product.id),
                "product_name": item.get("product_name") or product.name,
                "product_sku": item.get("product_sku") or product.sku,
                "product_image": item.get("product_image") or product.image_url,
                "quantity": quantity,
                "unit_price": round_money(unit_price),
                "unit_cost": product.cost_price or 0.0,
                "total_price": line_total(unit_price, quantity) if reprice else item.get("total_price"),
            }
        )
    return resolved


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        settings = get_settings()
        requested = _loads(command.items) or []
        if not requested:
            raise ValidationError({"items": ["At least one item is required"]})

        items = _resolve_items(requested, reprice=settings.reprice_from_catalogue)

        tax_rate = command.tax_rate if command.tax_rate is not None else settings.tax_rate
        subtotal, tax, total = command.subtotal, command.tax or 0.0, command.total
        if settings.reprice_from_catalogue:
            subtotal = round_money(sum(item["total_price"] for item in items))
            tax = calculate_tax(subtotal, tax_rate)
            total = calculate_total(subtotal, tax, command.shipping or 0.0, command.discount or 0.0)

        billing = _loads(command.billing_address)
        order = Order.place(
            order_number=next_order_number(settings.order_prefix),
            purchaser=_build_purchaser(command),
            items_data=items,
            shipping_address=Address(**_loads(command.shipping_address)),
            billing_address=Address(**billing) if billing else None,
            subtotal=subtotal,
            tax=tax,
            tax_rate=tax_rate,
            shipping=command.shipping or 0.0,
            discount=command.discount or 0.0,
            total=total,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=order.total,
        )
        return str(order.id)
