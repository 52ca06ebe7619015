"""Read side for orders: lookups, admin listing and customer history."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.exceptions import OrderNotFound
from storefront.order.order import Address, Order
from storefront.shared.pagination import DEFAULT_PAGE_SIZE, iter_query, matches_search, paginate, query_page


def _iso(value):
    return value.isoformat() if value else None


def _address_to_dict(address: Address | None) -> dict | None:
    if address is None:
        return None
    return {
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "zip_code": address.zip_code,
        "country": address.country,
    }


def order_to_dict(order: Order) -> dict:
    purchaser = order.purchaser
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "purchaser": {
            "kind": purchaser.kind,
            "user_id": purchaser.user_id,
            "name": purchaser.name,
            "email": purchaser.email,
            "phone": purchaser.phone,
        },
        "items": [
            {
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "product_sku": item.product_sku,
                "product_image": item.product_image,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "unit_cost": item.unit_cost,
                "total_price": item.total_price,
                "total_cost": item.total_cost,
            }
            for item in order.items
        ],
        "subtotal": order.subtotal,
        "tax": order.tax,
        "tax_rate": order.tax_rate,
        "shipping": order.shipping,
        "discount": order.discount,
        "total": order.total,
        "total_cost": order.total_cost,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "checkout_session_id": order.checkout_session_id,
        "payment_intent_id": order.payment_intent_id,
        "shipping_address": _address_to_dict(order.shipping_address),
        "billing_address": _address_to_dict(order.billing_address),
        "tracking_number": order.tracking_number,
        "estimated_delivery": order.estimated_delivery,
        "notes": order.notes,
        "internal_notes": order.internal_notes,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
        "paid_at": _iso(order.paid_at),
        "shipped_at": _iso(order.shipped_at),
        "delivered_at": _iso(order.delivered_at),
    }


def get_order(order_id: str) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise OrderNotFound(order_id) from None


def get_order_by_number(order_number: str) -> Order:
    matches = current_domain.repository_for(Order)._dao.query.filter(order_number=order_number).all().items
    if not matches:
        raise OrderNotFound(order_number)
    return matches[0]


def _order_query(**filters):
    query = current_domain.repository_for(Order)._dao.query
    if filters:
        query = query.filter(**filters)
    return query.order_by("-created_at")


def list_orders(
    status: str | None = None,
    payment_status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """Newest-first orders for the admin console.

    ``search`` matches order number, customer name or customer email.
    """
    filters = {}
    if status:
        filters["status"] = status
    if payment_status:
        filters["payment_status"] = payment_status

    query = _order_query(**filters)
    if search:
        orders = [
            order
            for order in iter_query(query)
            if matches_search(search, order.order_number, order.customer_name, order.customer_email)
        ]
        result = paginate(orders, page=page, limit=limit)
    else:
        result = query_page(query, page=page, limit=limit)

    return {
        "orders": [order_to_dict(order) for order in result["items"]],
        "total": result["total"],
        "page": result["page"],
        "total_pages": result["total_pages"],
    }


def orders_for_customer(user_id: str, email: str | None = None, status: str | None = None) -> list[dict]:
    """Orders placed by a registered customer.

    Guest orders placed earlier with the same email are included when
    ``email`` is given.
    """
    filters = {"status": status} if status else {}
    return [
        order_to_dict(order)
        for order in iter_query(_order_query(**filters))
        if order.purchaser.user_id == user_id or (email and (order.customer_email or "").lower() == email.lower())
    ]
