"""Domain events for the Product aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
    name = String(required=True)
    price = Float(required=True)
    quantity = Integer(required=True)
    created_at = DateTime(required=True)


@storefront.event(part_of="Product")
class StockDecremented:
    """Units left the shelf because a paid order claimed them."""

    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)
    low_stock = Boolean(default=False)


@storefront.event(part_of="Product")
class StockReplenished:
    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    reason = String()
