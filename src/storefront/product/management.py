"""Catalogue management: product creation and stock replenishment."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.product.product import Product


@storefront.command(part_of="Product")
class CreateProduct:
    name = String(required=True, max_length=255)
    sku = String(required=True, max_length=50)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(default=0, min_value=0)
    cost_price = Float(default=0.0, min_value=0.0)
    slug = String(max_length=200)
    description = Text()
    category = String(max_length=100)
    image_url = String(max_length=500)
    compare_at_price = Float(min_value=0.0)
    is_on_sale = Boolean(default=False)
    sale_price = Float(min_value=0.0)
    low_stock_threshold = Integer(default=5, min_value=0)


@storefront.command(part_of="Product")
class ReplenishStock:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    reason = String(max_length=255)


@storefront.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        product = Product.create(
            name=command.name,
            sku=command.sku,
            price=command.price,
            quantity=command.quantity or 0,
            cost_price=command.cost_price or 0.0,
            slug=command.slug,
            description=command.description,
            category=command.category,
            image_url=command.image_url,
            compare_at_price=command.compare_at_price,
            is_on_sale=bool(command.is_on_sale),
            sale_price=command.sale_price,
            low_stock_threshold=command.low_stock_threshold if command.low_stock_threshold is not None else 5,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(ReplenishStock)
    def replenish_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.replenish(command.quantity, reason=command.reason)
        repo.add(product)
        return product.quantity
