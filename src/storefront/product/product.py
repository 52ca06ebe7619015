"""Product aggregate: catalogue pricing and the stock counter."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.domain import storefront
from storefront.exceptions import InsufficientStock
from storefront.product.events import ProductCreated, StockDecremented, StockReplenished
from storefront.shared.money import round_money


class ProductStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


@storefront.aggregate
class Product:
    """A sellable item with a customer-visible price and on-hand stock.

    ``quantity`` never drops below zero: decrements are conditional on
    enough stock being available at the time of the call.
    """

    name = String(required=True, max_length=255)
    slug = String(max_length=200)
    sku = String(required=True, max_length=50)
    description = Text()
    category = String(max_length=100)
    image_url = String(max_length=500)
    price = Float(required=True, min_value=0.0)
    compare_at_price = Float(min_value=0.0)
    cost_price = Float(default=0.0, min_value=0.0)
    is_on_sale = Boolean(default=False)
    sale_price = Float(min_value=0.0)
    quantity = Integer(default=0, min_value=0)
    low_stock_threshold = Integer(default=5, min_value=0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def sale_price_required_while_on_sale(self):
        if self.is_on_sale and self.sale_price is None:
            raise ValidationError({"sale_price": ["Sale price is required when the product is on sale"]})

    @classmethod
    def create(
        cls,
        name,
        sku,
        price,
        quantity=0,
        cost_price=0.0,
        slug=None,
        description=None,
        category=None,
        image_url=None,
        compare_at_price=None,
        is_on_sale=False,
        sale_price=None,
        low_stock_threshold=5,
        status=None,
    ):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            sku=sku,
            price=round_money(price),
            quantity=quantity,
            cost_price=round_money(cost_price or 0.0),
            slug=slug,
            description=description,
            category=category,
            image_url=image_url,
            compare_at_price=compare_at_price,
            is_on_sale=is_on_sale,
            sale_price=sale_price,
            low_stock_threshold=low_stock_threshold,
            status=status or ProductStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                sku=sku,
                name=name,
                price=product.price,
                quantity=quantity,
                created_at=now,
            )
        )
        return product

    @property
    def effective_price(self) -> float:
        """Sale price while a valid sale is running, otherwise the list price."""
        if self.is_on_sale and self.sale_price and 0 < self.sale_price < self.price:
            return self.sale_price
        return self.price

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    def ensure_available(self, requested: int) -> None:
        if requested > self.quantity:
            raise InsufficientStock(self.name, available=self.quantity, requested=requested)

    def decrement_stock(self, requested: int) -> None:
        """Remove ``requested`` units, refusing when fewer are on hand."""
        if requested < 1:
            raise ValidationError({"quantity": ["Quantity to decrement must be at least 1"]})
        self.ensure_available(requested)

        self.quantity = self.quantity - requested
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockDecremented(
                product_id=str(self.id),
                sku=self.sku,
                quantity=requested,
                remaining=self.quantity,
                low_stock=self.is_low_stock,
            )
        )

    def replenish(self, quantity: int, reason: str | None = None) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity to add must be at least 1"]})

        self.quantity = self.quantity + quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReplenished(
                product_id=str(self.id),
                sku=self.sku,
                quantity=quantity,
                new_quantity=self.quantity,
                reason=reason,
            )
        )
