"""Pydantic request/response schemas for the storefront API.

These are external contracts (anti-corruption layer): separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str | None = None
    zip_code: str = Field(min_length=1)
    country: str = "USA"


class CustomerSchema(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str | None = None


class CheckoutItemSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    total_price: float | None = Field(default=None, ge=0)
    product_name: str | None = None
    product_sku: str | None = None
    product_image: str | None = None


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CreateCheckoutSessionRequest(BaseModel):
    user_id: str | None = None
    customer: CustomerSchema
    items: list[CheckoutItemSchema] = Field(min_length=1)
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    subtotal: float = Field(ge=0)
    tax: float = Field(default=0.0, ge=0)
    tax_rate: float | None = Field(default=None, ge=0)
    shipping: float = Field(default=0.0, ge=0)
    discount: float = Field(default=0.0, ge=0)
    total: float = Field(ge=0)
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer": {"name": "Ana Rivera", "email": "ana@example.com", "phone": "787-555-0100"},
                    "items": [{"product_id": "prod-001", "quantity": 2, "unit_price": 10.0}],
                    "shipping_address": {
                        "street": "100 Calle Luna",
                        "city": "San Juan",
                        "state": "PR",
                        "zip_code": "00901",
                    },
                    "subtotal": 20.0,
                    "tax": 2.3,
                    "tax_rate": 0.115,
                    "shipping": 0.0,
                    "total": 22.3,
                }
            ]
        }
    }


class CheckoutSessionResponse(BaseModel):
    session_id: str
    session_url: str | None = None
    order_id: str
    order_number: str


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Gateway unavailable"


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str


class PriceBreakdownResponse(BaseModel):
    subtotal: float
    tax: float
    tax_rate: float
    total: float
    processing_fee: float
    net_revenue: float


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class UpdateOrderStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    estimated_delivery: str | None = None


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    name: str = Field(min_length=1)
    sku: str = Field(min_length=1)
    price: float = Field(ge=0)
    quantity: int = Field(default=0, ge=0)
    cost_price: float = Field(default=0.0, ge=0)
    slug: str | None = None
    description: str | None = None
    category: str | None = None
    image_url: str | None = None
    compare_at_price: float | None = Field(default=None, ge=0)
    is_on_sale: bool = False
    sale_price: float | None = Field(default=None, ge=0)
    low_stock_threshold: int = Field(default=5, ge=0)


class ProductIdResponse(BaseModel):
    product_id: str


class ReplenishStockRequest(BaseModel):
    quantity: int = Field(ge=1)
    reason: str | None = None


class StockResponse(BaseModel):
    product_id: str
    quantity: int


class ProductResponse(BaseModel):
    id: str
    name: str
    sku: str
    price: float
    effective_price: float
    cost_price: float
    is_on_sale: bool
    sale_price: float | None = None
    quantity: int
    is_low_stock: bool
    status: str


class WebhookAcknowledgement(BaseModel):
    received: bool = True
