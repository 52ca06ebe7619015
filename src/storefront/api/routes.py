"""FastAPI routes for the storefront: checkout, webhooks, orders, products and activity."""

import json

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from storefront.activity.activity import ActivityAction
from storefront.activity.queries import list_activity
from storefront.activity.recorder import Actor, log_product_action
from storefront.api.dependencies import current_actor
from storefront.api.schemas import (
    CheckoutSessionResponse,
    ConfigureGatewayRequest,
    CreateCheckoutSessionRequest,
    CreateProductRequest,
    GatewayConfigResponse,
    MessageResponse,
    PriceBreakdownResponse,
    ProductIdResponse,
    ProductResponse,
    ReplenishStockRequest,
    StockResponse,
    UpdateOrderStatusRequest,
    WebhookAcknowledgement,
)
from storefront.checkout.initiation import initiate_checkout
from storefront.config import get_settings
from storefront.exceptions import SignatureInvalid
from storefront.gateway import get_gateway
from storefront.gateway.fake_adapter import FakeGateway
from storefront.order.deletion import delete_order
from storefront.order.placement import PlaceOrder
from storefront.order.queries import get_order, get_order_by_number, list_orders, order_to_dict, orders_for_customer
from storefront.order.status import update_order_status
from storefront.payment.webhook import receive_payment_event
from storefront.product.management import CreateProduct, ReplenishStock
from storefront.product.product import Product
from storefront.shared.money import calculate_price_breakdown
from storefront.shared.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from storefront.utils.logging import clear_context

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/sessions", status_code=201, response_model=CheckoutSessionResponse)
async def create_checkout_session(body: CreateCheckoutSessionRequest) -> CheckoutSessionResponse:
    """Place a pending order and open a hosted payment page for it."""
    command = PlaceOrder(
        user_id=body.user_id,
        customer_name=body.customer.name,
        customer_email=body.customer.email,
        customer_phone=body.customer.phone,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        billing_address=json.dumps(body.billing_address.model_dump()) if body.billing_address else None,
        subtotal=body.subtotal,
        tax=body.tax,
        tax_rate=body.tax_rate,
        shipping=body.shipping,
        discount=body.discount,
        total=body.total,
        notes=body.notes,
    )
    result = initiate_checkout(command)
    return CheckoutSessionResponse(
        session_id=result.session_id,
        session_url=result.session_url,
        order_id=result.order_id,
        order_number=result.order_number,
    )


@checkout_router.get("/price-breakdown", response_model=PriceBreakdownResponse)
async def price_breakdown(subtotal: float = Query(ge=0)) -> PriceBreakdownResponse:
    """Tax, total and processing fee for a cart subtotal."""
    return PriceBreakdownResponse(**calculate_price_breakdown(subtotal, get_settings().tax_rate))


@checkout_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if get_settings().is_production:
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/stripe", response_model=WebhookAcknowledgement)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
):
    """Receive a payment gateway event.

    The raw body is verified before anything is parsed. Internal failures
    return 500 so the gateway redelivers the event.
    """
    payload = await request.body()
    try:
        return receive_payment_event(payload, stripe_signature)
    except SignatureInvalid as exc:
        logger.warning("Webhook signature rejected", error=str(exc))
        return JSONResponse(status_code=400, content={"error": "Invalid signature"})
    except Exception as exc:
        logger.exception("Webhook handler failed", error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Webhook handler failed"})
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("")
async def get_orders(
    status: str | None = None,
    payment_status: str | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> dict:
    return list_orders(status=status, payment_status=payment_status, search=search, page=page, limit=limit)


@order_router.get("/by-number/{order_number}")
async def get_order_by_order_number(order_number: str) -> dict:
    return order_to_dict(get_order_by_number(order_number))


@order_router.get("/customer/{user_id}")
async def get_customer_orders(user_id: str, email: str | None = None, status: str | None = None) -> dict:
    return {"orders": orders_for_customer(user_id, email=email, status=status)}


@order_router.get("/{order_id}")
async def get_order_detail(order_id: str) -> dict:
    return order_to_dict(get_order(order_id))


@order_router.patch("/{order_id}/status")
async def change_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    actor: Actor = Depends(current_actor),
) -> dict:
    """Advance an order's status; notifies the customer where appropriate."""
    order = update_order_status(
        order_id,
        body.status,
        tracking_number=body.tracking_number,
        estimated_delivery=body.estimated_delivery,
        actor=actor,
    )
    return order_to_dict(order)


@order_router.delete("/{order_id}", response_model=MessageResponse)
async def remove_order(order_id: str, actor: Actor = Depends(current_actor)) -> MessageResponse:
    delete_order(order_id, actor=actor)
    return MessageResponse(message="Order deleted successfully")


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


def _product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=str(product.id),
        name=product.name,
        sku=product.sku,
        price=product.price,
        effective_price=product.effective_price,
        cost_price=product.cost_price or 0.0,
        is_on_sale=bool(product.is_on_sale),
        sale_price=product.sale_price,
        quantity=product.quantity,
        is_low_stock=product.is_low_stock,
        status=product.status,
    )


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest, actor: Actor = Depends(current_actor)) -> ProductIdResponse:
    product_id = current_domain.process(CreateProduct(**body.model_dump()), asynchronous=False)
    log_product_action(ActivityAction.CREATED.value, product_id=product_id, product_name=body.name, actor=actor)
    return ProductIdResponse(product_id=product_id)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    return _product_response(current_domain.repository_for(Product).get(product_id))


@product_router.put("/{product_id}/stock", response_model=StockResponse)
async def replenish_stock(
    product_id: str,
    body: ReplenishStockRequest,
    actor: Actor = Depends(current_actor),
) -> StockResponse:
    quantity = current_domain.process(
        ReplenishStock(product_id=product_id, quantity=body.quantity, reason=body.reason),
        asynchronous=False,
    )
    product = current_domain.repository_for(Product).get(product_id)
    log_product_action(
        ActivityAction.UPDATED.value,
        product_id=product_id,
        product_name=product.name,
        actor=actor,
        description=f"Product {product.name} restocked by {body.quantity}",
        details={"added": body.quantity, "new_quantity": quantity, "reason": body.reason},
    )
    return StockResponse(product_id=product_id, quantity=quantity)


# ---------------------------------------------------------------------------
# Activity Router
# ---------------------------------------------------------------------------
activity_router = APIRouter(prefix="/activity", tags=["activity"])


@activity_router.get("")
async def get_activity(
    category: str | None = None,
    action: str | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> dict:
    return list_activity(category=category, action=action, search=search, page=page, limit=limit)
