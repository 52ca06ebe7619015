from storefront.api.routes import (
    activity_router,
    checkout_router,
    order_router,
    product_router,
    webhook_router,
)

__all__ = [
    "activity_router",
    "checkout_router",
    "order_router",
    "product_router",
    "webhook_router",
]
