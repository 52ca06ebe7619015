"""Storefront FastAPI application.

Checkout, payment webhooks and the order admin surface, all served from a
single Protean domain. Commands are processed synchronously per request.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Logging and domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from storefront/domain.toml.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storefront.config import get_settings
from storefront.domain import storefront
from storefront.utils.logging import configure_logging

configure_logging()
storefront.init()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Checkout, payment webhooks and order management",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context for each request."""
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers and error translation
# ---------------------------------------------------------------------------
from storefront.api import (  # noqa: E402
    activity_router,
    checkout_router,
    order_router,
    product_router,
    webhook_router,
)
from storefront.api.errors import register_error_handlers  # noqa: E402

app.include_router(checkout_router)
app.include_router(webhook_router)
app.include_router(order_router)
app.include_router(product_router)
app.include_router(activity_router)

register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    settings = get_settings()
    return JSONResponse(
        content={
            "status": "ok",
            "domain": storefront.name,
            "environment": settings.environment,
            "gateway": settings.gateway,
        }
    )
