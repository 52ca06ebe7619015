"""Exception translation for the storefront API.

Protean's handlers cover ValidationError (400) and ObjectNotFoundError
(404). The storefront's own subclasses get handlers with a stable body so
clients can show the message, gateway problems map to 502 and anything
else is logged and answered with a generic 500.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.exceptions import (
    GatewayError,
    InsufficientStock,
    OrderNotFound,
    ProductNotFound,
    SignatureInvalid,
)

logger = structlog.get_logger(__name__)


def _first_message(exc) -> str:
    messages = getattr(exc, "messages", None) or {}
    for values in messages.values():
        if values:
            return values[0]
    return str(exc)


async def _catalogue_error(request: Request, exc) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": _first_message(exc)})


async def _order_not_found(request: Request, exc: OrderNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Order not found"})


async def _signature_invalid(request: Request, exc: SignatureInvalid) -> JSONResponse:
    logger.warning("Webhook signature rejected", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=400, content={"error": "Invalid signature"})


async def _gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": "Payment gateway error", "detail": str(exc)})


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, method=request.method, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(ProductNotFound, _catalogue_error)
    app.add_exception_handler(InsufficientStock, _catalogue_error)
    app.add_exception_handler(OrderNotFound, _order_not_found)
    app.add_exception_handler(SignatureInvalid, _signature_invalid)
    app.add_exception_handler(GatewayError, _gateway_error)
    app.add_exception_handler(Exception, _unexpected_error)
