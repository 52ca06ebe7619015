"""Stripe payment gateway adapter.

Uses stripe-python's hosted Checkout Sessions and its webhook signature
verification. The API key is passed per request and never set on the
module. The HTTP timeout and retry policy are stripe-python module settings,
so they apply process-wide: the last gateway constructed sets them.
"""

import json

import stripe
import structlog

from storefront.exceptions import GatewayError, SignatureInvalid
from storefront.gateway.port import CheckoutLineItem, CheckoutSession, PaymentGateway

logger = structlog.get_logger(__name__)


class StripeGateway(PaymentGateway):
    def __init__(self, api_key: str, webhook_secret: str, timeout: float = 10.0) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        # Process-wide: bounded outbound calls; retries are left to the caller
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
        stripe.max_network_retries = 0

    @staticmethod
    def _line_item(item: CheckoutLineItem, currency: str) -> dict:
        product_data = {"name": item.name}
        if item.images:
            product_data["images"] = item.images
        if item.metadata:
            product_data["metadata"] = item.metadata
        return {
            "price_data": {
                "currency": currency,
                "product_data": product_data,
                "unit_amount": item.unit_amount,
            },
            "quantity": item.quantity,
        }

    def create_checkout_session(
        self,
        line_items: list[CheckoutLineItem],
        currency: str,
        success_url: str,
        cancel_url: str,
        customer_email: str | None,
        metadata: dict,
    ) -> CheckoutSession:
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [self._line_item(item, currency) for item in line_items],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                idempotency_key=f"checkout_{metadata.get('orderId')}",
                **params,
            )
        except stripe.StripeError as exc:
            logger.error(
                "Stripe checkout session failed",
                order_id=metadata.get("orderId"),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise GatewayError(str(exc)) from exc

        return CheckoutSession(id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: str) -> dict:
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise SignatureInvalid(str(exc)) from exc
        except ValueError as exc:
            raise SignatureInvalid(f"Invalid webhook payload: {exc}") from exc

        # Return plain dicts so handlers never depend on StripeObject
        return json.loads(payload)
