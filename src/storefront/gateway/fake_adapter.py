"""Configurable fake payment gateway for development and testing.

Simulates hosted checkout without any external calls. Sessions get fake
ids and URLs; webhooks are accepted when signed with the literal
"test-signature". It can be switched to fail at runtime via
/checkout/gateway/configure for manual API testing.
"""

import json
from uuid import uuid4

from storefront.exceptions import GatewayError, SignatureInvalid
from storefront.gateway.port import CheckoutLineItem, CheckoutSession, PaymentGateway

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_checkout_session(
        self,
        line_items: list[CheckoutLineItem],
        currency: str,
        success_url: str,
        cancel_url: str,
        customer_email: str | None,
        metadata: dict,
    ) -> CheckoutSession:
        self.calls.append(
            {
                "method": "create_checkout_session",
                "line_items": line_items,
                "currency": currency,
                "success_url": success_url,
                "cancel_url": cancel_url,
                "customer_email": customer_email,
                "metadata": metadata,
            }
        )

        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        session_id = f"cs_test_{uuid4().hex[:24]}"
        return CheckoutSession(id=session_id, url=f"https://checkout.example.test/pay/{session_id}")

    def construct_event(self, payload: bytes, signature: str) -> dict:
        if signature != TEST_SIGNATURE:
            raise SignatureInvalid("Invalid webhook signature")
        try:
            return json.loads(payload)
        except ValueError as exc:
            raise SignatureInvalid(f"Invalid webhook payload: {exc}") from exc
