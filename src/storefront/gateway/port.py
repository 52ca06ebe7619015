"""Payment gateway port (abstract interface).

The storefront only needs two things from a gateway: a hosted checkout
session for an order, and authenticated webhook events reporting what
happened to that session. FakeGateway and StripeGateway both implement
this contract.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CheckoutLineItem:
    """One line on the hosted payment page, priced in minor units."""

    name: str
    unit_amount: int
    quantity: int
    images: list[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def create_checkout_session(
        self,
        line_items: list[CheckoutLineItem],
        currency: str,
        success_url: str,
        cancel_url: str,
        customer_email: str | None,
        metadata: dict,
    ) -> CheckoutSession:
        """Create a hosted checkout session.

        Raises:
            GatewayError: the gateway rejected the request or was unreachable.
        """
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> dict:
        """Authenticate a webhook payload and return the decoded event.

        Raises:
            SignatureInvalid: the signature does not match the payload.
        """
        ...
