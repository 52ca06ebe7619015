"""Payment event receiver: authenticated gateway webhooks to order state.

Every event that passes signature verification is acknowledged, including
events for unknown orders and event types we don't act on; the gateway
would otherwise keep redelivering them. All order transitions are
idempotent, so redeliveries are safe.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.exceptions import SignatureInvalid
from storefront.gateway import get_gateway
from storefront.notification.dispatch import send_order_confirmation
from storefront.order.order import Order
from storefront.order.payment import ConfirmOrderPayment, ExpireCheckout
from storefront.utils.logging import add_context

logger = structlog.get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
CHECKOUT_EXPIRED = "checkout.session.expired"
PAYMENT_FAILED = "payment_intent.payment_failed"

ACKNOWLEDGEMENT = {"received": True}


def receive_payment_event(payload: bytes, signature: str | None) -> dict:
    """Verify and handle one webhook delivery.

    Raises:
        SignatureInvalid: the signature header is missing or does not match;
            no state was touched.
    """
    if not signature:
        raise SignatureInvalid("Missing stripe-signature header")

    event = get_gateway().construct_event(payload, signature)
    handle_payment_event(event)
    return dict(ACKNOWLEDGEMENT)


def handle_payment_event(event: dict) -> None:
    event_type = event.get("type")
    payload = (event.get("data") or {}).get("object") or {}
    add_context(webhook_event_id=event.get("id"), webhook_event_type=event_type)

    if event_type == CHECKOUT_COMPLETED:
        _on_checkout_completed(payload)
    elif event_type == CHECKOUT_EXPIRED:
        _on_checkout_expired(payload)
    elif event_type == PAYMENT_FAILED:
        logger.warning(
            "Payment failed",
            payment_intent_id=payload.get("id"),
            reason=(payload.get("last_payment_error") or {}).get("message"),
        )
    else:
        logger.info("Unhandled webhook event type", event_type=event_type)


def _order_id(session: dict) -> str | None:
    return (session.get("metadata") or {}).get("orderId")


def _on_checkout_completed(session: dict) -> None:
    order_id = _order_id(session)
    if not order_id:
        logger.warning("Completed checkout without order id", checkout_session_id=session.get("id"))
        return

    payment_intent = session.get("payment_intent")
    if isinstance(payment_intent, dict):
        payment_intent = payment_intent.get("id")

    try:
        outcome = current_domain.process(
            ConfirmOrderPayment(
                order_id=order_id,
                checkout_session_id=session.get("id"),
                payment_intent_id=payment_intent,
            ),
            asynchronous=False,
        )
    except ObjectNotFoundError:
        logger.warning("Completed checkout for unknown order", order_id=order_id)
        return

    if outcome.fulfils_order:
        order = current_domain.repository_for(Order).get(order_id)
        send_order_confirmation(order)


def _on_checkout_expired(session: dict) -> None:
    order_id = _order_id(session)
    if not order_id:
        logger.warning("Expired checkout without order id", checkout_session_id=session.get("id"))
        return

    try:
        current_domain.process(ExpireCheckout(order_id=order_id), asynchronous=False)
    except ObjectNotFoundError:
        logger.warning("Expired checkout for unknown order", order_id=order_id)
