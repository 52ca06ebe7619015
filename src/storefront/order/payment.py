"""Order payment: commands and handler for gateway-driven transitions.

Confirming payment claims stock for every line item in the same unit of
work. A product that has been removed or has run short since checkout does
not block the confirmation: the shortfall is logged and noted on the order
for staff, and stock never goes below zero. Payment that arrives after an
order was cancelled or refunded claims no stock.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.exceptions import InsufficientStock
from storefront.order.order import Order, PaymentOutcome
from storefront.product.product import Product

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class RecordCheckoutSession:
    order_id = Identifier(required=True)
    checkout_session_id = String(required=True, max_length=255)


@storefront.command(part_of="Order")
class ConfirmOrderPayment:
    """The gateway reported the buyer completed checkout."""

    order_id = Identifier(required=True)
    checkout_session_id = String(max_length=255)
    payment_intent_id = String(max_length=255)


@storefront.command(part_of="Order")
class ExpireCheckout:
    order_id = Identifier(required=True)


def _claim_stock(order: Order) -> list[str]:
    """Decrement stock for each line item; return shortfall descriptions."""
    repo = current_domain.repository_for(Product)
    shortfalls = []
    for item in order.items:
        try:
            product = repo.get(item.product_id)
            product.decrement_stock(item.quantity)
        except ObjectNotFoundError:
            shortfalls.append(f"Product {item.product_name} ({item.product_sku}) no longer exists")
            continue
        except InsufficientStock as exc:
            shortfalls.append(
                f"Stock shortfall for {item.product_name} ({item.product_sku}): "
                f"requested {exc.requested}, available {exc.available}"
            )
            continue
        repo.add(product)
    return shortfalls


@storefront.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(RecordCheckoutSession)
    def record_checkout_session(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_checkout_session(command.checkout_session_id)
        repo.add(order)

    @handle(ConfirmOrderPayment)
    def confirm_payment(self, command) -> PaymentOutcome:
        """Apply a gateway payment and claim stock for orders that will ship.

        Redeliveries change nothing. A payment for a cancelled or refunded
        order is recorded for refund without touching stock.
        """
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        outcome = order.confirm_payment(
            checkout_session_id=command.checkout_session_id,
            payment_intent_id=command.payment_intent_id,
        )
        if outcome is PaymentOutcome.ALREADY_PAID:
            logger.info(
                "Order already paid, skipping",
                order_id=str(order.id),
                order_number=order.order_number,
            )
            return outcome

        if outcome is PaymentOutcome.REFUND_PENDING:
            logger.warning(
                "Payment received for closed order, refund pending",
                order_id=str(order.id),
                order_number=order.order_number,
                status=order.status,
            )
        else:
            for shortfall in _claim_stock(order):
                logger.warning(shortfall, order_id=str(order.id), order_number=order.order_number)
                order.add_internal_note(shortfall)

        repo.add(order)
        logger.info(
            "Order payment confirmed",
            order_id=str(order.id),
            order_number=order.order_number,
            payment_intent_id=command.payment_intent_id,
            outcome=outcome.value,
        )
        return outcome

    @handle(ExpireCheckout)
    def expire_checkout(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if not order.expire_checkout():
            logger.info(
                "Checkout expiry ignored",
                order_id=str(order.id),
                payment_status=order.payment_status,
            )
            return False

        repo.add(order)
        logger.info("Checkout expired", order_id=str(order.id), order_number=order.order_number)
        return True
