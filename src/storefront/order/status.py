"""Admin order status management: command, handler and service.

The status change itself commits on its own. The activity entry and the
customer email follow the commit, only when the status really changed,
and neither can undo or fail the change.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.activity.activity import ActivityAction
from storefront.activity.recorder import SYSTEM, Actor, log_order_action
from storefront.domain import storefront
from storefront.exceptions import OrderNotFound
from storefront.notification.dispatch import send_order_status_update
from storefront.order.order import NOTIFIABLE_STATUSES, Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=30)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=50)


@storefront.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        """Returns the status the order had before this command."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous_status = order.change_status(
            command.status,
            tracking_number=command.tracking_number,
            estimated_delivery=command.estimated_delivery,
        )
        repo.add(order)
        return previous_status


def update_order_status(
    order_id: str,
    status: str,
    tracking_number: str | None = None,
    estimated_delivery: str | None = None,
    actor: Actor = SYSTEM,
) -> Order:
    """Change an order's status and run the follow-up side effects.

    Raises:
        OrderNotFound: no order has ``order_id``.
        ValidationError: ``status`` is unknown or not reachable from the
            order's current status.
    """
    try:
        previous_status = current_domain.process(
            UpdateOrderStatus(
                order_id=order_id,
                status=status,
                tracking_number=tracking_number,
                estimated_delivery=estimated_delivery,
            ),
            asynchronous=False,
        )
    except ObjectNotFoundError:
        raise OrderNotFound(order_id) from None

    order = current_domain.repository_for(Order).get(order_id)
    if previous_status == order.status:
        return order

    logger.info(
        "Order status changed",
        order_id=order_id,
        order_number=order.order_number,
        previous_status=previous_status,
        new_status=order.status,
        actor=actor.name,
    )
    log_order_action(
        ActivityAction.STATUS_CHANGED.value,
        order_id=order_id,
        order_number=order.order_number,
        actor=actor,
        description=f"Order {order.order_number} status changed from {previous_status} to {order.status}",
        details={"old_status": previous_status, "new_status": order.status},
    )
    if order.status in NOTIFIABLE_STATUSES and order.customer_email:
        send_order_status_update(order, tracking_number=tracking_number, estimated_delivery=estimated_delivery)

    return order
