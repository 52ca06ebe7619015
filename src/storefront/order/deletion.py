"""Admin order deletion: command, handler and service.

Deletion is the only way an order leaves the store, so the audit entry is
written from the order's last state before the record is removed.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.activity.activity import ActivityAction
from storefront.activity.recorder import SYSTEM, Actor, log_order_action
from storefront.domain import storefront
from storefront.exceptions import OrderNotFound
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        repo._dao.delete(order)


def delete_order(order_id: str, actor: Actor = SYSTEM) -> None:
    """Audit and then remove an order.

    Raises:
        OrderNotFound: no order has ``order_id``; nothing is audited.
    """
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise OrderNotFound(order_id) from None

    log_order_action(
        ActivityAction.DELETED.value,
        order_id=order_id,
        order_number=order.order_number,
        actor=actor,
        details={
            "customer_name": order.customer_name,
            "total": order.total,
            "status": order.status,
            "item_count": len(order.items),
        },
    )
    current_domain.process(DeleteOrder(order_id=order_id), asynchronous=False)
    logger.info("Order deleted", order_id=order_id, order_number=order.order_number, actor=actor.name)
