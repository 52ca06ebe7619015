"""Customer notifications for order events.

Dispatch is best-effort: every function here returns a result dict
describing what happened and never raises, so a broken mail provider can't
fail a checkout, a webhook or an admin action.
"""

import structlog

from storefront.channel import get_channel
from storefront.config import get_settings
from storefront.notification.types import NotificationType
from storefront.order.order import NOTIFIABLE_STATUSES, Order
from storefront.templates import get_template

logger = structlog.get_logger(__name__)


def send_notification(notification_type: str, to: str, context: dict) -> dict:
    """Render ``notification_type`` and send it on each of its default channels.

    Returns:
        dict with keys: status ("sent", "failed" or "skipped"), results
        (per-channel adapter results), error (optional)
    """
    if not to:
        return {"status": "skipped", "results": [], "error": "No recipient address"}

    try:
        template_cls = get_template(notification_type)
        rendered = template_cls.render(context)
        results = []
        for channel in template_cls.default_channels:
            adapter = get_channel(channel)
            results.append(adapter.send(to=to, subject=rendered["subject"], body=rendered["body"]))
    except Exception as exc:
        logger.error(
            "Notification dispatch failed",
            notification_type=notification_type,
            to=to,
            error=str(exc),
        )
        return {"status": "failed", "results": [], "error": str(exc)}

    failed = [result for result in results if result.get("status") != "sent"]
    if failed:
        logger.warning(
            "Notification not delivered",
            notification_type=notification_type,
            to=to,
            error=failed[0].get("error"),
        )
        return {"status": "failed", "results": results, "error": failed[0].get("error")}

    logger.info("Notification sent", notification_type=notification_type, to=to)
    return {"status": "sent", "results": results}


def _order_context(order: Order) -> dict:
    settings = get_settings()
    return {
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "items": [
            {
                "product_name": item.product_name,
                "quantity": item.quantity,
                "total_price": item.total_price,
            }
            for item in order.items
        ],
        "subtotal": order.subtotal,
        "tax": order.tax,
        "shipping": order.shipping,
        "discount": order.discount,
        "total": order.total,
        "store_name": settings.store_name,
        "order_url": f"{settings.base_url}/store/order-confirmation/{order.order_number}",
    }


def send_order_confirmation(order: Order) -> dict:
    try:
        context = _order_context(order)
    except Exception as exc:
        logger.error("Could not build order confirmation", order_id=str(order.id), error=str(exc))
        return {"status": "failed", "results": [], "error": str(exc)}
    return send_notification(NotificationType.ORDER_CONFIRMATION.value, to=order.customer_email, context=context)


def send_order_status_update(order: Order, tracking_number=None, estimated_delivery=None) -> dict:
    """Tell the customer their order reached a new status.

    Only statuses in NOTIFIABLE_STATUSES produce an email; anything else
    is reported as skipped.
    """
    if order.status not in NOTIFIABLE_STATUSES:
        return {"status": "skipped", "results": [], "error": f"Status {order.status} is not notified"}

    try:
        context = _order_context(order)
    except Exception as exc:
        logger.error("Could not build status update", order_id=str(order.id), error=str(exc))
        return {"status": "failed", "results": [], "error": str(exc)}
    context.update(
        status=order.status,
        tracking_number=tracking_number or order.tracking_number,
        estimated_delivery=estimated_delivery or order.estimated_delivery,
    )
    return send_notification(
        NotificationType.ORDER_STATUS_UPDATE.value,
        to=order.customer_email,
        context=context,
    )
