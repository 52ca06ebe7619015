"""Template registry: maps NotificationType to template classes.

Each template knows its default channels and renders subject and body
from a context dict.
"""

from storefront.notification.types import NotificationType
from storefront.templates.order_confirmation import OrderConfirmationTemplate
from storefront.templates.order_status_update import OrderStatusUpdateTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.ORDER_CONFIRMATION.value: OrderConfirmationTemplate,
    NotificationType.ORDER_STATUS_UPDATE.value: OrderStatusUpdateTemplate,
}


def get_template(notification_type: str):
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
