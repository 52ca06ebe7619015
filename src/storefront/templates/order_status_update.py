"""Order status update template: sent when an admin advances an order."""

from storefront.notification.types import NotificationChannel, NotificationType

_STATUS_COPY = {
    "processing": (
        "Order Being Prepared",
        "Your order is being prepared by our team.",
    ),
    "ready_for_pickup": (
        "Ready for Pickup!",
        "Your order is ready to be picked up at our store.",
    ),
    "shipped": (
        "Order Shipped!",
        "Your order has been shipped and is on its way.",
    ),
    "delivered": (
        "Order Delivered!",
        "Your order has been delivered successfully.",
    ),
    "cancelled": (
        "Order Cancelled",
        "Your order has been cancelled. If you have any questions, please contact us.",
    ),
}


class OrderStatusUpdateTemplate:
    notification_type = NotificationType.ORDER_STATUS_UPDATE.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        status = context.get("status", "")
        order_number = context.get("order_number", "N/A")
        customer_name = context.get("customer_name") or "there"
        title, message = _STATUS_COPY.get(status, ("Order Update", f"Your order is now {status}."))

        body = f"Hi {customer_name},\n\n{message}\n"
        if context.get("tracking_number"):
            body += f"\nTracking Number: {context['tracking_number']}\n"
            if context.get("estimated_delivery"):
                body += f"Estimated Delivery: {context['estimated_delivery']}\n"
        body += f"\n{context.get('store_name', 'Our store')}"

        return {
            "subject": f"{title} - Order #{order_number}",
            "body": body,
        }
