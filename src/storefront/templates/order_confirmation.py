"""Order confirmation template: sent once payment for an order succeeds."""

from storefront.notification.types import NotificationChannel, NotificationType
from storefront.shared.money import format_currency


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        customer_name = context.get("customer_name") or "there"
        store_name = context.get("store_name", "our store")

        lines = [
            f"  {item['quantity']} x {item['product_name']}  {format_currency(item['total_price'])}"
            for item in context.get("items", [])
        ]
        totals = [f"Subtotal: {format_currency(context.get('subtotal', 0))}"]
        if context.get("shipping"):
            totals.append(f"Shipping: {format_currency(context['shipping'])}")
        if context.get("tax"):
            totals.append(f"Tax: {format_currency(context['tax'])}")
        if context.get("discount"):
            totals.append(f"Discount: -{format_currency(context['discount'])}")
        totals.append(f"Total: {format_currency(context.get('total', 0))}")

        body = (
            f"Hi {customer_name},\n\n"
            f"Thank you for your order! We received your payment for order #{order_number}.\n\n"
            "Items:\n" + "\n".join(lines) + "\n\n" + "\n".join(totals) + "\n\n"
            "We'll let you know as soon as your order moves along.\n\n"
            f"{store_name}"
        )
        if context.get("order_url"):
            body += f"\n\nView your order: {context['order_url']}"

        return {
            "subject": f"Order Confirmation - Order #{order_number}",
            "body": body,
        }
