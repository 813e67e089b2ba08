"""Delivery confirmation template: sent when an order is marked delivered."""

from notifications.channel import NotificationChannel
from notifications.templates import NotificationType


class DeliveryConfirmationTemplate:
    notification_type = NotificationType.DELIVERY_CONFIRMATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        message = context.get("message", "Your order has been delivered! Thank you for your purchase.")
        return {
            "subject": f"Order {order_number} Delivered",
            "body": (
                f"{message}\n\n"
                f"Order: {order_number}\n\n"
                "If anything is wrong with your delivery, please reach out to our support team."
            ),
        }
