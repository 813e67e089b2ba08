"""Refund notification template: sent when a refund is processed."""

from notifications.channel import NotificationChannel
from notifications.templates import NotificationType


class RefundNotificationTemplate:
    notification_type = NotificationType.REFUND_NOTIFICATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        amount = context.get("amount", "0.00")
        currency = context.get("currency", "INR")
        return {
            "subject": f"Refund Processed - {currency} {amount}",
            "body": (
                f"A refund of {currency} {amount} has been processed "
                f"for order {order_number}.\n\n"
                "The refund should appear in your account within 5-10 "
                "business days, depending on your payment provider."
            ),
        }
