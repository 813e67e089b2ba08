"""Order cancellation template: sent when an order is cancelled.

When the cancellation refunded a captured payment, the refund is reported
here instead of in a separate refund email.
"""

from notifications.channel import NotificationChannel
from notifications.templates import NotificationType


class OrderCancellationTemplate:
    notification_type = NotificationType.ORDER_CANCELLATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        reason = context.get("reason") or "as requested"
        refund_amount = context.get("refund_amount")
        currency = context.get("currency", "INR")

        refund_note = ""
        if refund_amount:
            refund_note = (
                f"A refund of {currency} {refund_amount} has been processed. "
                "It should appear in your account within 5-10 business days, "
                "depending on your payment provider.\n\n"
            )

        return {
            "subject": f"Order {order_number} Cancelled",
            "body": (
                f"Your order {order_number} has been cancelled.\n\n"
                f"Reason: {reason}\n\n"
                f"{refund_note}"
                "If you have questions, please contact our support team."
            ),
        }
