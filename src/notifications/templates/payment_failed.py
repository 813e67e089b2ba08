"""Payment failed template: sent when the gateway reports a failed payment."""

from notifications.channel import NotificationChannel
from notifications.templates import NotificationType


class PaymentFailedTemplate:
    notification_type = NotificationType.PAYMENT_FAILED.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        retry_url = context.get("retry_url")

        body = f"We couldn't process the payment for order {order_number}. Your payment was declined.\n\n"
        if retry_url:
            body += f"You can retry the payment here: {retry_url}\n\n"
        body += "No money has been taken from your account."

        return {
            "subject": f"Payment Failed for Order {order_number}",
            "body": body,
        }
