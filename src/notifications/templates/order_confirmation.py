"""Order confirmation template: sent when an order is paid or accepted as cash on delivery."""

from notifications.channel import NotificationChannel
from notifications.templates import NotificationType


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        total = context.get("total", "0.00")
        currency = context.get("currency", "INR")
        payment_method = context.get("payment_method")

        if payment_method == "cod":
            payment_line = "Please keep the amount ready. Payment is collected on delivery."
        else:
            payment_line = "We have received your payment."

        return {
            "subject": f"Order {order_number} Confirmed",
            "body": (
                f"Your order {order_number} has been confirmed.\n\n"
                f"Order Total: {currency} {total}\n"
                f"{payment_line}\n\n"
                "We'll notify you once your order ships."
            ),
        }
