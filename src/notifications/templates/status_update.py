"""Status update template: sent when an admin moves an order through shipping."""

from notifications.channel import NotificationChannel
from notifications.templates import NotificationType


class StatusUpdateTemplate:
    notification_type = NotificationType.STATUS_UPDATE.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        status = context.get("status", "UPDATED")
        message = context.get("message") or f"Order status updated to {status}"
        tracking_number = context.get("tracking_number")
        estimated_delivery = context.get("estimated_delivery")

        lines = [f"Order {order_number}: {message}", ""]
        if tracking_number:
            lines.append(f"Tracking Number: {tracking_number}")
        if estimated_delivery:
            lines.append(f"Estimated Delivery: {estimated_delivery}")

        return {
            "subject": f"Order {order_number} - {status.replace('_', ' ').title()}",
            "body": "\n".join(lines).rstrip() + "\n",
        }
