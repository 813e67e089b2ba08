"""Template registry: maps NotificationType to template classes.

Each template knows its default channels and how to render content
from event context data.
"""

from enum import Enum


class NotificationType(Enum):
    ORDER_CONFIRMATION = "OrderConfirmation"
    STATUS_UPDATE = "StatusUpdate"
    DELIVERY_CONFIRMATION = "DeliveryConfirmation"
    ORDER_CANCELLATION = "OrderCancellation"
    REFUND_NOTIFICATION = "RefundNotification"
    PAYMENT_FAILED = "PaymentFailed"


def _registry() -> dict[str, type]:
    from notifications.templates.delivery_confirmation import DeliveryConfirmationTemplate
    from notifications.templates.order_cancellation import OrderCancellationTemplate
    from notifications.templates.order_confirmation import OrderConfirmationTemplate
    from notifications.templates.payment_failed import PaymentFailedTemplate
    from notifications.templates.refund_notification import RefundNotificationTemplate
    from notifications.templates.status_update import StatusUpdateTemplate

    return {
        NotificationType.ORDER_CONFIRMATION.value: OrderConfirmationTemplate,
        NotificationType.STATUS_UPDATE.value: StatusUpdateTemplate,
        NotificationType.DELIVERY_CONFIRMATION.value: DeliveryConfirmationTemplate,
        NotificationType.ORDER_CANCELLATION.value: OrderCancellationTemplate,
        NotificationType.REFUND_NOTIFICATION.value: RefundNotificationTemplate,
        NotificationType.PAYMENT_FAILED.value: PaymentFailedTemplate,
    }


TEMPLATE_REGISTRY: dict[str, type] = _registry()


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
