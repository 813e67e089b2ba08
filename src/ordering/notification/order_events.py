"""Customer emails triggered by Order events.

Runs after the order transition has committed. Each handler renders one
email and records it as a Notification; any failure is logged and swallowed
so an email problem can never undo or block an order transition.
"""

import structlog
from protean.utils.mixins import handle

from notifications.templates import NotificationType
from ordering.config import get_settings
from ordering.domain import ordering
from ordering.notification.helpers import notify_customer
from ordering.order.events import (
    OrderCancelled,
    OrderConfirmed,
    PaymentFailed,
    PaymentRefunded,
    ShippingStatusUpdated,
)
from ordering.order.order import Order, OrderStatus
from ordering.order.shipping import status_message

logger = structlog.get_logger(__name__)


def _safely(notification_type, event, **kwargs):
    try:
        notify_customer(
            customer_id=str(event.customer_id),
            customer_email=event.customer_email,
            notification_type=notification_type,
            order_id=str(event.order_id),
            source_event_type=event.__class__.__name__,
            **kwargs,
        )
    except Exception as exc:
        logger.error(
            "Failed to create customer notification",
            order_id=str(event.order_id),
            notification_type=notification_type,
            error=str(exc),
        )


@ordering.event_handler(part_of=Order)
class OrderNotificationsHandler:
    """Sends the customer one email per meaningful order transition."""

    @handle(OrderConfirmed)
    def on_order_confirmed(self, event: OrderConfirmed) -> None:
        _safely(
            NotificationType.ORDER_CONFIRMATION.value,
            event,
            context={
                "order_number": event.order_number,
                "total": f"{event.total:.2f}",
                "currency": event.currency,
                "payment_method": event.payment_method,
            },
        )

    @handle(PaymentFailed)
    def on_payment_failed(self, event: PaymentFailed) -> None:
        _safely(
            NotificationType.PAYMENT_FAILED.value,
            event,
            context={
                "order_number": event.order_number,
                "reason": event.reason,
                "retry_url": get_settings().retry_link(str(event.order_id)),
            },
        )

    @handle(ShippingStatusUpdated)
    def on_shipping_status_updated(self, event: ShippingStatusUpdated) -> None:
        if event.status == OrderStatus.DELIVERED.value:
            notification_type = NotificationType.DELIVERY_CONFIRMATION.value
        else:
            notification_type = NotificationType.STATUS_UPDATE.value

        _safely(
            notification_type,
            event,
            context={
                "order_number": event.order_number,
                "status": event.status,
                "message": status_message(event.status, event.tracking_number),
                "tracking_number": event.tracking_number,
                "estimated_delivery": event.estimated_delivery,
            },
        )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        # A refund that cancels the order is reported in this one email
        _safely(
            NotificationType.ORDER_CANCELLATION.value,
            event,
            context={
                "order_number": event.order_number,
                "reason": event.reason,
                "cancelled_by": event.cancelled_by,
                "refund_amount": f"{event.refund_amount or 0.0:.2f}" if event.refunded else None,
                "currency": event.currency,
            },
        )

    @handle(PaymentRefunded)
    def on_payment_refunded(self, event: PaymentRefunded) -> None:
        if event.order_cancelled:
            return
        _safely(
            NotificationType.REFUND_NOTIFICATION.value,
            event,
            context={
                "order_number": event.order_number,
                "amount": f"{event.amount or 0.0:.2f}",
                "currency": event.currency,
            },
        )
