"""Render a template and record it as a Notification for an order's customer."""

import json

import structlog
from protean.utils.globals import current_domain

from notifications.channel import NotificationChannel
from notifications.templates import get_template
from ordering.notification.notification import Notification

logger = structlog.get_logger(__name__)


def notify_customer(
    customer_id: str,
    customer_email: str | None,
    notification_type: str,
    context: dict,
    order_id: str | None = None,
    source_event_type: str | None = None,
):
    """Create one Notification per default channel of the template.

    Returns:
        List of notification IDs created. Empty when the order carries no
        email address.
    """
    if not customer_email:
        logger.info(
            "No email address on order, notification skipped",
            order_id=order_id,
            notification_type=notification_type,
        )
        return []

    template_cls = get_template(notification_type)
    rendered = template_cls.render(context)

    repo = current_domain.repository_for(Notification)
    notification_ids = []
    for channel in template_cls.default_channels:
        if channel != NotificationChannel.EMAIL.value:
            continue
        notification = Notification.create(
            recipient_id=customer_id,
            recipient_email=customer_email,
            notification_type=notification_type,
            channel=channel,
            subject=rendered.get("subject"),
            body=rendered["body"],
            template_name=template_cls.__name__,
            order_id=order_id,
            source_event_type=source_event_type,
            context_data=json.dumps(context),
        )
        repo.add(notification)
        notification_ids.append(str(notification.id))

    logger.info(
        "Notifications created",
        customer_id=customer_id,
        order_id=order_id,
        notification_type=notification_type,
        count=len(notification_ids),
    )

    return notification_ids


def notifications_for_order(order_id: str) -> list[Notification]:
    repo = current_domain.repository_for(Notification)
    return repo._dao.query.filter(order_id=str(order_id)).all().items
