"""Internal dispatch handler: sends notifications via channel adapters.

Reacts to NotificationCreated and NotificationRetried events and sends the
message through the channel adapter. The notification ends up SENT or FAILED;
nothing raised here ever reaches the order transition that caused it.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from notifications.channel import NotificationChannel, get_channel
from ordering.domain import ordering
from ordering.notification.events import NotificationCreated, NotificationRetried
from ordering.notification.notification import Notification, NotificationStatus

logger = structlog.get_logger(__name__)


@ordering.event_handler(part_of=Notification)
class NotificationDispatcher:
    """Dispatches notifications via channel adapters when they are created or retried."""

    @handle(NotificationCreated)
    def on_notification_created(self, event: NotificationCreated) -> None:
        dispatch_notification(event.notification_id)

    @handle(NotificationRetried)
    def on_notification_retried(self, event: NotificationRetried) -> None:
        dispatch_notification(event.notification_id)


def dispatch_notification(notification_id) -> None:
    repo = current_domain.repository_for(Notification)

    try:
        notification = repo.get(notification_id)
    except Exception:
        logger.error("Failed to load notification for dispatch", notification_id=str(notification_id))
        return

    # Only dispatch PENDING notifications
    if NotificationStatus(notification.status) != NotificationStatus.PENDING:
        logger.info(
            "Notification not in PENDING status, skipping dispatch",
            notification_id=str(notification_id),
            status=notification.status,
        )
        return

    try:
        adapter = get_channel(notification.channel)
        result = _dispatch_via_channel(adapter, notification)

        if result.get("status") == "sent":
            notification.mark_sent(message_id=result.get("message_id"))
        else:
            notification.mark_failed(result.get("error", "Unknown dispatch error"))
            logger.warning(
                "Notification rejected by channel",
                notification_id=str(notification.id),
                error=result.get("error"),
            )
    except Exception as e:
        notification.mark_failed(str(e))
        logger.error(
            "Notification dispatch failed",
            notification_id=str(notification.id),
            error=str(e),
        )

    repo.add(notification)


def _dispatch_via_channel(adapter, notification: Notification) -> dict:
    if notification.channel == NotificationChannel.EMAIL.value:
        return adapter.send(
            to=notification.recipient_email,
            subject=notification.subject or "",
            body=notification.body,
        )
    return {"status": "failed", "error": f"Unknown channel: {notification.channel}"}
