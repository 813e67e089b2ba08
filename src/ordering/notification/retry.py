"""RetryNotification command + handler: retry a failed notification.

``retry_failed_notifications`` is the sweep a background job runs to resend
every failed notification that still has attempts left.
"""

import structlog
from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ordering.domain import ordering
from ordering.notification.notification import Notification, NotificationStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Notification")
class RetryNotification:
    """Request to retry a failed notification."""

    notification_id: Identifier(required=True)


@ordering.command_handler(part_of=Notification)
class RetryNotificationHandler:
    @handle(RetryNotification)
    def retry_notification(self, command: RetryNotification):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        notification.retry()
        repo.add(notification)


def retry_failed_notifications() -> int:
    """Retry every failed notification below its retry limit. Returns how many were retried."""
    repo = current_domain.repository_for(Notification)
    failed = repo._dao.query.filter(status=NotificationStatus.FAILED.value).all().items

    retried = 0
    for notification in failed:
        if not notification.can_retry:
            continue
        current_domain.process(RetryNotification(notification_id=str(notification.id)), asynchronous=False)
        retried += 1

    logger.info("Failed notifications retried", retried=retried, failed=len(failed))
    return retried
