"""Notification aggregate: tracks one customer email from creation to delivery.

Notifications are created reactively from Order events after the order
transition has committed, then dispatched through a channel adapter. A failed
send never touches the order; it only marks the notification FAILED so it can
be retried.

State Machine:
    PENDING → SENT
    PENDING → FAILED → (retry) → PENDING
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from notifications.channel import NotificationChannel
from notifications.templates import NotificationType
from ordering.domain import ordering
from ordering.notification.events import (
    NotificationCreated,
    NotificationFailed,
    NotificationRetried,
    NotificationSent,
)


class NotificationStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"


_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {NotificationStatus.SENT, NotificationStatus.FAILED},
    NotificationStatus.SENT: set(),  # Terminal
    NotificationStatus.FAILED: {NotificationStatus.PENDING},  # Via retry
}


@ordering.aggregate
class Notification:
    """A single email sent to a customer about one of their orders."""

    # Recipient
    recipient_id: Identifier(required=True)
    recipient_email: String(required=True, max_length=254)

    # Notification type and channel
    notification_type: String(choices=NotificationType, required=True)
    channel: String(choices=NotificationChannel, default=NotificationChannel.EMAIL.value)

    # Content
    subject: String(max_length=500)
    body: Text(required=True)
    template_name: String(max_length=200)

    # Source event correlation
    order_id: Identifier()
    source_event_type: String(max_length=200)
    context_data: Text()  # JSON: data used to render the template

    # Status
    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)

    # Delivery tracking
    message_id: String(max_length=255)
    sent_at: DateTime()
    failure_reason: String(max_length=500)

    # Retry
    retry_count: Integer(default=0)
    max_retries: Integer(default=3)

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(
        cls,
        recipient_id,
        recipient_email,
        notification_type,
        body,
        subject=None,
        channel=NotificationChannel.EMAIL.value,
        template_name=None,
        order_id=None,
        source_event_type=None,
        context_data=None,
        max_retries=3,
    ):
        """Create a new notification in PENDING status."""
        now = datetime.now(UTC)

        notification = cls(
            recipient_id=recipient_id,
            recipient_email=recipient_email,
            notification_type=notification_type,
            channel=channel,
            subject=subject,
            body=body,
            template_name=template_name,
            order_id=order_id,
            source_event_type=source_event_type,
            context_data=context_data,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            max_retries=max_retries,
            created_at=now,
            updated_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                recipient_id=str(recipient_id),
                notification_type=notification_type,
                channel=channel,
                order_id=str(order_id) if order_id else None,
                subject=subject,
                template_name=template_name,
                source_event_type=source_event_type,
                created_at=now,
            )
        )

        return notification

    def _assert_can_transition(self, target_status):
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, message_id=None, sent_at=None):
        """Mark notification as accepted by the channel."""
        self._assert_can_transition(NotificationStatus.SENT)

        now = sent_at or datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        self.message_id = message_id
        self.sent_at = now
        self.updated_at = now

        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                recipient_id=str(self.recipient_id),
                channel=self.channel,
                message_id=message_id,
                sent_at=now,
            )
        )

    def mark_failed(self, reason):
        self._assert_can_transition(NotificationStatus.FAILED)

        now = datetime.now(UTC)
        self.status = NotificationStatus.FAILED.value
        self.failure_reason = reason[:500] if reason else reason
        self.retry_count = self.retry_count + 1
        self.updated_at = now

        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                recipient_id=str(self.recipient_id),
                channel=self.channel,
                reason=self.failure_reason or "Unknown dispatch error",
                retry_count=self.retry_count,
                max_retries=self.max_retries,
                failed_at=now,
            )
        )

    @property
    def can_retry(self) -> bool:
        return NotificationStatus(self.status) == NotificationStatus.FAILED and self.retry_count < self.max_retries

    def retry(self):
        """Retry a failed notification."""
        if NotificationStatus(self.status) != NotificationStatus.FAILED:
            raise ValidationError({"status": ["Only failed notifications can be retried"]})
        if self.retry_count >= self.max_retries:
            raise ValidationError({"retry_count": ["Maximum retry attempts exceeded"]})

        now = datetime.now(UTC)
        self.status = NotificationStatus.PENDING.value
        self.failure_reason = None
        self.updated_at = now

        self.raise_(
            NotificationRetried(
                notification_id=str(self.id),
                recipient_id=str(self.recipient_id),
                channel=self.channel,
                retry_count=self.retry_count,
                retried_at=now,
            )
        )
