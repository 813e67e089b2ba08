"""Domain events for the Notification aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Notification")
class NotificationCreated:
    """A notification was created and queued for dispatch."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    notification_type: String(required=True)
    channel: String(required=True)
    order_id: Identifier()
    subject: String()
    template_name: String()
    source_event_type: String()
    created_at: DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationSent:
    """A notification was handed to the channel adapter."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    channel: String(required=True)
    message_id: String()
    sent_at: DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationFailed:
    """A notification failed to send."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    channel: String(required=True)
    reason: String(required=True)
    retry_count: Integer(required=True)
    max_retries: Integer(required=True)
    failed_at: DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationRetried:
    """A failed notification was queued for another attempt."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    channel: String(required=True)
    retry_count: Integer(required=True)
    retried_at: DateTime(required=True)
