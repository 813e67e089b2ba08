"""Channel adapter registry: pluggable notification dispatch channels.

Email is the only channel customers receive order messages on. The fake
adapter is used unless ``SENDGRID_API_KEY`` and ``MAIL_FROM`` are set, in
which case messages go out through SendGrid. Tests swap adapters with
``set_channel``.
"""

import os
from enum import Enum


class NotificationChannel(Enum):
    EMAIL = "Email"


_channel_instances: dict[str, object] = {}


def _build_email_adapter():
    api_key = os.environ.get("SENDGRID_API_KEY")
    from_email = os.environ.get("MAIL_FROM")
    if api_key and from_email:
        from notifications.channel.sendgrid_email import SendGridEmailAdapter

        return SendGridEmailAdapter(api_key=api_key, from_email=from_email)

    from notifications.channel.fake_email import FakeEmailAdapter

    return FakeEmailAdapter()


def get_channel(channel_type: str):
    """Return the configured channel adapter (singleton per channel type).

    Args:
        channel_type: One of NotificationChannel enum values ("Email")
    """
    if channel_type not in _channel_instances:
        if channel_type == NotificationChannel.EMAIL.value:
            _channel_instances[channel_type] = _build_email_adapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter) -> None:
    """Install a specific adapter for a channel type."""
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
