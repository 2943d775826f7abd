"""External service clients."""

from .notification_client import HttpNotificationClient

__all__ = [
    "HttpNotificationClient",
]
