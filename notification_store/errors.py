"""
Exceptions raised by the notification store.

The HTTP layer maps these onto status codes:
- NotificationNotFound -> 404
- StorePersistenceError -> 500 (detail is logged, never returned)
"""

from typing import Optional


class NotificationStoreError(Exception):
    """Base class for all store failures."""


class NotificationNotFound(NotificationStoreError):
    """
    Lookup miss.

    Raised for an unknown id, and for "latest" on an empty collection
    (in which case notification_id is None).
    """

    def __init__(self, notification_id: Optional[str] = None):
        self.notification_id = notification_id
        if notification_id is None:
            message = "No notifications found"
        else:
            message = f"Notification not found: {notification_id}"
        super().__init__(message)


class StorePersistenceError(NotificationStoreError):
    """The database file could not be read, parsed or written."""
