"""
Notification record store.

This package contains everything below the HTTP layer:
- Record and request models
- The JSON-backed NotificationStore
- The stats aggregator
- Settings and the error taxonomy
"""

from notification_store.models import (
    NotificationRecord,
    NotificationCreate,
    NotificationUpdate,
    NotificationStats,
    NotificationType,
)
from notification_store.data_store import NotificationStore
from notification_store.errors import (
    NotificationStoreError,
    NotificationNotFound,
    StorePersistenceError,
)
from notification_store.stats import compute_stats
from notification_store.config import Settings

__all__ = [
    "NotificationRecord",
    "NotificationCreate",
    "NotificationUpdate",
    "NotificationStats",
    "NotificationType",
    "NotificationStore",
    "NotificationStoreError",
    "NotificationNotFound",
    "StorePersistenceError",
    "compute_stats",
    "Settings",
]
