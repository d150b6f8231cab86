"""
Client side of the notification demo.

- NotificationClient: HTTP adapter for the notification store API
- plan_delivery / LocalAlerts: decide how to raise a fetched notification
- LatestNotificationWatcher: poll the latest notification and raise alerts
"""

from notification_client.json_service import NotificationClient, NotificationClientError
from notification_client.delivery import (
    DeliveryAction,
    DeliveryPlan,
    LatestNotificationWatcher,
    LocalAlert,
    LocalAlerts,
    plan_delivery,
)

__all__ = [
    "NotificationClient",
    "NotificationClientError",
    "DeliveryAction",
    "DeliveryPlan",
    "LatestNotificationWatcher",
    "LocalAlert",
    "LocalAlerts",
    "plan_delivery",
]
