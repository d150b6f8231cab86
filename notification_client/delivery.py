"""
Local alert delivery for notifications fetched from the server.

The device decides how to raise each notification it pulls:
- local notifications are shown immediately
- scheduled notifications are scheduled for their `time`, or shown
  immediately if that time has already passed
- scheduled notifications without a time are skipped

LocalAlerts is a mock of the device's notification API. It logs what
would be shown or scheduled and keeps a history for test assertions.
"""

import logging
import time as time_module
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from notification_client.json_service import NotificationClient, NotificationClientError
from notification_store.models import NotificationRecord, utc_now

logger = logging.getLogger("local_alerts")


class DeliveryAction(str, Enum):
    SHOW = "show"
    SCHEDULE = "schedule"
    SKIP = "skip"


@dataclass
class DeliveryPlan:
    """What to do with one notification."""
    action: DeliveryAction
    fire_at: Optional[datetime] = None
    reason: str = ""


def plan_delivery(record: NotificationRecord, now: Optional[datetime] = None) -> DeliveryPlan:
    """Decide whether to show, schedule or skip a notification."""
    if now is None:
        now = utc_now()

    if not record.is_scheduled():
        return DeliveryPlan(DeliveryAction.SHOW, reason="local notification")

    if record.time is None:
        return DeliveryPlan(DeliveryAction.SKIP, reason="scheduled without a time")

    if record.time <= now:
        return DeliveryPlan(
            DeliveryAction.SHOW,
            fire_at=record.time,
            reason="scheduled time already passed",
        )

    return DeliveryPlan(DeliveryAction.SCHEDULE, fire_at=record.time, reason="scheduled")


@dataclass
class LocalAlert:
    """An alert raised (or queued) on the device."""
    notification_id: str
    title: str
    body: str
    action: DeliveryAction
    fire_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)

    def __str__(self) -> str:
        if self.action == DeliveryAction.SCHEDULE:
            return f"SCHEDULED {self.title!r} for {self.fire_at.isoformat()}"
        return f"SHOWN {self.title!r}: {self.body}"


class LocalAlerts:
    """
    Mock local notification channel.

    Logs alerts to the console and tracks them for test assertions.
    """

    def __init__(self, channel_id: str = "high-priority-channel"):
        self.channel_id = channel_id
        self.alerts: list[LocalAlert] = []

    def show(self, record: NotificationRecord) -> LocalAlert:
        alert = LocalAlert(
            notification_id=record.id,
            title=record.title,
            body=record.body,
            action=DeliveryAction.SHOW,
        )
        logger.info(f"[{self.channel_id}] {alert}")
        self.alerts.append(alert)
        return alert

    def schedule(self, record: NotificationRecord, fire_at: datetime) -> LocalAlert:
        alert = LocalAlert(
            notification_id=record.id,
            title=record.title,
            body=record.body,
            action=DeliveryAction.SCHEDULE,
            fire_at=fire_at,
        )
        logger.info(f"[{self.channel_id}] {alert}")
        self.alerts.append(alert)
        return alert

    def deliver(self, record: NotificationRecord, plan: DeliveryPlan) -> Optional[LocalAlert]:
        """Carry out a plan. Returns None for SKIP."""
        if plan.action == DeliveryAction.SHOW:
            return self.show(record)
        if plan.action == DeliveryAction.SCHEDULE:
            return self.schedule(record, plan.fire_at)
        logger.warning(f"[{self.channel_id}] Skipped notification {record.id}: {plan.reason}")
        return None

    def get_shown(self) -> list[LocalAlert]:
        return [a for a in self.alerts if a.action == DeliveryAction.SHOW]

    def get_scheduled(self) -> list[LocalAlert]:
        return [a for a in self.alerts if a.action == DeliveryAction.SCHEDULE]

    def find_alert_for(self, notification_id: str) -> Optional[LocalAlert]:
        for alert in self.alerts:
            if alert.notification_id == notification_id:
                return alert
        return None

    def clear_history(self):
        """Clear alert history (useful between tests)."""
        self.alerts.clear()


class LatestNotificationWatcher:
    """
    Polls the server's latest notification and raises local alerts.

    Each notification is handled once (tracked by id). After handling, a
    notification that the server still has as unnotified is marked read.
    """

    def __init__(
        self,
        client: NotificationClient,
        alerts: Optional[LocalAlerts] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.alerts = alerts or LocalAlerts()
        self.clock = clock
        self.last_seen_id: Optional[str] = None

    def check_once(self) -> Optional[LocalAlert]:
        """
        Poll once.

        Returns the alert raised, or None if there was nothing new (or the
        new notification was skipped).
        """
        record = self.client.get_latest_notification()
        if record is None or record.id == self.last_seen_id:
            return None

        self.last_seen_id = record.id
        plan = plan_delivery(record, self.clock())
        alert = self.alerts.deliver(record, plan)

        if not record.notified:
            self.client.mark_as_read(record.id)
        return alert

    def run(
        self,
        interval: float = 5.0,
        iterations: Optional[int] = None,
        sleep: Callable[[float], None] = time_module.sleep,
    ) -> int:
        """
        Poll every `interval` seconds.

        Args:
            interval: Seconds between polls.
            iterations: Stop after this many polls (None = forever).
            sleep: Injected for tests.

        Returns:
            Number of alerts raised.
        """
        raised = 0
        polls = 0
        while iterations is None or polls < iterations:
            try:
                if self.check_once() is not None:
                    raised += 1
            except NotificationClientError as e:
                # Keep polling; the server may come back
                logger.error(f"Polling failed: {e}")
            polls += 1
            if iterations is None or polls < iterations:
                sleep(interval)
        return raised
