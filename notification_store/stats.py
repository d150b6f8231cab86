"""Read-only summary of a notification snapshot."""

from typing import Iterable

from notification_store.models import (
    NotificationRecord,
    NotificationStats,
    NotificationType,
    TypeCounts,
)


def compute_stats(records: Iterable[NotificationRecord]) -> NotificationStats:
    """
    Count records by delivery status and by type.

    Pure function of its input. An empty snapshot yields all zeros.
    """
    total = notified = local = scheduled = 0
    for record in records:
        total += 1
        if record.notified:
            notified += 1
        if record.type == NotificationType.SCHEDULED:
            scheduled += 1
        else:
            local += 1

    return NotificationStats(
        total=total,
        notified=notified,
        unnotified=total - notified,
        by_type=TypeCounts(local=local, scheduled=scheduled),
    )
