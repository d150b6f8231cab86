"""
HTTP client for the notification store.

This is what a device-side app uses to talk to the service: push a new
notification, poll the latest one, flip its status, and so on.

Design decisions:
- Thin wrapper over httpx; an existing httpx.Client can be injected
  (tests pass a FastAPI TestClient, which is one)
- Records come back as NotificationRecord models, not raw dicts
- A 404 for "latest" or for delete is an answer (None / False), not an error
- Every other non-2xx response, and every transport failure, raises
  NotificationClientError; nothing is retried here
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from notification_store.models import NotificationRecord, NotificationStats, NotificationType

logger = logging.getLogger("notification_client")


class NotificationClientError(Exception):
    """A request to the notification service failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotificationClient:
    """
    Client for the notification store REST API.

    Usable as a context manager; the underlying httpx.Client is closed on
    exit only if this object created it.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:3000",
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        """
        Args:
            base_url: Service root, e.g. http://192.168.1.20:3000
            http: Pre-configured client to use instead of creating one.
            timeout: Request timeout in seconds (only for a created client).
        """
        self.base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "NotificationClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # =========================================================================
    # Transport
    # =========================================================================

    def _request(
        self,
        method: str,
        path: str,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> Optional[dict[str, Any]]:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise NotificationClientError(f"{method} {path} failed: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")

        if response.status_code == 404 and allow_not_found:
            return None

        if response.is_error:
            message = f"HTTP error {response.status_code}"
            try:
                message = response.json().get("message", message)
            except ValueError:
                pass
            raise NotificationClientError(f"{method} {path}: {message}", response.status_code)

        return response.json()

    # =========================================================================
    # Operations
    # =========================================================================

    def test_connection(self) -> bool:
        """True if the service answers the health check."""
        try:
            self._request("GET", "/health")
        except NotificationClientError as e:
            logger.error(f"Connection test against {self.base_url} failed: {e}")
            return False
        return True

    def send_notification(
        self,
        title: Optional[str] = None,
        body: Optional[str] = None,
        notification_type: NotificationType = NotificationType.LOCAL,
        time: Optional[datetime] = None,
    ) -> NotificationRecord:
        """
        Push a new notification to the server.

        Args:
            title: Alert title (server default when omitted)
            body: Alert text (server default when omitted)
            notification_type: LOCAL to show now, SCHEDULED to fire at `time`
            time: When a scheduled alert should fire
        """
        payload: dict[str, Any] = {"type": NotificationType(notification_type).value}
        if title is not None:
            payload["title"] = title
        if body is not None:
            payload["body"] = body
        if time is not None:
            payload["time"] = time.isoformat()

        data = self._request("POST", "/send-notification", json=payload)
        record = NotificationRecord.model_validate(data["notification"])
        logger.info(f"Sent notification {record.id}: {record.title}")
        return record

    def get_latest_notification(self) -> Optional[NotificationRecord]:
        """The most recent notification, or None if the server has none."""
        data = self._request("GET", "/notifications/latest", allow_not_found=True)
        if data is None:
            return None
        return NotificationRecord.model_validate(data["notification"])

    def get_all_notifications(self) -> list[NotificationRecord]:
        data = self._request("GET", "/notifications")
        return [NotificationRecord.model_validate(n) for n in data["notifications"]]

    def get_notification(self, notification_id: str) -> Optional[NotificationRecord]:
        data = self._request(
            "GET", f"/notifications/{notification_id}", allow_not_found=True
        )
        if data is None:
            return None
        return NotificationRecord.model_validate(data["notification"])

    def update_notification(self, notification_id: str, **fields: Any) -> NotificationRecord:
        """
        Partially update a notification.

        Raises NotificationClientError (status 404) for an unknown id.
        """
        if isinstance(fields.get("time"), datetime):
            fields["time"] = fields["time"].isoformat()
        data = self._request("PATCH", f"/notifications/{notification_id}", json=fields)
        return NotificationRecord.model_validate(data["notification"])

    def mark_as_read(self, notification_id: str) -> NotificationRecord:
        data = self._request("PATCH", f"/notifications/{notification_id}/read")
        return NotificationRecord.model_validate(data["notification"])

    def mark_all_read(self) -> int:
        return self._request("PATCH", "/notifications/read-all")["count"]

    def delete_notification(self, notification_id: str) -> bool:
        """True if deleted, False if the id did not exist."""
        data = self._request(
            "DELETE", f"/notifications/{notification_id}", allow_not_found=True
        )
        return data is not None

    def clear_notifications(self) -> int:
        """Delete everything. Returns how many notifications were removed."""
        return self._request("DELETE", "/notifications")["count"]

    def get_stats(self) -> NotificationStats:
        data = self._request("GET", "/notifications/stats")
        return NotificationStats.model_validate(data["stats"])

    def get_unread_count(self) -> int:
        return self._request("GET", "/notifications/unread-count")["unreadCount"]
