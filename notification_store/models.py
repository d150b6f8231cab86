"""
Models for the notification store.

A notification record is the only entity. Request bodies get their own
models so that server-owned fields (id, timestamp) can never be supplied
by a caller: they simply are not part of the input schema.

Design decisions:
- Using Pydantic for validation and serialization
- Missing, null or empty title/body/type/time are defaulted, not rejected
- Datetimes without a timezone are taken to be UTC
- Unknown fields are ignored everywhere
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_TITLE = "New Notification"
DEFAULT_BODY = "You have a new message."

# Fields that only the store may assign.
SERVER_FIELDS = frozenset({"id", "timestamp"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class NotificationType(str, Enum):
    """How the client should raise the alert."""
    LOCAL = "local"               # Show immediately
    SCHEDULED = "scheduled"       # Fire at `time`


# =============================================================================
# Stored record
# =============================================================================

class NotificationRecord(BaseModel):
    """
    A single notification entry.

    `notified` is true once the client has displayed or processed the
    alert. Records created through the send endpoint start out true;
    seeded records start out false.
    """
    id: str = Field(..., description="Unique identifier, assigned by the store")
    title: str = Field(default=DEFAULT_TITLE)
    body: str = Field(default=DEFAULT_BODY)
    type: NotificationType = Field(default=NotificationType.LOCAL)
    notified: bool = Field(default=False)
    time: Optional[datetime] = Field(
        default=None,
        description="When a scheduled alert should fire (null for local)"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="Creation time, assigned by the store"
    )

    model_config = ConfigDict(use_enum_values=True, extra="ignore")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Older database files used numeric ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        return value or DEFAULT_TITLE

    @field_validator("body", mode="before")
    @classmethod
    def _default_body(cls, value: Any) -> Any:
        return value or DEFAULT_BODY

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: Any) -> Any:
        return value or NotificationType.LOCAL

    @field_validator("time", mode="before")
    @classmethod
    def _blank_time(cls, value: Any) -> Any:
        return value or None

    @field_validator("time", "timestamp")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    def is_scheduled(self) -> bool:
        return self.type == NotificationType.SCHEDULED

    def to_json(self) -> dict[str, Any]:
        """JSON-ready dict, as written to disk and returned on the wire."""
        return self.model_dump(mode="json")


# =============================================================================
# Request bodies
# =============================================================================

class NotificationCreate(BaseModel):
    """Body of POST /send-notification. Every field is optional."""
    title: Optional[str] = None
    body: Optional[str] = None
    type: Optional[NotificationType] = None
    time: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True, extra="ignore")

    @field_validator("time", mode="before")
    @classmethod
    def _blank_time(cls, value: Any) -> Any:
        return value or None


class NotificationUpdate(BaseModel):
    """
    Body of PATCH /notifications/{id}.

    Only fields present in the request are applied. `type` and `time`
    may be changed after creation.
    """
    title: Optional[str] = None
    body: Optional[str] = None
    type: Optional[NotificationType] = None
    notified: Optional[bool] = None
    time: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True, extra="ignore")

    @field_validator("time", mode="before")
    @classmethod
    def _blank_time(cls, value: Any) -> Any:
        return value or None

    def to_fields(self) -> dict[str, Any]:
        """
        Fields to merge into the stored record.

        An explicit null clears `time`; for every other field it means
        "leave as is".
        """
        fields = self.model_dump(exclude_unset=True)
        return {
            key: value for key, value in fields.items()
            if value is not None or key == "time"
        }


# =============================================================================
# Stats
# =============================================================================

class TypeCounts(BaseModel):
    local: int = 0
    scheduled: int = 0


class NotificationStats(BaseModel):
    """Summary of one snapshot of the collection."""
    total: int = 0
    notified: int = 0
    unnotified: int = 0
    by_type: TypeCounts = Field(default_factory=TypeCounts, alias="byType")

    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
