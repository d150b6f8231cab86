"""
JSON-backed notification store.

The whole collection lives in memory and is mirrored to a single JSON
document of the form {"notifications": [...]}. Records keep insertion
order, so "latest" is always the last record added.

Design decisions:
- Explicit instance, handed to whoever needs it (no module-level singleton)
- Lazy load on first access; a missing file is created from the seed records
- Every mutation rewrites the full file via a temp file + os.replace, so a
  reader never sees a half-written document. The in-memory collection is
  swapped only after that write succeeds, so a failed write changes nothing
- Duplicate ids in a loaded file are re-keyed with a warning, never dropped
- db_path=None gives a purely in-memory store (tests, scratch use)
- No locking: callers run one operation at a time
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional
from uuid import uuid4

from notification_store.errors import NotificationNotFound, StorePersistenceError
from notification_store.models import (
    SERVER_FIELDS,
    NotificationCreate,
    NotificationRecord,
    utc_now,
)

logger = logging.getLogger("notification_store")

COLLECTION_KEY = "notifications"

SEED_NOTIFICATIONS: list[dict[str, Any]] = [
    {
        "id": "1",
        "title": "Welcome",
        "body": "Welcome to the notification app!",
        "type": "local",
        "notified": False,
        "time": None,
        "timestamp": "2025-01-11T10:00:00Z",
    },
    {
        "id": "2",
        "title": "Meeting Reminder",
        "body": "Team sync at 8 PM",
        "type": "scheduled",
        "notified": False,
        "time": "2025-01-11T20:00:00Z",
        "timestamp": "2025-01-11T10:30:00Z",
    },
]


def seed_records() -> list[NotificationRecord]:
    """Fresh copies of the records a new database starts with."""
    return [NotificationRecord.model_validate(r) for r in SEED_NOTIFICATIONS]


class NotificationStore:
    """
    Owns the notification collection.

    All lookups raise NotificationNotFound on a miss rather than returning
    None, so the HTTP layer can translate misses in one place.
    """

    def __init__(self, db_path: Optional[Path] = None, seed: bool = True):
        """
        Args:
            db_path: JSON file backing the store. None keeps everything in memory.
            seed: Start a new (missing) database with the seed records.
        """
        self.db_path = Path(db_path) if db_path is not None else None
        self.seed = seed

        # id -> record, insertion ordered; loaded lazily
        self._records: Optional[dict[str, NotificationRecord]] = None

    # =========================================================================
    # Loading and persistence
    # =========================================================================

    def _ensure_loaded(self) -> dict[str, NotificationRecord]:
        if self._records is None:
            self._records = self._index(self._load())
        return self._records

    def _index(self, records: list[NotificationRecord]) -> dict[str, NotificationRecord]:
        # Files written by older servers may repeat an id; keep both records
        indexed: dict[str, NotificationRecord] = {}
        for record in records:
            if record.id in indexed:
                new_id = uuid4().hex[:12]
                while new_id in indexed or any(r.id == new_id for r in records):
                    new_id = uuid4().hex[:12]
                logger.warning(
                    f"Duplicate notification id {record.id} in {self.db_path}; "
                    f"re-keyed as {new_id}"
                )
                record = record.model_copy(update={"id": new_id})
            indexed[record.id] = record
        return indexed

    def _load(self) -> list[NotificationRecord]:
        if self.db_path is None:
            return seed_records() if self.seed else []

        if not self.db_path.exists():
            records = seed_records() if self.seed else []
            self._write(records)
            logger.info(f"Created {self.db_path} with {len(records)} notifications")
            return records

        try:
            with open(self.db_path, "r", encoding="utf-8") as f:
                document = json.load(f)
            raw = document.get(COLLECTION_KEY, []) if isinstance(document, dict) else []
            records = [NotificationRecord.model_validate(r) for r in raw]
        except (OSError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            raise StorePersistenceError(f"Cannot load {self.db_path}: {e}") from e

        logger.info(f"Loaded {len(records)} notifications from {self.db_path}")
        return records

    def _write(self, records: list[NotificationRecord]) -> None:
        document = {COLLECTION_KEY: [r.to_json() for r in records]}
        directory = self.db_path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self.db_path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2)
                    f.write("\n")
                os.replace(tmp_name, self.db_path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorePersistenceError(f"Cannot write {self.db_path}: {e}") from e

    def flush(self) -> None:
        """Write the current snapshot to disk (no-op for in-memory stores)."""
        if self.db_path is None:
            return
        self._write(list(self._ensure_loaded().values()))

    def _commit(self, records: dict[str, NotificationRecord]) -> None:
        # The new collection only becomes visible once it is on disk
        if self.db_path is not None:
            self._write(list(records.values()))
        self._records = records

    def snapshot(self) -> list[dict[str, Any]]:
        """JSON-ready copy of every record, in insertion order."""
        return [r.to_json() for r in self._ensure_loaded().values()]

    def reload(self) -> None:
        """
        Drop the in-memory copy.

        The next access re-reads the database file (or re-seeds an
        in-memory store).
        """
        self._records = None

    # =========================================================================
    # Queries
    # =========================================================================

    def list(self) -> list[NotificationRecord]:
        """All records in insertion order."""
        return list(self._ensure_loaded().values())

    def find(self, notification_id: str) -> NotificationRecord:
        record = self._ensure_loaded().get(notification_id)
        if record is None:
            raise NotificationNotFound(notification_id)
        return record

    def get_latest(self) -> NotificationRecord:
        """The most recently inserted record (not the newest timestamp)."""
        records = self._ensure_loaded()
        if not records:
            raise NotificationNotFound()
        return next(reversed(records.values()))

    def count_unnotified(self) -> int:
        return sum(1 for r in self._ensure_loaded().values() if not r.notified)

    # =========================================================================
    # Mutations
    # =========================================================================

    def _new_id(self) -> str:
        records = self._ensure_loaded()
        while True:
            candidate = uuid4().hex[:12]
            if candidate not in records:
                return candidate

    def _next_timestamp(self) -> datetime:
        # Keep timestamps non-decreasing even if the wall clock steps back
        now = utc_now()
        records = self._ensure_loaded()
        if records:
            last = next(reversed(records.values())).timestamp
            if last > now:
                return last
        return now

    def create(self, fields: Mapping[str, Any]) -> NotificationRecord:
        """
        Store a new notification sent by a client.

        Missing title/body/type/time are defaulted. Any id or timestamp in
        `fields` is ignored; both are assigned here. The record is marked
        notified, as it was delivered by the send operation.
        """
        data = NotificationCreate.model_validate(dict(fields))
        record = NotificationRecord(
            id=self._new_id(),
            title=data.title,
            body=data.body,
            type=data.type,
            notified=True,
            time=data.time,
            timestamp=self._next_timestamp(),
        )
        self._commit({**self._ensure_loaded(), record.id: record})
        logger.info(f"Created notification {record.id} ({record.type})")
        return record

    def update(self, notification_id: str, fields: Mapping[str, Any]) -> NotificationRecord:
        """
        Shallow-merge `fields` into an existing record.

        id and timestamp cannot be changed this way; they are dropped
        from `fields`. Raises NotificationNotFound and leaves the
        collection untouched if the id is unknown.
        """
        current = self.find(notification_id)
        changes = {k: v for k, v in fields.items() if k not in SERVER_FIELDS}
        merged = {**current.model_dump(), **changes}
        updated = NotificationRecord.model_validate(merged)

        self._commit({**self._ensure_loaded(), notification_id: updated})
        logger.info(f"Updated notification {notification_id}: {sorted(changes)}")
        return updated

    def mark_read(self, notification_id: str) -> NotificationRecord:
        return self.update(notification_id, {"notified": True})

    def mark_all_read(self) -> int:
        """Mark every record notified. Returns how many actually changed."""
        records = self._ensure_loaded()
        changed = sum(1 for r in records.values() if not r.notified)
        if changed:
            self._commit({
                record_id: record if record.notified
                else record.model_copy(update={"notified": True})
                for record_id, record in records.items()
            })
        logger.info(f"Marked {changed} notifications as read")
        return changed

    def delete(self, notification_id: str) -> NotificationRecord:
        """Remove one record and return it."""
        removed = self.find(notification_id)
        self._commit({
            record_id: record
            for record_id, record in self._ensure_loaded().items()
            if record_id != notification_id
        })
        logger.info(f"Deleted notification {notification_id}")
        return removed

    def clear(self) -> int:
        """Remove every record. Returns the number removed."""
        count = len(self._ensure_loaded())
        self._commit({})
        logger.info(f"Cleared {count} notifications")
        return count

    def reset(self) -> int:
        """Replace the whole collection with the seed records."""
        self._commit({r.id: r for r in seed_records()})
        logger.info(f"Reset store to {len(self._records)} seed notifications")
        return len(self._records)

    def __len__(self) -> int:
        return len(self._ensure_loaded())
