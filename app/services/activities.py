from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from app.contracts.activity import ActivityRecord, ActivityStatus, ActivityType
from db.models.activity import Activity
from db.repos.activities_repo import (
    clear_activities,
    create_activity,
    list_recent_activities,
    prune_activities,
    update_activity,
)

logger = logging.getLogger(__name__)

Listener = Callable[[list[ActivityRecord]], None]


def _to_record(row: Activity) -> ActivityRecord:
    return ActivityRecord(
        id=row.id,
        title=row.title,
        description=row.description,
        type=ActivityType(row.type),
        status=ActivityStatus(row.status),
        timestamp=row.created_at,
        tx_hash=row.tx_hash,
        ens_name=row.ens_name,
        amount=row.amount,
        session_id=row.session_id,
        metadata=row.metadata_ or {},
    )


class ActivityManager:
    """
    Newest-first activity feed shown next to the chat.

    Rows live in the activities table and are pruned to `limit`. Listeners
    receive the latest page after every change.
    """

    def __init__(self, *, session_factory: sessionmaker[Session], limit: int = 50) -> None:
        self._session_factory = session_factory
        self.limit = limit
        self._listeners: list[Listener] = []
        self._lock = Lock()

    def add(
        self,
        *,
        type: ActivityType,
        title: str,
        description: str = "",
        status: ActivityStatus = ActivityStatus.COMPLETED,
        session_id: str | None = None,
        tx_hash: str | None = None,
        ens_name: str | None = None,
        amount: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ActivityRecord:
        with self._session_factory() as db:
            row = create_activity(
                db,
                type=type.value,
                title=title,
                description=description,
                status=status.value,
                session_id=session_id,
                tx_hash=tx_hash,
                ens_name=ens_name,
                amount=amount,
                metadata=metadata,
            )
            record = _to_record(row)
            prune_activities(db, keep=self.limit)
        logger.info("activity added type=%s title=%s", type.value, title)
        self._notify()
        return record

    def update(self, activity_id: UUID, **fields: Any) -> ActivityRecord | None:
        for key in ("type", "status"):
            if key in fields and hasattr(fields[key], "value"):
                fields[key] = fields[key].value
        with self._session_factory() as db:
            row = update_activity(db, activity_id=activity_id, **fields)
            record = _to_record(row) if row is not None else None
        if record is not None:
            self._notify()
        return record

    def get_recent(self, limit: int = 10) -> list[ActivityRecord]:
        with self._session_factory() as db:
            return [_to_record(row) for row in list_recent_activities(db, limit=limit)]

    def get_by_type(self, type: ActivityType, limit: int = 10) -> list[ActivityRecord]:
        with self._session_factory() as db:
            rows = list_recent_activities(db, limit=limit, type=type.value)
            return [_to_record(row) for row in rows]

    def clear(self) -> None:
        with self._session_factory() as db:
            clear_activities(db)
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener; returns a callable that removes it.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        recent = self.get_recent(self.limit)
        for listener in listeners:
            try:
                listener(recent)
            except Exception as e:
                logger.warning("activity listener failed: %s", e)
