from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models.activity import Activity
from db.utils import utcnow


def create_activity(
    db: Session,
    *,
    type: str,
    title: str,
    description: str = "",
    status: str = "completed",
    session_id: str | None = None,
    tx_hash: str | None = None,
    ens_name: str | None = None,
    amount: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Activity:
    activity = Activity(
        type=type,
        title=title,
        description=description,
        status=status,
        session_id=session_id,
        tx_hash=tx_hash,
        ens_name=ens_name,
        amount=amount,
        metadata_=metadata,
        created_at=utcnow(),
    )
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


def update_activity(
    db: Session,
    *,
    activity_id: uuid.UUID,
    **fields: Any,
) -> Activity | None:
    activity = db.get(Activity, activity_id)
    if activity is None:
        return None

    for key, value in fields.items():
        if key == "metadata":
            key = "metadata_"
        if not hasattr(activity, key):
            raise ValueError(f"Unknown activity field: {key}")
        setattr(activity, key, value)

    db.commit()
    db.refresh(activity)
    return activity


def list_recent_activities(
    db: Session,
    *,
    limit: int = 10,
    type: str | None = None,
) -> list[Activity]:
    stmt = select(Activity)
    if type is not None:
        stmt = stmt.where(Activity.type == type)
    stmt = stmt.order_by(Activity.created_at.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def prune_activities(db: Session, *, keep: int) -> int:
    """
    Delete everything older than the newest `keep` rows. Returns rows deleted.
    """
    keep_ids = select(Activity.id).order_by(Activity.created_at.desc()).limit(keep)
    stmt = delete(Activity).where(Activity.id.not_in(keep_ids)).execution_options(synchronize_session=False)
    result = db.execute(stmt)
    db.commit()
    return result.rowcount or 0


def clear_activities(db: Session) -> None:
    db.execute(delete(Activity))
    db.commit()
