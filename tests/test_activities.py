from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from app.contracts.activity import ActivityStatus, ActivityType
from app.services.activities import ActivityManager
from db.repos.activities_repo import create_activity, list_recent_activities
from db.session import SessionLocal


def _manager(limit=50):
    return ActivityManager(session_factory=SessionLocal, limit=limit)


def test_add_and_list():
    manager = _manager()
    record = manager.add(
        type=ActivityType.PAYMENT,
        title="Payment of 0.1 ETH",
        amount="0.1 ETH",
        metadata={"network": "Base Sepolia"},
    )
    assert record.status == ActivityStatus.COMPLETED
    recent = manager.get_recent()
    assert [r.id for r in recent] == [record.id]
    assert recent[0].metadata == {"network": "Base Sepolia"}


def test_newest_first_and_pruned():
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    manager = _manager(limit=3)
    for i in range(5):
        with patch("db.repos.activities_repo.utcnow", return_value=start + timedelta(minutes=i)):
            manager.add(type=ActivityType.BALANCE_CHECK, title=f"check {i}")
    titles = [r.title for r in manager.get_recent(10)]
    assert titles == ["check 4", "check 3", "check 2"]


def test_filter_by_type():
    manager = _manager()
    manager.add(type=ActivityType.BALANCE_CHECK, title="balance")
    manager.add(type=ActivityType.ERROR, title="oops", status=ActivityStatus.FAILED)
    errors = manager.get_by_type(ActivityType.ERROR)
    assert [r.title for r in errors] == ["oops"]
    assert errors[0].status == ActivityStatus.FAILED


def test_update():
    manager = _manager()
    record = manager.add(type=ActivityType.PAYMENT, title="pending", status=ActivityStatus.PENDING)
    updated = manager.update(record.id, status=ActivityStatus.COMPLETED, tx_hash="0x" + "ab" * 32)
    assert updated.status == ActivityStatus.COMPLETED
    assert updated.tx_hash == "0x" + "ab" * 32


def test_subscribe_and_unsubscribe():
    manager = _manager()
    seen = []
    unsubscribe = manager.subscribe(seen.append)
    manager.add(type=ActivityType.PAYMENT, title="first")
    unsubscribe()
    manager.add(type=ActivityType.PAYMENT, title="second")
    assert len(seen) == 1
    assert [r.title for r in seen[0]] == ["first"]


def test_clear():
    manager = _manager()
    manager.add(type=ActivityType.PAYMENT, title="first")
    manager.clear()
    assert manager.get_recent() == []


def test_repo_filters_by_type():
    with SessionLocal() as db:
        create_activity(db, type="payment", title="a")
        create_activity(db, type="error", title="b")
        rows = list_recent_activities(db, type="payment")
    assert [row.title for row in rows] == ["a"]
