from unittest.mock import patch

from app.chat.contracts import ChatMessage, PendingAction, Role
from app.chat.state_store import SessionStore


def test_context_is_a_copy():
    store = SessionStore()
    context = store.get_context("s1")
    context.last_ens_name = "alice.eth"
    assert store.get_context("s1").last_ens_name is None

    store.save_context("s1", context)
    assert store.get_context("s1").last_ens_name == "alice.eth"


def test_history_appends_in_order():
    store = SessionStore()
    store.append("s1", ChatMessage(role=Role.USER, content="hi"))
    store.append("s1", ChatMessage(role=Role.ASSISTANT, content="hello"))
    assert [m.content for m in store.history("s1")] == ["hi", "hello"]
    assert store.history("other") == []


def test_history_is_capped():
    store = SessionStore(max_history=3)
    for i in range(5):
        store.append("s1", ChatMessage(role=Role.USER, content=str(i)))
    assert [m.content for m in store.history("s1")] == ["2", "3", "4"]


def test_idle_sessions_expire():
    store = SessionStore(ttl_seconds=10)
    with patch("app.chat.state_store._now", return_value=1000.0):
        store.append("s1", ChatMessage(role=Role.USER, content="hi"))
    with patch("app.chat.state_store._now", return_value=1005.0):
        assert len(store.history("s1")) == 1
    with patch("app.chat.state_store._now", return_value=1011.0):
        assert store.history("s1") == []
        assert store.session_ids() == []


def test_clear():
    store = SessionStore()
    store.append("s1", ChatMessage(role=Role.USER, content="hi"))
    store.clear("s1")
    assert store.history("s1") == []


def test_take_pending_hands_out_once():
    store = SessionStore()
    context = store.get_context("s1")
    context.pending_action = PendingAction(type="payment", description="Send 0.1 ETH")
    context.pending_payments = [{"to": "0xabc"}]
    store.save_context("s1", context)

    taken = store.take_pending("s1")
    assert taken.description == "Send 0.1 ETH"
    assert store.take_pending("s1") is None
    saved = store.get_context("s1")
    assert saved.pending_action is None
    assert saved.pending_payments == []


def test_untouched_expired_sessions_are_swept():
    store = SessionStore(ttl_seconds=10, cleanup_interval=60)
    with patch("app.chat.state_store._now", return_value=1000.0):
        for i in range(3):
            store.append(f"idle-{i}", ChatMessage(role=Role.USER, content="hi"))
    assert len(store._store) == 3

    # inside the sweep interval nothing is scanned
    with patch("app.chat.state_store._now", return_value=1030.0):
        store.append("active", ChatMessage(role=Role.USER, content="hi"))
    assert len(store._store) == 4

    with patch("app.chat.state_store._now", return_value=1061.0):
        store.append("active", ChatMessage(role=Role.USER, content="again"))
    assert list(store._store) == ["active"]


def test_cleanup_drops_expired_only():
    store = SessionStore(ttl_seconds=10)
    with patch("app.chat.state_store._now", return_value=1000.0):
        store.append("old", ChatMessage(role=Role.USER, content="hi"))
    with patch("app.chat.state_store._now", return_value=1008.0):
        store.append("new", ChatMessage(role=Role.USER, content="hi"))
    with patch("app.chat.state_store._now", return_value=1012.0):
        store.cleanup()
    assert list(store._store) == ["new"]


def test_stale_copy_does_not_restore_taken_pending():
    store = SessionStore()
    context = store.get_context("s1")
    context.pending_action = PendingAction(type="payment", description="Send 0.1 ETH")
    store.save_context("s1", context)

    stale = store.get_context("s1")
    store.take_pending("s1")
    stale.last_operation = "balance"
    store.save_context("s1", stale, keep_pending=True)

    saved = store.get_context("s1")
    assert saved.pending_action is None
    assert saved.last_operation == "balance"
