from __future__ import annotations

import pytest

from session_tabs.models import AITab, LogEntry, Session, TabKind, UnifiedTabRef
from session_tabs.store import SessionStore
from session_tabs.tabs import toggle_starred

A = UnifiedTabRef.ai
F = UnifiedTabRef.file


def _session(session_id: str = "s1", *tab_ids: str) -> Session:
    tab_ids = tab_ids or ("t1", "t2")
    return Session(
        id=session_id,
        name=session_id,
        ai_tabs=tuple(AITab(id=tab_id) for tab_id in tab_ids),
        active_tab_id=tab_ids[0],
    )


@pytest.fixture()
def store() -> SessionStore:
    store = SessionStore()
    store.add_session(_session())
    return store


def test_add_session_repairs_order_and_rejects_duplicates() -> None:
    store = SessionStore()

    added = store.add_session(_session())

    assert added.unified_tab_order == (A("t1"), A("t2"))
    assert store.active_session is added
    with pytest.raises(ValueError):
        store.add_session(_session())


def test_active_session_switching() -> None:
    store = SessionStore()
    store.add_session(_session("s1"))
    store.add_session(_session("s2"))

    assert store.active_session.id == "s1"  # type: ignore[union-attr]
    store.set_active_session("unknown")
    assert store.active_session.id == "s1"  # type: ignore[union-attr]
    store.cycle_session()
    assert store.active_session.id == "s2"  # type: ignore[union-attr]
    store.cycle_session(forward=False)
    assert store.active_session.id == "s1"  # type: ignore[union-attr]

    store.remove_session("s1")
    assert store.active_session.id == "s2"  # type: ignore[union-attr]
    assert [session.id for session in store.all_sessions()] == ["s2"]


def test_subscribers_see_new_snapshots_only(store: SessionStore) -> None:
    seen: list[Session] = []
    unsubscribe = store.subscribe(seen.append)

    store.select_tab("t1")  # already active: same snapshot
    assert seen == []

    store.select_tab("t2")
    assert [session.active_tab_id for session in seen] == ["t2"]

    unsubscribe()
    store.select_tab("t1")
    assert len(seen) == 1


def test_install_rejects_unknown_sessions(store: SessionStore) -> None:
    assert store.install(_session("other")) is False
    current = store.get("s1")
    assert current is not None
    assert store.install(current) is False


def test_apply_runs_transition_on_active_session(store: SessionStore) -> None:
    updated = store.apply(toggle_starred, "t2")

    assert updated is not None
    assert store.get("s1") is updated
    assert updated.ai_tabs[1].starred is True


def test_create_tab_appends_unified_ref(store: SessionStore) -> None:
    result = store.create_tab(name="Scratch")

    assert result is not None
    session = store.active_session
    assert session is result.session
    assert session.unified_tab_order[-1] == A("gen-1")
    assert session.active_tab_id == "gen-1"


def test_close_tab_records_unified_history_only(store: SessionStore) -> None:
    result = store.close_tab("t2")

    assert result is not None
    session = store.active_session
    assert session is not None
    assert [tab.id for tab in session.ai_tabs] == ["t1"]
    assert session.closed_tab_history == ()
    (entry,) = session.unified_closed_tab_history
    assert (entry.kind, entry.tab.id, entry.unified_index) == (TabKind.AI, "t2", 1)


def test_closed_tab_reopens_once(store: SessionStore) -> None:
    store.close_tab("t2")

    first = store.reopen_closed_tab()
    second = store.reopen_closed_tab()

    assert first is not None
    assert second is None
    session = store.active_session
    assert session is not None
    assert [tab.id for tab in session.ai_tabs] == ["t1", "gen-1"]


def test_close_tab_skip_history_records_nothing(store: SessionStore) -> None:
    store.close_tab("t2", skip_history=True)

    session = store.active_session
    assert session is not None
    assert session.closed_tab_history == ()
    assert session.unified_closed_tab_history == ()


def test_close_then_reopen_restores_position(store: SessionStore) -> None:
    store.close_tab("t1")

    result = store.reopen_closed_tab()

    assert result is not None
    assert result.was_duplicate is False
    session = store.active_session
    assert session is not None
    assert session.unified_tab_order == (A("gen-1"), A("t2"))
    assert [tab.id for tab in session.ai_tabs] == ["gen-1", "t2"]
    assert session.active_tab_id == "gen-1"


def test_file_tab_lifecycle(store: SessionStore) -> None:
    opened = store.open_file_tab("/repo/README.md", "# hi")
    assert opened is not None
    file_id = opened.tab.id

    step = store.navigate_prev()
    assert step is not None and step.id == "t2"
    assert store.select_file_tab(file_id) is not None
    assert store.active_session.active_file_tab_id == file_id  # type: ignore[union-attr]

    closed = store.close_file_tab(file_id)
    assert closed is not None
    assert store.active_session.active_file_tab_id is None  # type: ignore[union-attr]

    reopened = store.reopen_closed_tab()
    assert reopened is not None
    assert reopened.kind == TabKind.FILE
    assert store.active_session.unified_tab_order[-1] == F(reopened.tab_id)  # type: ignore[union-attr]


def test_navigation_honours_unread_only(store: SessionStore) -> None:
    store.unread_only = True

    assert store.navigate_next() is None

    store.unread_only = False
    result = store.navigate_next()
    assert result is not None and result.id == "t2"
    assert store.navigate_to_index(0) is not None
    assert store.active_session.active_tab_id == "t1"  # type: ignore[union-attr]
    last = store.navigate_to_last()
    assert last is not None and last.id == "t2"


def test_add_log_targets_active_tab(store: SessionStore) -> None:
    entry = LogEntry(id="l1", timestamp=0, source="user", text="hello")

    updated = store.add_log(entry)

    assert updated is not None
    assert updated.ai_tabs[0].logs == (entry,)


def test_empty_store_actions_return_none() -> None:
    store = SessionStore()

    assert store.active_session is None
    assert store.create_tab() is None
    assert store.close_tab("t1") is None
    assert store.reopen_closed_tab() is None
    assert store.navigate_next() is None
    assert store.apply(toggle_starred, "t1") is None
