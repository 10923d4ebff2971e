from __future__ import annotations

from session_tabs.models import AITab, FilePreviewTab, Session, TabKind, UnifiedTabRef
from session_tabs.navigation import (
    navigate_to_last_tab,
    navigate_to_last_unified_tab,
    navigate_to_next_tab,
    navigate_to_next_unified_tab,
    navigate_to_prev_tab,
    navigate_to_prev_unified_tab,
    navigate_to_tab_by_index,
    navigate_to_unified_tab_by_index,
)

A = UnifiedTabRef.ai
F = UnifiedTabRef.file


def _session(*tabs: AITab, active: str | None = None, **fields) -> Session:
    return Session(
        ai_tabs=tabs,
        active_tab_id=active if active is not None else tabs[0].id,
        **fields,
    )


def _plain(*ids: str, active: str | None = None) -> Session:
    return _session(*(AITab(id=tab_id) for tab_id in ids), active=active)


def _file(tab_id: str) -> FilePreviewTab:
    return FilePreviewTab(id=tab_id, path=f"/repo/{tab_id}.md", name=tab_id, extension=".md")


# ----------------------------------------------------------------------
# AI-only navigation
# ----------------------------------------------------------------------
def test_next_tab_wraps_after_full_cycle() -> None:
    session = _plain("t1", "t2", "t3")

    visited = []
    for _ in range(3):
        result = navigate_to_next_tab(session)
        assert result is not None
        session = result.session
        visited.append(session.active_tab_id)

    assert visited == ["t2", "t3", "t1"]


def test_prev_tab_wraps_from_first_to_last() -> None:
    result = navigate_to_prev_tab(_plain("t1", "t2", "t3"))

    assert result is not None
    assert result.tab.id == "t3"
    assert result.session.active_tab_id == "t3"


def test_navigation_needs_two_tabs() -> None:
    assert navigate_to_next_tab(_plain("t1")) is None
    assert navigate_to_prev_tab(_plain("t1")) is None


def test_unread_only_jumps_from_filtered_out_tab() -> None:
    session = _session(
        AITab(id="t1"),
        AITab(id="t2", has_unread=True),
        AITab(id="t3"),
        AITab(id="t4", input_value="draft"),
        active="t1",
    )

    forward = navigate_to_next_tab(session, unread_only=True)
    backward = navigate_to_prev_tab(session, unread_only=True)

    assert forward is not None and forward.session.active_tab_id == "t2"
    assert backward is not None and backward.session.active_tab_id == "t4"


def test_unread_only_single_navigable_tab_that_is_active() -> None:
    session = _session(AITab(id="t1", has_unread=True), AITab(id="t2"), active="t1")

    assert navigate_to_next_tab(session, unread_only=True) is None


def test_unread_only_without_navigable_tabs() -> None:
    assert navigate_to_next_tab(_plain("t1", "t2"), unread_only=True) is None


def test_tab_by_index() -> None:
    session = _plain("t1", "t2", "t3")

    jumped = navigate_to_tab_by_index(session, 2)
    same = navigate_to_tab_by_index(session, 0)

    assert jumped is not None and jumped.session.active_tab_id == "t3"
    assert same is not None and same.session is session
    assert navigate_to_tab_by_index(session, 3) is None
    assert navigate_to_tab_by_index(session, -1) is None


def test_tab_by_index_counts_navigable_tabs_only() -> None:
    session = _session(
        AITab(id="t1"),
        AITab(id="t2", has_unread=True),
        AITab(id="t3", has_unread=True),
    )

    result = navigate_to_tab_by_index(session, 1, unread_only=True)

    assert result is not None
    assert result.tab.id == "t3"


def test_last_tab() -> None:
    result = navigate_to_last_tab(_plain("t1", "t2", "t3"))

    assert result is not None
    assert result.session.active_tab_id == "t3"
    assert navigate_to_last_tab(Session()) is None


# ----------------------------------------------------------------------
# Unified navigation
# ----------------------------------------------------------------------
def _mixed(active_file: str | None = None) -> Session:
    return _session(
        AITab(id="a1"),
        AITab(id="a2"),
        file_preview_tabs=(_file("f1"),),
        active_file_tab_id=active_file,
        unified_tab_order=(A("a1"), F("f1"), A("a2")),
    )


def test_unified_next_walks_across_kinds() -> None:
    session = _mixed()

    first = navigate_to_next_unified_tab(session)
    assert first is not None
    assert (first.kind, first.id) == (TabKind.FILE, "f1")
    assert first.session.active_file_tab_id == "f1"
    # The conversation to return to is kept.
    assert first.session.active_tab_id == "a1"

    second = navigate_to_next_unified_tab(first.session)
    assert second is not None
    assert (second.kind, second.id) == (TabKind.AI, "a2")
    assert second.session.active_tab_id == "a2"
    assert second.session.active_file_tab_id is None


def test_unified_prev_wraps_from_first() -> None:
    result = navigate_to_prev_unified_tab(_mixed())

    assert result is not None
    assert (result.kind, result.id) == (TabKind.AI, "a2")


def test_unified_uses_file_tab_as_current_when_displayed() -> None:
    result = navigate_to_prev_unified_tab(_mixed(active_file="f1"))

    assert result is not None
    assert result.id == "a1"
    assert result.session.active_file_tab_id is None


def test_unified_orphan_ai_tab_and_dangling_ref() -> None:
    session = _session(
        AITab(id="t1"),
        AITab(id="t2"),
        file_preview_tabs=(_file("f1"),),
        active="t1",
        unified_tab_order=(A("t1"), F("f1"), A("ghost")),
    )

    result = navigate_to_next_unified_tab(session)

    assert result is not None
    assert result.id == "f1"
    visited = [result.id]
    for _ in range(2):
        result = navigate_to_next_unified_tab(result.session)
        assert result is not None
        visited.append(result.id)
    # ghost is skipped; the orphan t2 is reachable at the end.
    assert visited == ["f1", "t2", "t1"]


def test_unified_current_not_located_lands_on_first() -> None:
    session = _session(
        AITab(id="t1"),
        AITab(id="t2"),
        active="stale",
        unified_tab_order=(A("t1"), A("t2")),
    )

    result = navigate_to_next_unified_tab(session)

    assert result is not None
    assert result.id == "t1"


def test_unified_needs_two_resolvable_tabs() -> None:
    session = _session(AITab(id="t1"), unified_tab_order=(A("t1"), A("gone"), F("gone")))

    assert navigate_to_next_unified_tab(session) is None
    assert navigate_to_prev_unified_tab(session) is None


def test_unified_unread_only_keeps_file_tabs() -> None:
    session = _session(
        AITab(id="a1"),
        AITab(id="a2"),
        AITab(id="a3", has_unread=True),
        file_preview_tabs=(_file("f1"),),
        active="a1",
        unified_tab_order=(A("a1"), A("a2"), F("f1"), A("a3")),
    )

    first = navigate_to_next_unified_tab(session, unread_only=True)
    assert first is not None and first.id == "f1"
    second = navigate_to_next_unified_tab(first.session, unread_only=True)
    assert second is not None and second.id == "a3"
    third = navigate_to_next_unified_tab(second.session, unread_only=True)
    assert third is not None and third.id == "f1"


def test_unified_by_index_and_last() -> None:
    session = _mixed()

    by_index = navigate_to_unified_tab_by_index(session, 1)
    already = navigate_to_unified_tab_by_index(session, 0)
    last = navigate_to_last_unified_tab(session)

    assert by_index is not None and by_index.id == "f1"
    assert already is not None and already.session is session
    assert last is not None and last.id == "a2"
    assert navigate_to_unified_tab_by_index(session, 3) is None
    assert navigate_to_last_unified_tab(Session()) is None
