"""Pure transition functions over a session's AI and file-preview tabs.

Each function takes a :class:`~session_tabs.models.Session` snapshot and
returns either ``None`` (the operation does not apply) or a result carrying a
new snapshot. Inputs are never mutated. Where nothing changes, the very same
session object is handed back so callers can skip work with an ``is`` check.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from pathlib import PurePath
from typing import Any, TypeVar

from . import ids
from .models import (
    MAX_CLOSED_TAB_HISTORY,
    AITab,
    ClosedTabEntry,
    FileNavigationEntry,
    FilePreviewTab,
    InputMode,
    LogEntry,
    Session,
    TabKind,
    TabState,
    ThinkingMode,
    UnifiedClosedTabEntry,
    UnifiedTabRef,
    UsageStats,
)
from .reconcile import build_unified_tabs, ensure_in_unified_tab_order

LOG = logging.getLogger(__name__)

AUTO_RUN_FOLDER_NAME = "Auto Run Docs"

_THINKING_CYCLE = (ThinkingMode.OFF, ThinkingMode.ON, ThinkingMode.STICKY)

_T = TypeVar("_T")


# ----------------------------------------------------------------------
# Results
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CreateTabResult:
    tab: AITab
    session: Session


@dataclass(frozen=True, slots=True)
class OpenFileTabResult:
    tab: FilePreviewTab
    session: Session
    was_duplicate: bool


@dataclass(frozen=True, slots=True)
class CloseTabResult:
    closed_tab: ClosedTabEntry
    session: Session


@dataclass(frozen=True, slots=True)
class CloseFileTabResult:
    closed_tab_entry: UnifiedClosedTabEntry
    session: Session


@dataclass(frozen=True, slots=True)
class ReopenTabResult:
    # The restored tab, or the live tab that made the restore a duplicate.
    tab: AITab
    session: Session
    was_duplicate: bool


@dataclass(frozen=True, slots=True)
class ReopenUnifiedClosedTabResult:
    kind: TabKind
    tab_id: str
    session: Session
    was_duplicate: bool


@dataclass(frozen=True, slots=True)
class SetActiveTabResult:
    tab: AITab
    session: Session


@dataclass(frozen=True, slots=True)
class CreateMergedSessionResult:
    session: Session
    tab_id: str


# ----------------------------------------------------------------------
# Predicates & queries
# ----------------------------------------------------------------------
def has_draft(tab: AITab) -> bool:
    """True when the tab holds unsent text or staged images."""

    return bool(tab.input_value.strip()) or bool(tab.staged_images)


def has_active_wizard(tab: AITab) -> bool:
    return tab.wizard_state is not None and tab.wizard_state.is_active is True


def is_navigable(tab: AITab | FilePreviewTab, unread_only: bool = False) -> bool:
    """Whether ``tab`` may be selected by filtered navigation.

    File tabs always qualify. AI tabs qualify in unread-only mode when they
    are unread or carry a draft.
    """

    if not unread_only or isinstance(tab, FilePreviewTab):
        return True
    return tab.has_unread or has_draft(tab)


def get_navigable_tabs(session: Session, unread_only: bool = False) -> tuple[AITab, ...]:
    """AI tabs eligible for navigation; ``session.ai_tabs`` itself when unfiltered."""

    if not unread_only:
        return session.ai_tabs
    return tuple(tab for tab in session.ai_tabs if is_navigable(tab, True))


def get_active_tab(session: Session) -> AITab | None:
    """The active AI tab, or the first one when ``active_tab_id`` is stale."""

    if not session.ai_tabs:
        return None
    return _find(session.ai_tabs, session.active_tab_id) or session.ai_tabs[0]


def get_active_file_tab(session: Session) -> FilePreviewTab | None:
    if session.active_file_tab_id is None:
        return None
    return _find(session.file_preview_tabs, session.active_file_tab_id)


def get_write_mode_tab(session: Session) -> AITab | None:
    """The first busy tab; only one tab should be writing at a time."""

    return next((tab for tab in session.ai_tabs if tab.state == TabState.BUSY), None)


def get_busy_tabs(session: Session) -> tuple[AITab, ...]:
    return tuple(tab for tab in session.ai_tabs if tab.state == TabState.BUSY)


# ----------------------------------------------------------------------
# Creation
# ----------------------------------------------------------------------
def new_ai_tab(
    *,
    agent_session_id: str | None = None,
    logs: Iterable[LogEntry] = (),
    name: str | None = None,
    starred: bool = False,
    usage_stats: UsageStats | None = None,
    save_to_history: bool = True,
    show_thinking: ThinkingMode = ThinkingMode.OFF,
) -> AITab:
    """Build a fresh idle AI tab with a generated id."""

    return AITab(
        id=ids.generate_id(),
        agent_session_id=agent_session_id,
        name=name,
        starred=starred,
        logs=tuple(logs),
        usage_stats=usage_stats,
        created_at=ids.now_ms(),
        save_to_history=save_to_history,
        show_thinking=show_thinking,
    )


def create_tab(session: Session, **options: Any) -> CreateTabResult:
    """Append a new AI tab and make it the displayed tab.

    ``options`` are forwarded to :func:`new_ai_tab`. The unified order is
    left alone; callers append the ref themselves or rely on
    :func:`~session_tabs.reconcile.build_unified_tabs` to pick it up.
    """

    tab = new_ai_tab(**options)
    updated = replace(
        session,
        ai_tabs=(*session.ai_tabs, tab),
        active_tab_id=tab.id,
        active_file_tab_id=None,
    )
    return CreateTabResult(tab=tab, session=updated)


def create_tab_at_position(session: Session, after_tab_id: str, **options: Any) -> CreateTabResult:
    """Like :func:`create_tab` but place the tab right after ``after_tab_id``."""

    result = create_tab(session, **options)
    anchor = _index_of(session.ai_tabs, after_tab_id)
    if anchor == -1:
        return result

    tabs = list(session.ai_tabs)
    tabs.insert(anchor + 1, result.tab)
    return CreateTabResult(tab=result.tab, session=replace(result.session, ai_tabs=tuple(tabs)))


def open_file_tab(
    session: Session,
    path: str,
    content: str,
    *,
    last_modified: int = 0,
) -> OpenFileTabResult:
    """Display ``path`` in a file tab, reusing an open tab for the same path."""

    existing = next((tab for tab in session.file_preview_tabs if tab.path == path), None)
    if existing is not None:
        updated = replace(
            session,
            active_file_tab_id=existing.id,
            unified_tab_order=ensure_in_unified_tab_order(
                session.unified_tab_order, TabKind.FILE, existing.id
            ),
        )
        return OpenFileTabResult(tab=existing, session=updated, was_duplicate=True)

    pure = PurePath(path)
    name = pure.stem or pure.name
    tab = FilePreviewTab(
        id=ids.generate_id(),
        path=path,
        name=name,
        extension=pure.suffix,
        content=content,
        created_at=ids.now_ms(),
        last_modified=last_modified,
        navigation_history=(FileNavigationEntry(path=path, name=name),),
    )
    updated = replace(
        session,
        file_preview_tabs=(*session.file_preview_tabs, tab),
        active_file_tab_id=tab.id,
        unified_tab_order=(*session.unified_tab_order, UnifiedTabRef.file(tab.id)),
    )
    return OpenFileTabResult(tab=tab, session=updated, was_duplicate=False)


# ----------------------------------------------------------------------
# Closing
# ----------------------------------------------------------------------
def close_tab(
    session: Session,
    tab_id: str,
    show_unread_only: bool = False,
    *,
    skip_history: bool = False,
) -> CloseTabResult | None:
    """Close an AI tab, recording it in the legacy closed-tab history.

    When the closed tab was active, the tab to its left takes over (or the
    new first tab when it was first). With ``show_unread_only`` the same rule
    is applied among navigable tabs first. Closing the last tab leaves a
    fresh empty tab behind. ``skip_history`` is used for wizard tabs, which
    must not be restorable.
    """

    if not session.ai_tabs:
        return None
    index = _index_of(session.ai_tabs, tab_id)
    if index == -1:
        return None

    closing = session.ai_tabs[index]
    entry = ClosedTabEntry(tab=closing, index=index, closed_at=ids.now_ms())
    remaining = session.ai_tabs[:index] + session.ai_tabs[index + 1 :]
    order = tuple(
        ref for ref in session.unified_tab_order if not (ref.kind == TabKind.AI and ref.id == tab_id)
    )

    active_tab_id = session.active_tab_id
    if not remaining:
        fresh = new_ai_tab()
        remaining = (fresh,)
        active_tab_id = fresh.id
        order = (*order, UnifiedTabRef.ai(fresh.id))
    elif session.active_tab_id == tab_id:
        active_tab_id = _left_neighbour(session, remaining, index, tab_id, show_unread_only)

    history = session.closed_tab_history
    if not skip_history:
        history = _push_history(history, entry)

    updated = replace(
        session,
        ai_tabs=remaining,
        active_tab_id=active_tab_id,
        closed_tab_history=history,
        unified_tab_order=order,
    )
    return CloseTabResult(closed_tab=entry, session=updated)


def _left_neighbour(
    session: Session,
    remaining: tuple[AITab, ...],
    index: int,
    tab_id: str,
    show_unread_only: bool,
) -> str:
    if show_unread_only:
        candidates = get_navigable_tabs(replace(session, ai_tabs=remaining), True)
        if candidates:
            position = _index_of(get_navigable_tabs(session, True), tab_id)
            return candidates[min(max(0, position - 1), len(candidates) - 1)].id
    return remaining[max(0, index - 1)].id


def add_ai_tab_to_unified_history(session: Session, tab: AITab, unified_index: int) -> Session:
    """Record a closed AI tab in the unified history so either kind can be reopened."""

    entry = UnifiedClosedTabEntry(
        kind=TabKind.AI,
        tab=tab,
        unified_index=unified_index,
        closed_at=ids.now_ms(),
    )
    return replace(
        session,
        unified_closed_tab_history=_push_history(session.unified_closed_tab_history, entry),
    )


def close_file_tab(session: Session, file_tab_id: str) -> CloseFileTabResult | None:
    """Close a file preview tab and record it in the unified history.

    If it was the displayed tab, the file tab to its left in the unified
    order is displayed next (the new first file tab when it was first). When
    no file tab remains, the session falls back to its active AI tab.
    """

    closing = _find(session.file_preview_tabs, file_tab_id)
    if closing is None:
        return None

    ref = UnifiedTabRef.file(file_tab_id)
    order = session.unified_tab_order
    unified_index = order.index(ref) if ref in order else len(order)
    entry = UnifiedClosedTabEntry(
        kind=TabKind.FILE,
        tab=closing,
        unified_index=unified_index,
        closed_at=ids.now_ms(),
    )

    active_tab_id = session.active_tab_id
    active_file_tab_id = session.active_file_tab_id
    if session.active_file_tab_id == file_tab_id:
        file_ids = [tab.id for tab in build_unified_tabs(session) if tab.kind == TabKind.FILE]
        position = file_ids.index(file_tab_id)
        del file_ids[position]
        if file_ids:
            active_file_tab_id = file_ids[max(0, position - 1)]
        else:
            active_file_tab_id = None
            if not session.ai_tabs:
                active_tab_id = None

    updated = replace(
        session,
        file_preview_tabs=tuple(tab for tab in session.file_preview_tabs if tab.id != file_tab_id),
        unified_tab_order=tuple(r for r in order if r != ref),
        active_tab_id=active_tab_id,
        active_file_tab_id=active_file_tab_id,
        unified_closed_tab_history=_push_history(session.unified_closed_tab_history, entry),
    )
    return CloseFileTabResult(closed_tab_entry=entry, session=updated)


# ----------------------------------------------------------------------
# Reopening
# ----------------------------------------------------------------------
def reopen_closed_tab(session: Session) -> ReopenTabResult | None:
    """Restore the most recently closed AI tab from the legacy history.

    A live tab for the same agent conversation is activated instead of
    restoring a duplicate; the history entry is consumed either way.
    """

    if not session.closed_tab_history:
        return None

    entry, *rest = session.closed_tab_history
    remaining = tuple(rest)

    existing = _live_duplicate(session, TabKind.AI, entry.tab)
    if existing is not None:
        updated = replace(session, active_tab_id=existing.id, closed_tab_history=remaining)
        return ReopenTabResult(tab=existing, session=updated, was_duplicate=True)

    restored = replace(entry.tab, id=ids.generate_id())
    updated = replace(
        session,
        ai_tabs=_insert(session.ai_tabs, entry.index, restored),
        active_tab_id=restored.id,
        closed_tab_history=remaining,
    )
    return ReopenTabResult(tab=restored, session=updated, was_duplicate=False)


def reopen_unified_closed_tab(session: Session) -> ReopenUnifiedClosedTabResult | None:
    """Restore the most recently closed tab of either kind.

    Falls back to the legacy AI-only history when the unified one is empty.
    AI tabs are deduplicated by ``agent_session_id`` and file tabs by
    ``path``; a duplicate activates the live tab and makes sure it is
    present in the unified order.
    """

    order = session.unified_tab_order

    if session.unified_closed_tab_history:
        entry, *rest = session.unified_closed_tab_history
        session = replace(session, unified_closed_tab_history=tuple(rest))
        kind = entry.kind
        tab = entry.tab
        unified_index = min(entry.unified_index, len(order))
        ai_index = _ai_slot(order, unified_index)
    elif session.closed_tab_history:
        legacy, *rest = session.closed_tab_history
        session = replace(session, closed_tab_history=tuple(rest))
        kind = TabKind.AI
        tab = legacy.tab
        unified_index = len(order)
        ai_index = legacy.index
    else:
        return None

    existing = _live_duplicate(session, kind, tab)
    if existing is not None:
        order = ensure_in_unified_tab_order(order, kind, existing.id)
        if kind == TabKind.AI:
            updated = replace(
                session,
                active_tab_id=existing.id,
                active_file_tab_id=None,
                unified_tab_order=order,
            )
        else:
            updated = replace(session, active_file_tab_id=existing.id, unified_tab_order=order)
        return ReopenUnifiedClosedTabResult(kind, existing.id, updated, was_duplicate=True)

    new_id = ids.generate_id()
    order = _insert(order, unified_index, UnifiedTabRef(kind, new_id))
    if kind == TabKind.AI:
        restored_ai = replace(tab, id=new_id)
        updated = replace(
            session,
            ai_tabs=_insert(session.ai_tabs, ai_index, restored_ai),
            active_tab_id=new_id,
            active_file_tab_id=None,
            unified_tab_order=order,
        )
    else:
        # Breadcrumbs from before the close would point at stale locations.
        restored_file = replace(
            tab,
            id=new_id,
            edit_mode=False,
            edit_content=None,
            navigation_history=(
                FileNavigationEntry(path=tab.path, name=tab.name, scroll_top=tab.scroll_top),
            ),
            navigation_index=0,
        )
        updated = replace(
            session,
            file_preview_tabs=(*session.file_preview_tabs, restored_file),
            active_file_tab_id=new_id,
            unified_tab_order=order,
        )
    return ReopenUnifiedClosedTabResult(kind, new_id, updated, was_duplicate=False)


def _live_duplicate(
    session: Session, kind: TabKind, tab: AITab | FilePreviewTab
) -> AITab | FilePreviewTab | None:
    if kind == TabKind.AI:
        if tab.agent_session_id is None:
            return None
        index = _index_by(session.ai_tabs, lambda t: t.agent_session_id)
        return index.get(tab.agent_session_id)
    return _index_by(session.file_preview_tabs, lambda t: t.path).get(tab.path)


def _ai_slot(order: tuple[UnifiedTabRef, ...], unified_index: int) -> int:
    """Registry position matching a unified position: AI refs before it."""

    return sum(1 for ref in order[:unified_index] if ref.kind == TabKind.AI)


# ----------------------------------------------------------------------
# Selection
# ----------------------------------------------------------------------
def set_active_tab(session: Session, tab_id: str) -> SetActiveTabResult | None:
    """Display the AI tab ``tab_id``, dismissing any displayed file tab."""

    tab = _find(session.ai_tabs, tab_id)
    if tab is None:
        return None
    if session.active_tab_id == tab_id and session.active_file_tab_id is None:
        return SetActiveTabResult(tab=tab, session=session)
    return SetActiveTabResult(
        tab=tab,
        session=replace(session, active_tab_id=tab_id, active_file_tab_id=None),
    )


def select_file_tab(session: Session, file_tab_id: str) -> Session | None:
    """Display the file tab ``file_tab_id``; ``active_tab_id`` is kept for returning."""

    if _find(session.file_preview_tabs, file_tab_id) is None:
        return None
    if session.active_file_tab_id == file_tab_id:
        return session
    return replace(session, active_file_tab_id=file_tab_id)


# ----------------------------------------------------------------------
# Metadata edits
# ----------------------------------------------------------------------
def update_ai_tab(session: Session, tab_id: str, **changes: Any) -> Session:
    tabs = _replace_item(session.ai_tabs, tab_id, changes)
    return session if tabs is None else replace(session, ai_tabs=tabs)


def update_file_tab(session: Session, file_tab_id: str, **changes: Any) -> Session:
    tabs = _replace_item(session.file_preview_tabs, file_tab_id, changes)
    return session if tabs is None else replace(session, file_preview_tabs=tabs)


def toggle_starred(session: Session, tab_id: str) -> Session:
    tab = _find(session.ai_tabs, tab_id)
    if tab is None:
        return session
    return update_ai_tab(session, tab_id, starred=not tab.starred)


def mark_unread(session: Session, tab_id: str, unread: bool = True) -> Session:
    return update_ai_tab(session, tab_id, has_unread=unread)


def rename_tab(session: Session, tab_id: str, name: str | None) -> Session:
    return update_ai_tab(session, tab_id, name=name or None)


def toggle_read_only(session: Session, tab_id: str) -> Session:
    tab = _find(session.ai_tabs, tab_id)
    if tab is None:
        return session
    return update_ai_tab(session, tab_id, read_only_mode=not tab.read_only_mode)


def toggle_save_to_history(session: Session, tab_id: str) -> Session:
    tab = _find(session.ai_tabs, tab_id)
    if tab is None:
        return session
    return update_ai_tab(session, tab_id, save_to_history=not tab.save_to_history)


def cycle_thinking_mode(session: Session, tab_id: str) -> Session:
    """Advance the thinking display mode: off -> on -> sticky -> off."""

    tab = _find(session.ai_tabs, tab_id)
    if tab is None:
        return session
    current = _THINKING_CYCLE.index(tab.show_thinking)
    return update_ai_tab(
        session, tab_id, show_thinking=_THINKING_CYCLE[(current + 1) % len(_THINKING_CYCLE)]
    )


def toggle_file_tab_edit_mode(session: Session, file_tab_id: str) -> Session:
    tab = _find(session.file_preview_tabs, file_tab_id)
    if tab is None:
        return session
    return update_file_tab(session, file_tab_id, edit_mode=not tab.edit_mode)


def reorder_tabs(session: Session, from_index: int, to_index: int) -> Session:
    tabs = _move(session.ai_tabs, from_index, to_index)
    return session if tabs is None else replace(session, ai_tabs=tabs)


def reorder_unified_tabs(session: Session, from_index: int, to_index: int) -> Session:
    order = _move(session.unified_tab_order, from_index, to_index)
    return session if order is None else replace(session, unified_tab_order=order)


def add_log_to_tab(session: Session, entry: LogEntry, tab_id: str | None = None) -> Session:
    """Append ``entry`` to ``tab_id``'s logs, or to the active tab's.

    A target that cannot be resolved means the session has drifted out of
    shape; that is logged and the session is returned unchanged.
    """

    target = _find(session.ai_tabs, tab_id) if tab_id is not None else get_active_tab(session)
    if target is None:
        LOG.error(
            "No target tab for log entry in session %s (tab=%s, ai_tabs=%d)",
            session.id,
            tab_id,
            len(session.ai_tabs),
        )
        return session
    return update_ai_tab(session, target.id, logs=(*target.logs, entry))


# ----------------------------------------------------------------------
# Merged sessions
# ----------------------------------------------------------------------
def create_merged_session(
    *,
    name: str,
    project_root: str,
    tool_type: str,
    merged_logs: Iterable[LogEntry],
    usage_stats: UsageStats | None = None,
    group_id: str | None = None,
    save_to_history: bool = True,
    show_thinking: ThinkingMode = ThinkingMode.OFF,
) -> CreateMergedSessionResult:
    """Build a new session whose single tab carries previously merged context."""

    tab = new_ai_tab(
        logs=merged_logs,
        usage_stats=usage_stats,
        save_to_history=save_to_history,
        show_thinking=show_thinking,
    )
    ready = LogEntry(
        id=ids.generate_id(),
        timestamp=ids.now_ms(),
        source="system",
        text="Merged Context Session Ready.",
    )
    session = Session(
        id=ids.generate_id(),
        name=name,
        tool_type=tool_type,
        cwd=project_root,
        project_root=project_root,
        group_id=group_id,
        input_mode=InputMode.TERMINAL if tool_type == "terminal" else InputMode.AI,
        shell_logs=(ready,),
        auto_run_folder_path=os.path.join(project_root, AUTO_RUN_FOLDER_NAME),
        ai_tabs=(tab,),
        active_tab_id=tab.id,
        unified_tab_order=(UnifiedTabRef.ai(tab.id),),
    )
    return CreateMergedSessionResult(session=session, tab_id=tab.id)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _find(tabs: tuple[_T, ...], tab_id: str | None) -> _T | None:
    return next((tab for tab in tabs if tab.id == tab_id), None)  # type: ignore[attr-defined]


def _index_of(tabs: tuple[Any, ...], tab_id: str | None) -> int:
    for i, tab in enumerate(tabs):
        if tab.id == tab_id:
            return i
    return -1


def _index_by(tabs: tuple[_T, ...], key: Callable[[_T], str | None]) -> dict[str, _T]:
    # First tab wins when a key is (wrongly) shared.
    index: dict[str, _T] = {}
    for tab in tabs:
        value = key(tab)
        if value is not None:
            index.setdefault(value, tab)
    return index


def _insert(items: tuple[_T, ...], index: int, item: _T) -> tuple[_T, ...]:
    index = min(index, len(items))
    return (*items[:index], item, *items[index:])


def _push_history(history: tuple[_T, ...], entry: _T) -> tuple[_T, ...]:
    return (entry, *history)[:MAX_CLOSED_TAB_HISTORY]


def _replace_item(tabs: tuple[_T, ...], tab_id: str, changes: dict[str, Any]) -> tuple[_T, ...] | None:
    index = _index_of(tabs, tab_id)
    if index == -1:
        return None
    updated = list(tabs)
    updated[index] = replace(tabs[index], **changes)  # type: ignore[type-var]
    return tuple(updated)


def _move(items: tuple[_T, ...], from_index: int, to_index: int) -> tuple[_T, ...] | None:
    if not (0 <= from_index < len(items) and 0 <= to_index < len(items)):
        return None
    moved = list(items)
    moved.insert(to_index, moved.pop(from_index))
    return tuple(moved)
