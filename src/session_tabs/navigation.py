"""Keyboard-style navigation across a session's tabs.

Two flavours share one shape: the AI-only functions walk ``ai_tabs``, the
unified ones walk the repaired cross-kind order from
:func:`~session_tabs.reconcile.build_unified_tabs`. With ``unread_only`` set,
AI tabs that are read and have no draft are skipped; file tabs always stay
reachable.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from .models import Session, TabKind, UnifiedTab
from .reconcile import build_unified_tabs
from .tabs import SetActiveTabResult, get_navigable_tabs, is_navigable


@dataclass(frozen=True, slots=True)
class NavigateToUnifiedTabResult:
    kind: TabKind
    id: str
    session: Session


def _cycle(count: int, current: int, step: int) -> int | None:
    """Index reached from ``current`` by moving ``step`` with wrap-around.

    ``current == -1`` means the active tab is not in the list: moving forward
    lands on the first element, moving back on the last.
    """

    if count == 0:
        return None
    if current == -1:
        return 0 if step > 0 else count - 1
    if count < 2:
        return None
    return (current + step) % count


# ----------------------------------------------------------------------
# AI tabs only
# ----------------------------------------------------------------------
def _navigate_ai(session: Session, unread_only: bool, step: int) -> SetActiveTabResult | None:
    if len(session.ai_tabs) < 2:
        return None

    tabs = get_navigable_tabs(session, unread_only)
    current = next((i for i, tab in enumerate(tabs) if tab.id == session.active_tab_id), -1)
    target = _cycle(len(tabs), current, step)
    if target is None:
        return None

    tab = tabs[target]
    return SetActiveTabResult(tab=tab, session=replace(session, active_tab_id=tab.id))


def navigate_to_next_tab(session: Session, unread_only: bool = False) -> SetActiveTabResult | None:
    return _navigate_ai(session, unread_only, 1)


def navigate_to_prev_tab(session: Session, unread_only: bool = False) -> SetActiveTabResult | None:
    return _navigate_ai(session, unread_only, -1)


def navigate_to_tab_by_index(
    session: Session,
    index: int,
    unread_only: bool = False,
) -> SetActiveTabResult | None:
    """Jump to the ``index``-th navigable AI tab (Cmd+1..Cmd+8 style)."""

    tabs = get_navigable_tabs(session, unread_only)
    if not 0 <= index < len(tabs):
        return None

    tab = tabs[index]
    if session.active_tab_id == tab.id:
        return SetActiveTabResult(tab=tab, session=session)
    return SetActiveTabResult(tab=tab, session=replace(session, active_tab_id=tab.id))


def navigate_to_last_tab(session: Session, unread_only: bool = False) -> SetActiveTabResult | None:
    tabs = get_navigable_tabs(session, unread_only)
    if not tabs:
        return None
    return navigate_to_tab_by_index(session, len(tabs) - 1, unread_only)


# ----------------------------------------------------------------------
# Unified (AI + file) order
# ----------------------------------------------------------------------
def activate_unified_tab(session: Session, target: UnifiedTab) -> NavigateToUnifiedTabResult:
    """Display ``target``, returning the same session when it already is displayed.

    Selecting an AI tab dismisses the file tab; selecting a file tab keeps
    ``active_tab_id`` so closing the file returns to the right conversation.
    """

    if target.kind == TabKind.AI:
        if session.active_tab_id == target.id and session.active_file_tab_id is None:
            updated = session
        else:
            updated = replace(session, active_tab_id=target.id, active_file_tab_id=None)
    elif session.active_file_tab_id == target.id:
        updated = session
    else:
        updated = replace(session, active_file_tab_id=target.id)
    return NavigateToUnifiedTabResult(kind=target.kind, id=target.id, session=updated)


def _current_unified_index(session: Session, tabs: Sequence[UnifiedTab]) -> int:
    if session.active_file_tab_id is not None:
        kind, current_id = TabKind.FILE, session.active_file_tab_id
    else:
        kind, current_id = TabKind.AI, session.active_tab_id
    for i, tab in enumerate(tabs):
        if tab.kind == kind and tab.id == current_id:
            return i
    return -1


def _navigable_unified(session: Session, unread_only: bool) -> tuple[UnifiedTab, ...]:
    tabs = build_unified_tabs(session)
    if not unread_only:
        return tabs
    return tuple(tab for tab in tabs if is_navigable(tab.data, True))


def _navigate_unified(
    session: Session, unread_only: bool, step: int
) -> NavigateToUnifiedTabResult | None:
    if len(build_unified_tabs(session)) < 2:
        return None

    tabs = _navigable_unified(session, unread_only)
    target = _cycle(len(tabs), _current_unified_index(session, tabs), step)
    if target is None:
        return None
    return activate_unified_tab(session, tabs[target])


def navigate_to_next_unified_tab(
    session: Session, unread_only: bool = False
) -> NavigateToUnifiedTabResult | None:
    return _navigate_unified(session, unread_only, 1)


def navigate_to_prev_unified_tab(
    session: Session, unread_only: bool = False
) -> NavigateToUnifiedTabResult | None:
    return _navigate_unified(session, unread_only, -1)


def navigate_to_unified_tab_by_index(
    session: Session,
    index: int,
    unread_only: bool = False,
) -> NavigateToUnifiedTabResult | None:
    """Jump to the ``index``-th tab of the unified order, AI or file."""

    tabs = _navigable_unified(session, unread_only)
    if not 0 <= index < len(tabs):
        return None
    return activate_unified_tab(session, tabs[index])


def navigate_to_last_unified_tab(
    session: Session, unread_only: bool = False
) -> NavigateToUnifiedTabResult | None:
    tabs = _navigable_unified(session, unread_only)
    if not tabs:
        return None
    return navigate_to_unified_tab_by_index(session, len(tabs) - 1, unread_only)
