"""Repair the unified tab order against the tab registries."""

from __future__ import annotations

from dataclasses import replace

from .models import Session, TabKind, UnifiedTab, UnifiedTabRef


def build_unified_tabs(session: Session) -> tuple[UnifiedTab, ...]:
    """Return the canonical, fully repaired tab sequence for ``session``.

    Refs in ``unified_tab_order`` are followed in order and dropped when they
    do not resolve; AI tabs missing from the order are appended next (in
    registry order), then missing file tabs. The session itself is not
    touched.
    """

    ai_tabs = {tab.id: tab for tab in session.ai_tabs}
    file_tabs = {tab.id: tab for tab in session.file_preview_tabs}

    result: list[UnifiedTab] = []
    for ref in session.unified_tab_order:
        registry = ai_tabs if ref.kind == TabKind.AI else file_tabs
        tab = registry.pop(ref.id, None)
        if tab is not None:
            result.append(UnifiedTab(ref.kind, ref.id, tab))

    # Dicts keep insertion order, so leftovers come out in registry order.
    result.extend(UnifiedTab(TabKind.AI, tab_id, tab) for tab_id, tab in ai_tabs.items())
    result.extend(UnifiedTab(TabKind.FILE, tab_id, tab) for tab_id, tab in file_tabs.items())
    return tuple(result)


def ensure_in_unified_tab_order(
    order: tuple[UnifiedTabRef, ...],
    kind: TabKind,
    tab_id: str,
) -> tuple[UnifiedTabRef, ...]:
    """Return ``order`` itself if ``(kind, tab_id)`` is present, else a copy with it appended."""

    ref = UnifiedTabRef(kind, tab_id)
    if ref in order:
        return order
    return (*order, ref)


def repair_unified_tab_order(session: Session) -> Session:
    """Write the repaired order back into the session.

    Returns ``session`` unchanged when its order is already canonical.
    """

    repaired = tuple(tab.ref for tab in build_unified_tabs(session))
    if repaired == session.unified_tab_order:
        return session
    return replace(session, unified_tab_order=repaired)
