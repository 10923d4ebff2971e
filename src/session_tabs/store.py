"""Mutable holder for the sessions of a workspace.

The tab functions are pure; :class:`SessionStore` owns the one mutable slot,
applies transitions to the active session and tells subscribers when a new
snapshot was installed. Unchanged snapshots (same object) are not announced.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from . import navigation, tabs
from .models import LogEntry, Session, TabKind
from .reconcile import ensure_in_unified_tab_order, repair_unified_tab_order

LOG = logging.getLogger(__name__)

Listener = Callable[[Session], None]


class SessionStore:
    """Tracks sessions, the active one, and installs tab transitions."""

    def __init__(self, *, unread_only: bool = False) -> None:
        self._sessions: dict[str, Session] = {}
        self._session_order: list[str] = []
        self._active: str | None = None
        self._listeners: list[Listener] = []
        # Applied to close and navigation actions.
        self.unread_only = unread_only

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def add_session(self, session: Session) -> Session:
        if session.id in self._sessions:
            raise ValueError(f"Session {session.id!r} already exists")
        session = repair_unified_tab_order(session)
        self._sessions[session.id] = session
        self._session_order.append(session.id)
        if self._active is None:
            self._active = session.id
        LOG.info("Session %s added (%d AI tabs)", session.id, len(session.ai_tabs))
        self._notify(session)
        return session

    def remove_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        if session_id in self._session_order:
            self._session_order.remove(session_id)
        if self._active == session_id:
            self._active = self._session_order[0] if self._session_order else None

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def all_sessions(self) -> list[Session]:
        return [self._sessions[sid] for sid in self._session_order]

    # ------------------------------------------------------------------
    # Active session
    # ------------------------------------------------------------------
    def set_active_session(self, session_id: str) -> None:
        if session_id in self._sessions:
            self._active = session_id

    def cycle_session(self, *, forward: bool = True) -> None:
        if not self._session_order or self._active is None:
            return
        current_idx = self._session_order.index(self._active)
        step = 1 if forward else -1
        self._active = self._session_order[(current_idx + step) % len(self._session_order)]

    @property
    def active_session(self) -> Session | None:
        """The active session, falling back to the first one."""

        if self._active is not None and self._active in self._sessions:
            return self._sessions[self._active]
        if self._session_order:
            return self._sessions[self._session_order[0]]
        return None

    # ------------------------------------------------------------------
    # Snapshots & subscribers
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unregisters it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def install(self, session: Session) -> bool:
        """Store ``session`` in place of the snapshot with the same id.

        Returns False when the snapshot is unknown or identical to the stored
        one.
        """

        current = self._sessions.get(session.id)
        if current is None or current is session:
            return False
        self._sessions[session.id] = session
        self._notify(session)
        return True

    def apply(self, transform: Callable[..., Session], *args: Any, **kwargs: Any) -> Session | None:
        """Run ``transform(active_session, *args, **kwargs)`` and install the result."""

        session = self.active_session
        if session is None:
            return None
        updated = transform(session, *args, **kwargs)
        self.install(updated)
        return updated

    def _notify(self, session: Session) -> None:
        for listener in list(self._listeners):
            listener(session)

    # ------------------------------------------------------------------
    # Tab actions on the active session
    # ------------------------------------------------------------------
    def create_tab(self, **options: Any) -> tabs.CreateTabResult | None:
        session = self.active_session
        if session is None:
            return None
        result = tabs.create_tab(session, **options)
        order = ensure_in_unified_tab_order(
            result.session.unified_tab_order, TabKind.AI, result.tab.id
        )
        updated = replace(result.session, unified_tab_order=order)
        self.install(updated)
        return tabs.CreateTabResult(tab=result.tab, session=updated)

    def close_tab(self, tab_id: str, *, skip_history: bool = False) -> tabs.CloseTabResult | None:
        """Close an AI tab, recording it in the unified closed-tab history only."""

        session = self.active_session
        if session is None:
            return None
        result = tabs.close_tab(session, tab_id, self.unread_only, skip_history=True)
        if result is None:
            return None

        updated = result.session
        if not skip_history:
            unified_index = next(
                (
                    i
                    for i, ref in enumerate(session.unified_tab_order)
                    if ref.kind == TabKind.AI and ref.id == tab_id
                ),
                len(session.unified_tab_order),
            )
            updated = tabs.add_ai_tab_to_unified_history(
                updated, result.closed_tab.tab, unified_index
            )
        LOG.debug("Closed AI tab %s in session %s", tab_id, session.id)
        self.install(updated)
        return result

    def close_file_tab(self, file_tab_id: str) -> tabs.CloseFileTabResult | None:
        return self._run(tabs.close_file_tab, file_tab_id)

    def reopen_closed_tab(self) -> tabs.ReopenUnifiedClosedTabResult | None:
        result = self._run(tabs.reopen_unified_closed_tab)
        if result is not None:
            LOG.debug(
                "Reopened %s tab %s (duplicate=%s)",
                result.kind.value,
                result.tab_id,
                result.was_duplicate,
            )
        return result

    def select_tab(self, tab_id: str) -> tabs.SetActiveTabResult | None:
        return self._run(tabs.set_active_tab, tab_id)

    def select_file_tab(self, file_tab_id: str) -> Session | None:
        session = self.active_session
        if session is None:
            return None
        updated = tabs.select_file_tab(session, file_tab_id)
        if updated is not None:
            self.install(updated)
        return updated

    def open_file_tab(
        self, path: str, content: str, *, last_modified: int = 0
    ) -> tabs.OpenFileTabResult | None:
        return self._run(tabs.open_file_tab, path, content, last_modified=last_modified)

    def navigate_next(self) -> navigation.NavigateToUnifiedTabResult | None:
        return self._run(navigation.navigate_to_next_unified_tab, self.unread_only)

    def navigate_prev(self) -> navigation.NavigateToUnifiedTabResult | None:
        return self._run(navigation.navigate_to_prev_unified_tab, self.unread_only)

    def navigate_to_index(self, index: int) -> navigation.NavigateToUnifiedTabResult | None:
        return self._run(navigation.navigate_to_unified_tab_by_index, index, self.unread_only)

    def navigate_to_last(self) -> navigation.NavigateToUnifiedTabResult | None:
        return self._run(navigation.navigate_to_last_unified_tab, self.unread_only)

    def add_log(self, entry: LogEntry, tab_id: str | None = None) -> Session | None:
        return self.apply(tabs.add_log_to_tab, entry, tab_id)

    def _run(self, transition: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Apply a transition returning ``result.session`` (or None) to the active session."""

        session = self.active_session
        if session is None:
            return None
        result = transition(session, *args, **kwargs)
        if result is None:
            return None
        self.install(result.session)
        return result
