"""Textual TUI driving the unified tab model of one or more sessions."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from pathlib import Path

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import Footer, Input, Log

from .. import ids
from ..log import LOG_FORMAT, configure_logging
from ..models import LogEntry, Session
from ..naming import extract_quick_tab_name
from ..store import SessionStore
from ..tabs import create_tab, get_active_tab, has_active_wizard, rename_tab
from .widgets import TabBody, TabStrip, generate_tab_title

LOG = logging.getLogger(__name__)


@dataclass(slots=True)
class AppConfig:
    project_root: Path
    tool_type: str = "claude-code"
    unread_only: bool = False
    show_log_panel: bool = False


class _TextualLogHandler(logging.Handler):
    """Logging handler that forwards records into the dev Log widget."""

    def __init__(self, app: SessionTabsApp) -> None:
        super().__init__()
        self._app = app

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            message = self.format(record)
        except Exception:  # pragma: no cover
            return
        self._app._submit_dev_log_line(message)


class SessionTabsApp(App[None]):
    """Main Textual application."""

    CSS = """
    Screen {
        layout: vertical;
        background: #050301;
    }

    #tab-strip {
        height: 1;
        padding: 0 1;
        background: #080503;
        color: #d0b089;
    }

    #tab-body {
        height: 1fr;
        border: solid #2c1c0c;
        background: #0d0804;
        margin: 0 1;
        padding: 0 1;
    }

    #tab-input {
        height: 3;
        border: solid #f28c28;
        padding: 0 1;
        margin: 0 1 1 1;
        background: #050301;
    }

    #dev-log {
        height: 8;
        border: solid #2c1c0c;
        background: #050301;
        margin: 0 1 1 1;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+t", "new_tab", "New tab", priority=True),
        Binding("ctrl+w", "close_tab", "Close tab", priority=True),
        Binding("ctrl+r", "reopen_tab", "Reopen tab", priority=True),
        Binding("ctrl+pagedown", "next_tab", "Next tab", priority=True),
        Binding("ctrl+pageup", "prev_tab", "Previous tab", priority=True),
        Binding("ctrl+u", "toggle_unread_only", "Unread only", priority=True),
        Binding("ctrl+n", "new_session", "New session"),
        Binding("ctrl+tab", "cycle_session", "Next session"),
        *(Binding(f"f{n}", f"jump_to_tab({n - 1})", show=False) for n in range(1, 10)),
        Binding("f10", "last_tab", "Last tab", show=False),
    ]

    def __init__(self, config: AppConfig, store: SessionStore | None = None) -> None:
        super().__init__()
        self._config = config
        self._store = store or SessionStore(unread_only=config.unread_only)
        self._session_counter = 0
        self._log_handler: _TextualLogHandler | None = None
        self._dev_log_widget: Log | None = None
        self._dev_log_buffer: deque[str] = deque(maxlen=2000)
        self._unsubscribe = self._store.subscribe(self._on_session_changed)

    @property
    def store(self) -> SessionStore:
        return self._store

    # ------------------------------------------------------------------
    # Textual lifecycle
    # ------------------------------------------------------------------
    async def on_mount(self) -> None:
        configure_logging()
        if self._config.show_log_panel:
            self._attach_log_handler()
        if self._store.active_session is None:
            self._new_session()
        self._refresh_view()
        self._focus_input()

    async def on_ready(self) -> None:
        if not self._config.show_log_panel:
            return
        try:
            self._dev_log_widget = self.query_one("#dev-log", Log)
        except NoMatches:
            self._dev_log_widget = None
        else:
            self._flush_dev_log_buffer()

    async def on_unmount(self) -> None:
        self._unsubscribe()
        if self._log_handler is not None:
            logging.getLogger().removeHandler(self._log_handler)
            self._log_handler = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield TabStrip()
            yield TabBody()
            yield Input(placeholder="Message, or /open <path>", id="tab-input")
            if self._config.show_log_panel:
                log_widget = Log(id="dev-log")
                log_widget.border_title = "Logs"
                yield log_widget
        yield Footer()

    # ------------------------------------------------------------------
    # Developer log panel
    # ------------------------------------------------------------------
    def _attach_log_handler(self) -> None:
        if self._log_handler is not None:
            return

        handler = _TextualLogHandler(self)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)
        root_logger.addHandler(handler)
        self._log_handler = handler

    def _submit_dev_log_line(self, line: str) -> None:
        widget = self._dev_log_widget
        if widget is None:
            self._dev_log_buffer.append(line)
            return
        widget.write_line(line)

    def _flush_dev_log_buffer(self) -> None:
        widget = self._dev_log_widget
        if widget is None:
            return
        while self._dev_log_buffer:
            widget.write_line(self._dev_log_buffer.popleft())

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------
    def _new_session(self) -> Session:
        self._session_counter += 1
        root = self._config.project_root
        seed = Session(
            id=ids.generate_id(),
            name=f"session-{self._session_counter}",
            tool_type=self._config.tool_type,
            cwd=str(root),
            project_root=str(root),
        )
        session = self._store.add_session(create_tab(seed).session)
        self._store.set_active_session(session.id)
        LOG.info("Session %s ready (root=%s)", session.name, root)
        return session

    def _on_session_changed(self, session: Session) -> None:
        active = self._store.active_session
        if active is not None and active.id == session.id:
            self._refresh_view()

    def _refresh_view(self) -> None:
        session = self._store.active_session
        try:
            self.query_one(TabStrip).show(session, unread_only=self._store.unread_only)
            self.query_one(TabBody).show(session)
        except NoMatches:
            # Not composed yet; on_mount refreshes once widgets exist.
            return
        self.sub_title = session.name if session is not None else ""

    def _focus_input(self) -> None:
        try:
            self.query_one("#tab-input", Input).focus()
        except NoMatches:
            return

    # ------------------------------------------------------------------
    # Actions / key bindings
    # ------------------------------------------------------------------
    def action_new_tab(self) -> None:
        self._store.create_tab()

    def action_close_tab(self) -> None:
        session = self._store.active_session
        if session is None:
            return
        if session.active_file_tab_id is not None:
            self._store.close_file_tab(session.active_file_tab_id)
            return
        tab = get_active_tab(session)
        if tab is not None:
            # Wizard tabs are not restorable.
            self._store.close_tab(tab.id, skip_history=has_active_wizard(tab))

    def action_reopen_tab(self) -> None:
        result = self._store.reopen_closed_tab()
        if result is None:
            self.notify("No closed tabs to reopen")
        elif result.was_duplicate:
            self.notify("Already open; switched to the existing tab")

    def action_next_tab(self) -> None:
        self._store.navigate_next()

    def action_prev_tab(self) -> None:
        self._store.navigate_prev()

    def action_jump_to_tab(self, index: int) -> None:
        self._store.navigate_to_index(index)

    def action_last_tab(self) -> None:
        self._store.navigate_to_last()

    def action_toggle_unread_only(self) -> None:
        self._store.unread_only = not self._store.unread_only
        self.notify("Unread-only navigation " + ("on" if self._store.unread_only else "off"))
        self._refresh_view()

    def action_new_session(self) -> None:
        self._new_session()
        self._refresh_view()

    def action_cycle_session(self) -> None:
        self._store.cycle_session(forward=True)
        self._refresh_view()

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------
    @on(Input.Submitted, "#tab-input")
    def _on_prompt_submitted(self, event: Input.Submitted) -> None:
        prompt = event.value.strip()
        if not prompt:
            return
        event.input.value = ""

        if prompt.startswith("/open "):
            self._open_file(Path(prompt[len("/open ") :].strip()).expanduser())
            return

        session = self._store.active_session
        if session is None:
            return
        tab = get_active_tab(session)
        if tab is None:
            return

        entry = LogEntry(id=ids.generate_id(), timestamp=ids.now_ms(), source="user", text=prompt)
        self._store.add_log(entry, tab.id)
        if tab.name is None:
            name = extract_quick_tab_name(prompt) or generate_tab_title(prompt)
            self._store.apply(rename_tab, tab.id, name)
        LOG.info("Prompt submitted in %s: %s", session.name, self._truncate(prompt))

    def _open_file(self, path: Path) -> None:
        if not path.is_absolute():
            path = self._config.project_root / path
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
            last_modified = int(path.stat().st_mtime * 1000)
        except OSError as exc:
            LOG.warning("Could not open %s: %s", path, exc)
            self.notify(f"Cannot open {path}: {exc.strerror or exc}", severity="error")
            return
        self._store.open_file_tab(str(path), content, last_modified=last_modified)

    @staticmethod
    def _truncate(value: str, limit: int = 96) -> str:
        if len(value) <= limit:
            return value
        return value[: limit - 3].rstrip() + "..."
