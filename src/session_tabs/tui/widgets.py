"""UI widgets for the session-tabs Textual TUI."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Static

from ..models import AITab, FilePreviewTab, Session, TabKind, TabState
from ..naming import display_name
from ..reconcile import build_unified_tabs
from ..tabs import get_active_file_tab, get_active_tab, is_navigable


class TabStrip(Static):
    """One-line strip listing the unified tabs of the active session."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__("", id="tab-strip", **kwargs)

    def show(self, session: Session | None, *, unread_only: bool = False) -> None:
        self.update(render_tab_strip(session, unread_only=unread_only))


class TabBody(VerticalScroll):
    """Scrollable view of the displayed tab: conversation logs or file content."""

    def __init__(self) -> None:
        super().__init__(id="tab-body")
        self._content = Static("", id="tab-content", markup=False)

    def compose(self) -> ComposeResult:
        yield self._content

    def show(self, session: Session | None) -> None:
        if session is None:
            self._content.update("")
            return

        file_tab = get_active_file_tab(session)
        if file_tab is not None:
            self._content.update(_file_text(file_tab))
        else:
            tab = get_active_tab(session)
            self._content.update(_conversation_text(tab) if tab is not None else "")
        self.scroll_end(animate=False)


def render_tab_strip(session: Session | None, *, unread_only: bool = False) -> Text:
    """Render ``session``'s unified tabs; the displayed one is highlighted."""

    strip = Text()
    if session is None:
        return strip

    displayed = (
        (TabKind.FILE, session.active_file_tab_id)
        if session.active_file_tab_id is not None
        else (TabKind.AI, session.active_tab_id)
    )
    for position, tab in enumerate(build_unified_tabs(session), start=1):
        label = f" {position}:{_label(tab.data)} "
        style = "italic" if tab.kind == TabKind.FILE else ""
        if (tab.kind, tab.id) == displayed:
            style = f"{style} bold reverse".strip()
        elif not is_navigable(tab.data, unread_only):
            style = f"{style} dim".strip()
        strip.append(label, style=style)
        strip.append("|", style="dim")
    return strip


def _label(tab: AITab | FilePreviewTab) -> str:
    if isinstance(tab, FilePreviewTab):
        return f"{tab.name}{tab.extension}"

    label = display_name(tab)
    if tab.starred:
        label = f"* {label}"
    if tab.state == TabState.BUSY:
        label = f"{label} ..."
    if tab.has_unread:
        label = f"{label} •"
    return label


def _conversation_text(tab: AITab) -> Text:
    text = Text()
    for entry in tab.logs:
        text.append(f"[{entry.source}] ", style="bold" if entry.source == "user" else "dim")
        text.append(entry.text)
        text.append("\n")
    if tab.input_value:
        text.append(f"(draft) {tab.input_value}\n", style="italic dim")
    return text


def _file_text(tab: FilePreviewTab) -> Text:
    text = Text(f"{tab.path}\n", style="bold")
    text.append(tab.edit_content if tab.edit_mode and tab.edit_content is not None else tab.content)
    return text


def generate_tab_title(prompt: str) -> str:
    """Derive a lightweight placeholder title from the first user prompt."""

    collapsed = " ".join(prompt.strip().split())
    if not collapsed:
        return "New Session"

    max_len = 32
    if len(collapsed) > max_len:
        collapsed = collapsed[:max_len].rstrip() + "..."
    return collapsed
