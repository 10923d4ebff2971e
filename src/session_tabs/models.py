"""Immutable data model for sessions and their AI/file tabs.

Every type here is a frozen dataclass and every sequence is a tuple, so the
transition functions in :mod:`session_tabs.tabs` and
:mod:`session_tabs.navigation` can share structure between snapshots and rely
on object identity to signal "nothing changed".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

# Closed-tab history buffers never grow past this many entries.
MAX_CLOSED_TAB_HISTORY = 25


class TabKind(str, Enum):
    """Which registry a unified tab reference points into."""

    AI = "ai"
    FILE = "file"


class TabState(str, Enum):
    IDLE = "idle"
    BUSY = "busy"


class ThinkingMode(str, Enum):
    """How reasoning output is displayed for an AI tab."""

    OFF = "off"
    ON = "on"
    STICKY = "sticky"


class InputMode(str, Enum):
    AI = "ai"
    TERMINAL = "terminal"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One line of conversation or shell output."""

    id: str
    timestamp: int
    # "user" | "ai" | "system" | "stdout" | "stderr" ...
    source: str
    text: str
    images: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class UsageStats:
    """Token and cost accounting carried by an AI tab."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0
    total_cost_usd: float = 0.0
    context_window: int = 0


@dataclass(frozen=True, slots=True)
class WizardState:
    """Progress of a guided setup wizard running inside an AI tab."""

    is_active: bool = False
    mode: str | None = None
    current_step: int = 0


@dataclass(frozen=True, slots=True)
class AITab:
    """A tab backed by an agent conversation."""

    id: str
    # Two live tabs with the same non-null agent_session_id are the same
    # conversation and must never coexist.
    agent_session_id: str | None = None
    # None means "show an auto-generated label".
    name: str | None = None
    starred: bool = False
    logs: tuple[LogEntry, ...] = ()
    input_value: str = ""
    staged_images: tuple[str, ...] = ()
    state: TabState = TabState.IDLE
    has_unread: bool = False
    wizard_state: WizardState | None = None
    usage_stats: UsageStats | None = None
    created_at: int = 0
    save_to_history: bool = True
    show_thinking: ThinkingMode = ThinkingMode.OFF
    read_only_mode: bool = False


@dataclass(frozen=True, slots=True)
class FileNavigationEntry:
    """A location previously visited from within a file preview tab."""

    path: str
    name: str
    scroll_top: int = 0


@dataclass(frozen=True, slots=True)
class FilePreviewTab:
    """A tab displaying file content, keyed by filesystem path."""

    id: str
    path: str
    name: str
    extension: str = ""
    content: str = ""
    scroll_top: int = 0
    search_query: str = ""
    edit_mode: bool = False
    edit_content: str | None = None
    created_at: int = 0
    last_modified: int = 0
    navigation_history: tuple[FileNavigationEntry, ...] = ()
    navigation_index: int = 0


Tab = Union[AITab, FilePreviewTab]


@dataclass(frozen=True, slots=True)
class UnifiedTabRef:
    """Pointer into one of the session registries."""

    kind: TabKind
    id: str

    @classmethod
    def ai(cls, tab_id: str) -> UnifiedTabRef:
        return cls(TabKind.AI, tab_id)

    @classmethod
    def file(cls, tab_id: str) -> UnifiedTabRef:
        return cls(TabKind.FILE, tab_id)


@dataclass(frozen=True, slots=True)
class UnifiedTab:
    """A unified reference resolved against its registry."""

    kind: TabKind
    id: str
    data: Tab

    @property
    def ref(self) -> UnifiedTabRef:
        return UnifiedTabRef(self.kind, self.id)


@dataclass(frozen=True, slots=True)
class ClosedTabEntry:
    """Legacy AI-only history entry."""

    tab: AITab
    # Position in ai_tabs at close time.
    index: int
    closed_at: int


@dataclass(frozen=True, slots=True)
class UnifiedClosedTabEntry:
    """History entry for a closed tab of either kind."""

    kind: TabKind
    tab: Tab
    # Position in unified_tab_order at close time.
    unified_index: int
    closed_at: int


@dataclass(frozen=True, slots=True)
class Session:
    """One project workspace: its tabs, tab order and close history."""

    id: str = ""
    name: str = ""
    tool_type: str = "claude-code"
    state: TabState = TabState.IDLE
    cwd: str = ""
    project_root: str = ""
    group_id: str | None = None
    input_mode: InputMode = InputMode.AI
    shell_logs: tuple[LogEntry, ...] = ()
    auto_run_folder_path: str | None = None

    ai_tabs: tuple[AITab, ...] = ()
    file_preview_tabs: tuple[FilePreviewTab, ...] = ()
    active_tab_id: str | None = None
    # When set, the file tab is displayed instead of the active AI tab.
    active_file_tab_id: str | None = None
    unified_tab_order: tuple[UnifiedTabRef, ...] = ()
    closed_tab_history: tuple[ClosedTabEntry, ...] = ()
    unified_closed_tab_history: tuple[UnifiedClosedTabEntry, ...] = ()
