"""Unified AI/file tab model for multi-session agent supervisors."""

from __future__ import annotations

from .models import (
    MAX_CLOSED_TAB_HISTORY,
    AITab,
    FilePreviewTab,
    Session,
    TabKind,
    UnifiedTabRef,
)

__all__ = [
    "MAX_CLOSED_TAB_HISTORY",
    "AITab",
    "FilePreviewTab",
    "Session",
    "TabKind",
    "UnifiedTabRef",
    "__version__",
]

__version__ = "0.1.0"
