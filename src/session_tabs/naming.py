"""Tab label helpers."""

from __future__ import annotations

import re

from .models import AITab

_GITHUB_URL = r"github\.com/[^/\s]+/[^/\s]+/{kind}/(\d+)"

# Ordered by priority: URL forms win over tickets and inline references.
_QUICK_NAME_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(_GITHUB_URL.format(kind="pull")), "PR #{}"),
    (re.compile(_GITHUB_URL.format(kind="issues")), "Issue #{}"),
    (re.compile(_GITHUB_URL.format(kind="discussions")), "Discussion #{}"),
    (re.compile(r"\b([A-Z][A-Z0-9]+-\d+)\b"), "{}"),
    (re.compile(r"\b(?:PR|pull request)\s*#(\d+)\b", re.IGNORECASE), "PR #{}"),
    (re.compile(r"\bissue\s*#(\d+)\b", re.IGNORECASE), "Issue #{}"),
)


def extract_quick_tab_name(message: str) -> str | None:
    """Derive a short tab label from references in ``message``.

    Recognises GitHub pull request, issue and discussion URLs, ticket keys
    such as ``PROJ-1234`` and inline ``PR #12`` / ``issue #7`` mentions.
    Returns ``None`` when nothing matches so the caller can fall back to a
    slower naming strategy.
    """

    for pattern, template in _QUICK_NAME_PATTERNS:
        match = pattern.search(message)
        if match:
            return template.format(match.group(1))
    return None


def get_initial_rename_value(tab: AITab) -> str:
    """Value to pre-fill in a rename prompt; empty for auto-generated names."""

    return tab.name or ""


def display_name(tab: AITab, limit: int = 24) -> str:
    """Label shown in the tab strip for an AI tab."""

    if tab.name:
        label = tab.name
    elif tab.agent_session_id:
        # First UUID octet, upper-cased.
        label = tab.agent_session_id.split("-", 1)[0].upper()
    else:
        label = "New Session"

    if len(label) <= limit:
        return label
    return label[: limit - 3].rstrip() + "..."
