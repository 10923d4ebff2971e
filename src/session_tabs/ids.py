"""Identifier and clock services used by the tab transitions.

Kept in one place so tests can pin both with ``monkeypatch``.
"""

from __future__ import annotations

import time
import uuid


def generate_id() -> str:
    """Return a fresh opaque identifier."""

    return uuid.uuid4().hex


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""

    return int(time.time() * 1000)
