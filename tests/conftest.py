from __future__ import annotations

import itertools

import pytest

from session_tabs import ids

FIXED_NOW = 1_700_000_000_000


@pytest.fixture(autouse=True)
def sequential_ids(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin generated ids to gen-1, gen-2, ... and freeze the clock."""

    counter = itertools.count(1)
    monkeypatch.setattr(ids, "generate_id", lambda: f"gen-{next(counter)}")
    monkeypatch.setattr(ids, "now_ms", lambda: FIXED_NOW)
