"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

import store
from helpers import ManualTimers


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the key-value store at a fresh database."""
    path = tmp_path / "reader.db"
    monkeypatch.setattr(store, "DB_PATH", str(path))
    asyncio.run(store.init_db())
    return path
