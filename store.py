# ABOUTME: SQLite-backed async key-value store for the document text and volume level
# ABOUTME: Read once at session start, written on every change
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

import aiosqlite

logger = logging.getLogger("speed-reader.store")

DB_PATH = "data/reader.db"

TEXT_KEY = "sr_text"
VOLUME_KEY = "sr_vol"

DEFAULT_TEXT = (
    "Welcome to Speed Reader. This application is designed to enhance your "
    "reading efficiency. Paste your content here to begin. Use the loop settings "
    "to repeat the text as many times as you like. Adjust the WPM to find your "
    "perfect reading flow."
)
DEFAULT_VOLUME = 0.7

SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT,
    updated_at TEXT
);
"""


async def init_db():
    """Create tables if they don't exist."""
    async with aiosqlite.connect(DB_PATH) as db:
        await db.executescript(SCHEMA)
        await db.commit()


async def get_value(key: str) -> str | None:
    async with aiosqlite.connect(DB_PATH) as db:
        async with db.execute("SELECT value FROM settings WHERE key = ?", (key,)) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else None


async def set_value(key: str, value: str):
    """Insert or overwrite a key."""
    now = datetime.now(timezone.utc).isoformat()
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute(
            """INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at""",
            (key, value, now),
        )
        await db.commit()


async def load_text() -> str:
    text = await get_value(TEXT_KEY)
    return text if text else DEFAULT_TEXT


async def load_volume() -> float:
    raw = await get_value(VOLUME_KEY)
    if raw is None:
        return DEFAULT_VOLUME
    try:
        level = float(raw)
    except ValueError:
        level = math.nan
    if not math.isfinite(level):
        logger.warning("Ignoring stored volume %r", raw)
        return DEFAULT_VOLUME
    return min(max(level, 0.0), 1.0)
