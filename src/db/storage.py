# key-value persistence: JSON values under string keys
from __future__ import annotations

import json
from typing import Any

from db.database import connect
from utils.logger import get_logger

_logger = get_logger(__name__)


async def get_value(key: str, fallback: Any = None) -> Any:
    """
    Return the decoded value stored under `key`.
    Falls back to `fallback` if the key is absent or the stored text is not valid JSON.
    """
    async with connect() as conn:
        cur = await conn.execute("SELECT value FROM kv WHERE key = ?;", (key,))
        row = await cur.fetchone()
        await cur.close()
    if row is None:
        return fallback
    try:
        return json.loads(row[0])
    except (TypeError, ValueError):
        _logger.warning(f"Stored value for '{key}' is not valid JSON, using fallback.")
        return fallback


async def set_value(key: str, value: Any) -> None:
    """Serialize `value` and store it under `key`, replacing any previous value."""
    payload = json.dumps(value)
    async with connect() as conn:
        await conn.execute(
            "INSERT INTO kv(key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value;",
            (key, payload),
        )
        await conn.commit()


async def remove_value(key: str) -> None:
    async with connect() as conn:
        await conn.execute("DELETE FROM kv WHERE key = ?;", (key,))
        await conn.commit()
