"""Environment-driven settings. `.env` in the project root is loaded once, on import, via python-dotenv.

Use the accessor functions instead of reading `os.environ` directly.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent.parent


def load_config() -> None:
    """Load .env from the project root. Existing env vars win over the file."""
    load_dotenv(_project_root() / ".env", override=False)


load_config()


def get_optional(key: str, default: str = "") -> str:
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_int(key: str, default: int) -> int:
    """Return env var as int, or default if missing or not a number."""
    raw = get_optional(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# --- public accessors ---


def db_path() -> str:
    """SQLite file backing the key-value store."""
    return get_optional("STORE_DB_PATH", "data/store.sqlite")


def low_stock_threshold() -> int:
    """Products with 0 < stock <= this count as low stock."""
    return get_optional_int("STORE_LOW_STOCK_THRESHOLD", 5)


def log_level() -> str:
    if get_optional("DEBUG"):
        return "DEBUG"
    return get_optional("STORE_LOG_LEVEL", "INFO").upper()


def log_file() -> Optional[str]:
    return get_optional("STORE_LOG_FILE") or None
