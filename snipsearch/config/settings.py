"""
Configuration from environment. No inline config; model, limits and DATABASE_URL from env.
Unset or unparsable values fall back to the documented defaults.
"""

import logging
import os


def _float_env(name: str, default: float) -> float:
    """Read float from environment; return default if unset or invalid."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    """Read int from environment; return default if unset or invalid."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _log_level_env(name: str, default: str) -> str:
    """Read a logging level name from environment; return default if unset or unknown."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    level = raw.strip().upper()
    # getLevelName maps known names to their int value and anything else to a string.
    if not isinstance(logging.getLevelName(level), int):
        return default
    return level


def get_database_url() -> str | None:
    """DATABASE_URL for PostgreSQL."""
    return os.environ.get("DATABASE_URL")


# DB connection timeout (seconds) and pool bounds.
DB_TIMEOUT_SEC: float = _float_env("DB_TIMEOUT_SEC", 5.0)
DB_POOL_MIN_SIZE: int = _int_env("DB_POOL_MIN_SIZE", 1)
DB_POOL_MAX_SIZE: int = _int_env("DB_POOL_MAX_SIZE", 10)

# Embedding model. Output length is a model property; 0 disables the length check.
EMBEDDING_MODEL_NAME: str = os.environ.get(
    "EMBEDDING_MODEL_NAME", "sentence-transformers/all-MiniLM-L6-v2"
)
EMBEDDING_DIM: int = _int_env("EMBEDDING_DIM", 384)

# Search limits.
SEARCH_DEFAULT_LIMIT: int = _int_env("SEARCH_DEFAULT_LIMIT", 10)
SEARCH_MAX_LIMIT: int = _int_env("SEARCH_MAX_LIMIT", 50)
SEARCH_QUERY_MAX_LENGTH: int = _int_env("SEARCH_QUERY_MAX_LENGTH", 200)

LOG_LEVEL: str = _log_level_env("LOG_LEVEL", "INFO")
