"""
Database connection with timeout and idempotent schema setup.
Uses asyncpg; embeddings are stored as JSON text, no vector extension required.
"""

import logging

import asyncpg

from snipsearch.config.settings import (
    DB_POOL_MAX_SIZE,
    DB_POOL_MIN_SIZE,
    DB_TIMEOUT_SEC,
    get_database_url,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS teams (
    id SERIAL PRIMARY KEY,
    name VARCHAR(100) NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS team_members (
    id SERIAL PRIMARY KEY,
    team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    user_id INTEGER NOT NULL,
    joined_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    UNIQUE (team_id, user_id)
);

CREATE TABLE IF NOT EXISTS snippets (
    id SERIAL PRIMARY KEY,
    title VARCHAR(255) NOT NULL,
    code TEXT NOT NULL,
    language VARCHAR(100) NOT NULL,
    description TEXT,
    tags TEXT[] NOT NULL DEFAULT '{}',
    user_id INTEGER NOT NULL,
    team_id INTEGER REFERENCES teams(id) ON DELETE SET NULL,
    visibility VARCHAR(10) NOT NULL DEFAULT 'private'
        CHECK (visibility IN ('private', 'team', 'public')),
    embedding TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS snippets_user_id_idx ON snippets (user_id);
CREATE INDEX IF NOT EXISTS snippets_team_visibility_idx ON snippets (team_id, visibility);
CREATE INDEX IF NOT EXISTS snippets_visibility_idx ON snippets (visibility);
"""


async def get_pool() -> asyncpg.Pool | None:
    """Create a connection pool with timeout. Returns None if DATABASE_URL is not set."""
    url = get_database_url()
    if not url:
        logger.warning("DATABASE_URL not set; DB operations will be unavailable")
        return None
    try:
        # Timeout applied at connection and query level via command_timeout.
        pool = await asyncpg.create_pool(
            url,
            min_size=DB_POOL_MIN_SIZE,
            max_size=DB_POOL_MAX_SIZE,
            command_timeout=DB_TIMEOUT_SEC,
        )
        return pool
    except Exception as e:
        logger.exception("Failed to create DB pool: %s", e)
        raise


async def ensure_schema(pool: asyncpg.Pool) -> None:
    """Create tables and indexes if missing."""
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_SQL)
    logger.info("Database schema ready")
