"""
Storage layer: snippet CRUD, access-filtered candidate fetch, team membership lookups.
Every query runs on a connection acquired from the pool for that call only.
"""

import logging
from typing import Any

import asyncpg

from snipsearch.api.schemas import SnippetRecord

logger = logging.getLogger(__name__)

PUBLIC_COLUMNS = (
    "id, title, code, language, description, tags, user_id, team_id, "
    "visibility, created_at, updated_at"
)
RECORD_COLUMNS = PUBLIC_COLUMNS + ", embedding"

# Columns an update may touch; updated_at is always bumped.
UPDATABLE_COLUMNS = (
    "title",
    "code",
    "language",
    "description",
    "tags",
    "team_id",
    "visibility",
    "embedding",
)

# Same rule as access.is_search_candidate, as one disjunctive predicate.
# A NULL user id (anonymous) never matches the ownership branch.
ACCESSIBLE_PREDICATE = """
    user_id = $1::int
    OR visibility = 'public'
    OR ($2::int IS NOT NULL AND team_id = $2::int AND visibility = 'team')
"""


def _record(row: asyncpg.Record) -> SnippetRecord:
    """Map a row to a SnippetRecord; NULL tags become an empty list."""
    data = dict(row)
    data["tags"] = list(data.get("tags") or [])
    return SnippetRecord(**data)


class SnippetStore:
    """Snippet persistence over an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def insert(self, user_id: int, fields: dict[str, Any]) -> SnippetRecord:
        """Insert a row owned by user_id and return it with its generated id and timestamps."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO snippets
                    (title, code, language, description, tags, user_id, team_id, visibility, embedding)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                RETURNING {RECORD_COLUMNS}
                """,
                fields["title"],
                fields["code"],
                fields["language"],
                fields.get("description"),
                list(fields.get("tags") or []),
                user_id,
                fields.get("team_id"),
                fields["visibility"],
                fields.get("embedding"),
            )
        return _record(row)

    async def get(self, snippet_id: int) -> SnippetRecord | None:
        """Fetch one row by id, embedding included."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {RECORD_COLUMNS} FROM snippets WHERE id = $1",
                snippet_id,
            )
        return _record(row) if row is not None else None

    async def update(self, snippet_id: int, changes: dict[str, Any]) -> SnippetRecord | None:
        """Apply changes (only UPDATABLE_COLUMNS) and bump updated_at. None if the row is gone."""
        unknown = set(changes) - set(UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"not updatable: {sorted(unknown)}")
        assignments = []
        values: list[Any] = []
        for column in UPDATABLE_COLUMNS:
            if column in changes:
                value = changes[column]
                if column == "tags":
                    value = list(value or [])
                values.append(value)
                assignments.append(f"{column} = ${len(values)}")
        assignments.append("updated_at = now()")
        values.append(snippet_id)
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE snippets SET {", ".join(assignments)}
                WHERE id = ${len(values)}
                RETURNING {RECORD_COLUMNS}
                """,
                *values,
            )
        return _record(row) if row is not None else None

    async def delete(self, snippet_id: int) -> bool:
        """Delete by id. True if a row was removed."""
        async with self._pool.acquire() as conn:
            status = await conn.execute("DELETE FROM snippets WHERE id = $1", snippet_id)
        # asyncpg returns the command tag, e.g. "DELETE 1".
        return status.endswith(" 1")

    async def accessible_candidates(
        self, user_id: int | None, team_id: int | None
    ) -> list[SnippetRecord]:
        """Every row visible to the requester for search, with embeddings, in id order."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {RECORD_COLUMNS} FROM snippets WHERE {ACCESSIBLE_PREDICATE} ORDER BY id",
                user_id,
                team_id,
            )
        return [_record(row) for row in rows]

    async def is_team_member(self, team_id: int, user_id: int) -> bool:
        """True if user_id belongs to team_id."""
        async with self._pool.acquire() as conn:
            found = await conn.fetchval(
                "SELECT 1 FROM team_members WHERE team_id = $1 AND user_id = $2 LIMIT 1",
                team_id,
                user_id,
            )
        return found is not None

    async def team_for_user(self, user_id: int) -> int | None:
        """The user's team (earliest membership), or None."""
        async with self._pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT team_id FROM team_members WHERE user_id = $1 ORDER BY joined_at, id LIMIT 1",
                user_id,
            )

    async def _list(self, where: str, *args: Any) -> list[SnippetRecord]:
        """Rows matching where, without embeddings, most recently updated first."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {PUBLIC_COLUMNS} FROM snippets WHERE {where} ORDER BY updated_at DESC, id DESC",
                *args,
            )
        return [_record(row) for row in rows]

    async def list_by_user(self, user_id: int) -> list[SnippetRecord]:
        """Snippets owned by user_id."""
        return await self._list("user_id = $1", user_id)

    async def list_by_team(self, team_id: int) -> list[SnippetRecord]:
        """Team-visible snippets of team_id."""
        return await self._list("team_id = $1 AND visibility = 'team'", team_id)

    async def list_public(self) -> list[SnippetRecord]:
        """Public snippets."""
        return await self._list("visibility = 'public'")
