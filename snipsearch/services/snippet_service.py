"""
Snippet write and read flows: create/update keep the stored embedding in step with content,
point lookups and listings apply visibility rules.
Embedding failures never block a write: create stores null, update keeps the previous vector.
"""

import logging
from typing import Any, Protocol

from snipsearch.api.schemas import Snippet, SnippetCreate, SnippetRecord, SnippetUpdate
from snipsearch.services.access import can_view, needs_membership_check, owns
from snipsearch.services.canonical import snippet_to_text
from snipsearch.services.embedding import generate_embedding
from snipsearch.services.errors import EmbeddingUnavailable, InvalidTeamAssignment
from snipsearch.services.similarity import serialize_vector

logger = logging.getLogger(__name__)

# Fields the embedding is computed from; a change to any of them regenerates it.
CONTENT_FIELDS = ("title", "language", "description", "tags", "code")


class SnippetStoreLike(Protocol):
    async def insert(self, user_id: int, fields: dict[str, Any]) -> SnippetRecord: ...
    async def get(self, snippet_id: int) -> SnippetRecord | None: ...
    async def update(self, snippet_id: int, changes: dict[str, Any]) -> SnippetRecord | None: ...
    async def delete(self, snippet_id: int) -> bool: ...
    async def accessible_candidates(
        self, user_id: int | None, team_id: int | None
    ) -> list[SnippetRecord]: ...
    async def is_team_member(self, team_id: int, user_id: int) -> bool: ...
    async def team_for_user(self, user_id: int) -> int | None: ...
    async def list_by_user(self, user_id: int) -> list[SnippetRecord]: ...
    async def list_by_team(self, team_id: int) -> list[SnippetRecord]: ...
    async def list_public(self) -> list[SnippetRecord]: ...


def content_changed(existing: SnippetRecord, changes: dict[str, Any]) -> bool:
    """True if any content field present in changes differs from the stored value."""
    return any(
        field in changes and changes[field] != getattr(existing, field)
        for field in CONTENT_FIELDS
    )


async def _resolve_team_id(
    store: SnippetStoreLike, owner_id: int, visibility: str, team_id: int | None
) -> int | None:
    """Team id to persist: required and owner-membership checked for team visibility, else None."""
    if visibility != "team":
        return None
    if team_id is None:
        raise InvalidTeamAssignment("team_id is required for team visibility")
    if not await store.is_team_member(team_id, owner_id):
        raise InvalidTeamAssignment("owner is not a member of the given team")
    return team_id


async def create_snippet(payload: SnippetCreate, user_id: int, store: SnippetStoreLike) -> Snippet:
    """
    Persist a new snippet owned by user_id with an embedding of its content.
    If the embedding cannot be generated the snippet is stored without one.
    """
    fields = payload.model_dump()
    fields["tags"] = fields.get("tags") or []
    fields["team_id"] = await _resolve_team_id(
        store, user_id, fields["visibility"], fields.get("team_id")
    )
    embedding_error: EmbeddingUnavailable | None = None
    try:
        fields["embedding"] = serialize_vector(await generate_embedding(snippet_to_text(fields)))
    except EmbeddingUnavailable as e:
        embedding_error = e
        fields["embedding"] = None
    record = await store.insert(user_id, fields)
    if embedding_error is not None:
        logger.warning("Created snippet %s without embedding: %s", record.id, embedding_error)
    logger.info("Created snippet %s for user %s", record.id, user_id)
    return record.to_public()


async def update_snippet(
    snippet_id: int,
    payload: SnippetUpdate,
    user_id: int,
    store: SnippetStoreLike,
) -> Snippet | None:
    """
    Apply a partial update. Returns None if the snippet does not exist or user_id does not own it.
    The embedding is regenerated only when a content field changes; on failure the old one stays.
    """
    existing = await store.get(snippet_id)
    if existing is None or not owns(existing, user_id):
        return None

    changes = payload.model_dump(exclude_unset=True)
    if "tags" in changes and changes["tags"] is None:
        changes["tags"] = []
    if "visibility" in changes or "team_id" in changes:
        visibility = changes.get("visibility", existing.visibility)
        team_id = changes.get("team_id", existing.team_id)
        changes["team_id"] = await _resolve_team_id(store, user_id, visibility, team_id)

    if content_changed(existing, changes):
        merged = {**existing.model_dump(), **changes}
        logger.info("Content changed, regenerating embedding for snippet %s", snippet_id)
        try:
            changes["embedding"] = serialize_vector(
                await generate_embedding(snippet_to_text(merged))
            )
        except EmbeddingUnavailable as e:
            logger.warning(
                "Keeping previous embedding for snippet %s, regeneration failed: %s",
                snippet_id,
                e,
            )

    record = await store.update(snippet_id, changes)
    return record.to_public() if record is not None else None


async def delete_snippet(snippet_id: int, user_id: int, store: SnippetStoreLike) -> bool:
    """Delete if user_id owns the snippet. False when missing or not owned."""
    existing = await store.get(snippet_id)
    if existing is None or not owns(existing, user_id):
        return False
    deleted = await store.delete(snippet_id)
    if deleted:
        logger.info("Deleted snippet %s", snippet_id)
    return deleted


async def get_snippet_by_id(
    snippet_id: int, user_id: int | None, store: SnippetStoreLike
) -> Snippet | None:
    """
    Return the snippet if visible to user_id (None = anonymous), else None.
    Missing and hidden snippets are indistinguishable to the caller.
    """
    record = await store.get(snippet_id)
    if record is None:
        return None
    is_member = False
    if needs_membership_check(record, user_id):
        is_member = await store.is_team_member(record.team_id, user_id)
    if not can_view(record, user_id, is_member):
        return None
    return record.to_public()


async def list_user_snippets(user_id: int, store: SnippetStoreLike) -> list[Snippet]:
    """All snippets owned by user_id, most recently updated first."""
    return [r.to_public() for r in await store.list_by_user(user_id)]


async def list_team_snippets(team_id: int, store: SnippetStoreLike) -> list[Snippet]:
    """Team-visible snippets of team_id. The caller checks membership."""
    return [r.to_public() for r in await store.list_by_team(team_id)]


async def list_public_snippets(store: SnippetStoreLike) -> list[Snippet]:
    """All public snippets, most recently updated first."""
    return [r.to_public() for r in await store.list_public()]
