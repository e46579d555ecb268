"""
API routes: health, snippet CRUD, listings and semantic search.
JSON-only; embeddings never leave the service.
"""

import logging
from typing import Any

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse

from snipsearch.api.auth import current_identity
from snipsearch.api.errors import error_response, not_found
from snipsearch.api.schemas import DeleteResponse, Snippet, SnippetCreate, SnippetUpdate
from snipsearch.config.settings import (
    SEARCH_DEFAULT_LIMIT,
    SEARCH_MAX_LIMIT,
    SEARCH_QUERY_MAX_LENGTH,
)
from snipsearch.services import snippet_service
from snipsearch.services.errors import StoreUnavailable
from snipsearch.services.search_service import search
from snipsearch.services.snippet_service import SnippetStoreLike

logger = logging.getLogger(__name__)

router = APIRouter()


def _store(request: Request) -> SnippetStoreLike:
    """Store from app state; raises StoreUnavailable when no database is configured."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailable("no database configured")
    return store


def _unauthorized() -> JSONResponse:
    """401 with the shared error body."""
    return error_response(status.HTTP_401_UNAUTHORIZED, "unauthorized")


def _forbidden() -> JSONResponse:
    """403 with the shared error body."""
    return error_response(status.HTTP_403_FORBIDDEN, "forbidden")


@router.get("/health")
async def health() -> dict[str, Any]:
    """
    Health or readiness endpoint for deployment/load balancer.
    Does not perform heavy checks (e.g. no DB ping, no model load).
    """
    return {"status": "ok"}


@router.post("/snippets", response_model=Snippet, status_code=status.HTTP_201_CREATED)
async def create_snippet(request: Request, body: SnippetCreate) -> Snippet | JSONResponse:
    """Create a snippet owned by the requester. Embedding failure does not block creation."""
    store = _store(request)
    identity = await current_identity(request, store)
    if identity is None:
        return _unauthorized()
    return await snippet_service.create_snippet(body, identity.id, store)


@router.get("/snippets", response_model=list[Snippet])
async def list_snippets(
    request: Request,
    visibility: str | None = Query(None),
    user_id: int | None = Query(None),
    team_id: int | None = Query(None),
) -> list[Snippet] | JSONResponse:
    """
    visibility=public lists public snippets (anonymous allowed). Otherwise the requester
    must be authenticated: user_id lists their own, team_id lists their team's shared
    snippets, no filter defaults to their own.
    """
    store = _store(request)
    if visibility == "public":
        return await snippet_service.list_public_snippets(store)
    identity = await current_identity(request, store)
    if identity is None:
        return _unauthorized()
    if user_id is not None:
        if user_id != identity.id:
            return _forbidden()
        return await snippet_service.list_user_snippets(user_id, store)
    if team_id is not None:
        if not await store.is_team_member(team_id, identity.id):
            return _forbidden()
        return await snippet_service.list_team_snippets(team_id, store)
    return await snippet_service.list_user_snippets(identity.id, store)


# Declared before /snippets/{snippet_id} so "search" is not parsed as an id.
@router.get("/snippets/search", response_model=list[Snippet])
async def search_snippets(
    request: Request,
    q: str = Query(..., min_length=1, max_length=SEARCH_QUERY_MAX_LENGTH),
    limit: int = Query(SEARCH_DEFAULT_LIMIT, ge=1, le=SEARCH_MAX_LIMIT),
) -> list[Snippet]:
    """
    Semantic search over snippets visible to the requester; anonymous sees public only.
    503 search_unavailable when the embedding model is down (handled in errors.py).
    """
    store = _store(request)
    identity = await current_identity(request, store)
    user_id = identity.id if identity is not None else None
    team_id = identity.team_id if identity is not None else None
    return await search(q, user_id, team_id, store, k=limit)


@router.get("/snippets/{snippet_id}", response_model=Snippet)
async def get_snippet(request: Request, snippet_id: int) -> Snippet | JSONResponse:
    """Fetch one snippet; 404 when missing or not visible to the requester."""
    store = _store(request)
    identity = await current_identity(request, store)
    snippet = await snippet_service.get_snippet_by_id(
        snippet_id, identity.id if identity is not None else None, store
    )
    if snippet is None:
        return not_found()
    return snippet


@router.put("/snippets/{snippet_id}", response_model=Snippet)
async def update_snippet(
    request: Request, snippet_id: int, body: SnippetUpdate
) -> Snippet | JSONResponse:
    """Partial update by the owner. Non-owners get 404, same as a missing snippet."""
    store = _store(request)
    identity = await current_identity(request, store)
    if identity is None:
        return _unauthorized()
    if not body.model_fields_set:
        return error_response(status.HTTP_400_BAD_REQUEST, "no_fields", detail="No fields to update")
    snippet = await snippet_service.update_snippet(snippet_id, body, identity.id, store)
    if snippet is None:
        return not_found()
    return snippet


@router.delete("/snippets/{snippet_id}", response_model=DeleteResponse)
async def delete_snippet(request: Request, snippet_id: int) -> DeleteResponse | JSONResponse:
    """Delete by the owner. Non-owners get 404, same as a missing snippet."""
    store = _store(request)
    identity = await current_identity(request, store)
    if identity is None:
        return _unauthorized()
    if not await snippet_service.delete_snippet(snippet_id, identity.id, store):
        return not_found()
    return DeleteResponse(success=True)
