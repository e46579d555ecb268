"""
Requester identity. The user id comes from the X-User-Id header set by the session
layer in front of this service; no header means anonymous.
"""

import logging

from fastapi import Request
from pydantic import BaseModel

from snipsearch.services.snippet_service import SnippetStoreLike

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


class Identity(BaseModel):
    """Authenticated requester and the team it belongs to, if any."""

    id: int
    team_id: int | None = None


class InvalidIdentity(Exception):
    """Identity header present but not a positive integer."""


def parse_user_id(raw: str | None) -> int | None:
    """Header value to user id; None when absent. Raises InvalidIdentity if not a positive int."""
    if raw is None or raw.strip() == "":
        return None
    try:
        user_id = int(raw)
    except ValueError as e:
        raise InvalidIdentity(f"invalid {USER_ID_HEADER}") from e
    if user_id <= 0:
        raise InvalidIdentity(f"invalid {USER_ID_HEADER}")
    return user_id


async def current_identity(request: Request, store: SnippetStoreLike) -> Identity | None:
    """Resolve the requester; None for anonymous."""
    user_id = parse_user_id(request.headers.get(USER_ID_HEADER))
    if user_id is None:
        return None
    team_id = await store.team_for_user(user_id)
    return Identity(id=user_id, team_id=team_id)
