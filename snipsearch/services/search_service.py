"""
Search flow: embed the query, fetch access-filtered candidates, rank, strip internal fields.
An embedding failure propagates as EmbeddingUnavailable; it is never reported as an empty result.
"""

import logging

from snipsearch.api.schemas import Snippet
from snipsearch.config.settings import SEARCH_DEFAULT_LIMIT
from snipsearch.services.embedding import generate_embedding
from snipsearch.services.similarity import rank
from snipsearch.services.snippet_service import SnippetStoreLike

logger = logging.getLogger(__name__)


async def search(
    query: str,
    user_id: int | None,
    team_id: int | None,
    store: SnippetStoreLike,
    *,
    k: int = SEARCH_DEFAULT_LIMIT,
) -> list[Snippet]:
    """
    Return up to k snippets visible to (user_id, team_id), most similar to query first.
    Raises EmbeddingUnavailable if the query cannot be embedded.
    """
    query_vector = await generate_embedding(query)
    candidates = await store.accessible_candidates(user_id, team_id)
    ranked = rank(
        query_vector,
        ((record, record.embedding) for record in candidates),
        k,
        label=lambda record: record.id,
    )
    logger.info(
        "Search user=%s team=%s candidates=%d returned=%d",
        user_id,
        team_id,
        len(candidates),
        len(ranked),
    )
    return [record.to_public() for record in ranked]
