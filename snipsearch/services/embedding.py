"""
Embedding service: load sentence-transformers model once (async singleton).
Concurrent first callers share one load; a failed load is not cached and the next call retries.
"""

import asyncio
import logging
import math
from typing import Any

from snipsearch.config.settings import EMBEDDING_DIM, EMBEDDING_MODEL_NAME
from snipsearch.services.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)

# Lazy-loaded singleton; loaded on first use to avoid blocking app startup.
_model: Any = None
_loading: "asyncio.Future[Any] | None" = None


def _load_model(model_name: str) -> Any:
    """Construct the model. Blocking; runs in a worker thread."""
    from sentence_transformers import SentenceTransformer

    return SentenceTransformer(model_name)


async def _load() -> Any:
    logger.info("Loading embedding model: %s", EMBEDDING_MODEL_NAME)
    model = await asyncio.to_thread(_load_model, EMBEDDING_MODEL_NAME)
    logger.info("Loaded embedding model: %s", EMBEDDING_MODEL_NAME)
    return model


async def get_model() -> Any:
    """Return the shared model, loading it on first use."""
    global _model, _loading
    if _model is not None:
        return _model
    if _loading is None:
        _loading = asyncio.ensure_future(_load())
    task = _loading
    try:
        model = await asyncio.shield(task)
    except Exception as e:
        # Reset so the next call starts a fresh load.
        if _loading is task:
            _loading = None
        logger.exception("Failed to load embedding model: %s", e)
        raise EmbeddingUnavailable(f"embedding model unavailable: {e}") from e
    _model = model
    if _loading is task:
        _loading = None
    return model


def reset_model() -> None:
    """Drop the cached model so the next call reloads it."""
    global _model, _loading
    _model = None
    _loading = None


def _to_vector(raw: Any) -> list[float]:
    """Validate one encoded row: flat, finite, expected length."""
    try:
        values = [float(x) for x in raw]
    except (TypeError, ValueError) as e:
        raise EmbeddingUnavailable(f"model returned non-numeric output: {e}") from e
    if not values or not all(math.isfinite(x) for x in values):
        raise EmbeddingUnavailable("model returned empty or non-finite embedding")
    if EMBEDDING_DIM and len(values) != EMBEDDING_DIM:
        raise EmbeddingUnavailable(
            f"model returned {len(values)} dimensions, expected {EMBEDDING_DIM}"
        )
    return values


async def generate_embedding(text: str) -> list[float]:
    """
    Generate a mean-pooled, L2-normalized embedding for text.
    Deterministic for the same model and input.
    Raises EmbeddingUnavailable if the model cannot be loaded or fails on the input.
    """
    model = await get_model()
    try:
        # normalize_embeddings=True for cosine similarity
        arr = await asyncio.to_thread(model.encode, [text], normalize_embeddings=True)
        row = arr[0]
    except Exception as e:
        logger.exception("Embedding generation failed: %s", e)
        raise EmbeddingUnavailable(f"embedding generation failed: {e}") from e
    return _to_vector(row)
