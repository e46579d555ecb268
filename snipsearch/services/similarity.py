"""
Similarity ranking: cosine similarity between the query vector and each candidate's
stored vector, sorted descending, truncated to top-k. Brute force, exact.
"""

import json
import logging
import math
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

import numpy as np

from snipsearch.services.errors import MalformedStoredVector

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TOP_K = 10


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    dot(a, b) / (|a| * |b|), clipped to [-1, 1].
    Returns 0.0 when lengths differ, either vector is empty, or either has zero magnitude.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.ndim != 1 or va.shape != vb.shape or va.size == 0:
        return 0.0
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / (norm_a * norm_b), -1.0, 1.0))


def serialize_vector(vector: Sequence[float]) -> str:
    """Opaque storage form: JSON array of floats."""
    return json.dumps([float(x) for x in vector])


def parse_stored_vector(raw: Any) -> list[float]:
    """
    Parse a persisted embedding. Raises MalformedStoredVector if it is not a
    non-empty sequence of finite numbers.
    """
    if raw is None:
        raise MalformedStoredVector("no stored embedding")
    value = raw
    if isinstance(raw, (str, bytes)):
        try:
            value = json.loads(raw)
        except ValueError as e:
            raise MalformedStoredVector(f"not valid JSON: {e}") from e
    if not isinstance(value, list) or not value:
        raise MalformedStoredVector("not a non-empty list")
    out: list[float] = []
    for x in value:
        # bool is an int subclass; reject it explicitly.
        if isinstance(x, bool) or not isinstance(x, (int, float)):
            raise MalformedStoredVector(f"non-numeric element: {x!r}")
        if not math.isfinite(x):
            raise MalformedStoredVector("non-finite element")
        out.append(float(x))
    return out


def rank(
    query: Sequence[float],
    candidates: Iterable[tuple[T, Any]],
    k: int = DEFAULT_TOP_K,
    *,
    label: Callable[[T], Any] | None = None,
) -> list[T]:
    """
    Return at most k candidates ordered by cosine similarity to query, highest first.
    Candidates are (item, stored_vector) pairs; a null or malformed stored vector
    excludes that item (logged, not raised). Ties keep the input order.
    label(item) names the item in log lines.
    """
    if k <= 0:
        return []
    scored: list[tuple[float, T]] = []
    for item, raw in candidates:
        name = label(item) if label is not None else item
        if raw is None:
            logger.debug("Skipping candidate %s: no stored embedding", name)
            continue
        try:
            vector = parse_stored_vector(raw)
        except MalformedStoredVector as e:
            logger.warning("Skipping candidate %s: malformed stored embedding (%s)", name, e)
            continue
        scored.append((cosine_similarity(query, vector), item))
    # list.sort is stable, also with reverse=True.
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in scored[:k]]
