"""
Shared fixtures: in-memory snippet store and a deterministic hashing model,
so the suite needs neither PostgreSQL nor a model download.
"""

import re
import zlib
from datetime import datetime, timezone
from typing import Any

import numpy as np
import pytest
from fastapi.testclient import TestClient

from snipsearch.api.main import app
from snipsearch.api.schemas import SnippetRecord
from snipsearch.config.settings import EMBEDDING_DIM
from snipsearch.services import embedding
from snipsearch.services.access import is_search_candidate


class FakeModel:
    """Bag-of-words hashing encoder with the SentenceTransformer.encode call shape."""

    def __init__(self, dim: int = EMBEDDING_DIM) -> None:
        self.dim = dim
        self.fail = False
        self.calls = 0

    def encode(self, texts: list[str], normalize_embeddings: bool = False) -> np.ndarray:
        self.calls += 1
        if self.fail:
            raise RuntimeError("encoder crashed")
        out = np.zeros((len(texts), self.dim), dtype=np.float32)
        for i, text in enumerate(texts):
            for token in re.findall(r"[a-z0-9]+", text.lower()):
                # Prefix feature lets "sort" and "sorting" overlap.
                for feature in (token, token[:4]):
                    out[i, zlib.crc32(feature.encode()) % self.dim] += 1.0
            norm = np.linalg.norm(out[i])
            if normalize_embeddings and norm > 0:
                out[i] /= norm
        return out


class InMemorySnippetStore:
    """Same interface as storage.SnippetStore, backed by a dict."""

    def __init__(self) -> None:
        self.rows: dict[int, SnippetRecord] = {}
        self.memberships: list[tuple[int, int]] = []
        self._next_id = 1

    def add_member(self, team_id: int, user_id: int) -> None:
        self.memberships.append((team_id, user_id))

    async def insert(self, user_id: int, fields: dict[str, Any]) -> SnippetRecord:
        now = datetime.now(timezone.utc)
        record = SnippetRecord(
            id=self._next_id,
            title=fields["title"],
            code=fields["code"],
            language=fields["language"],
            description=fields.get("description"),
            tags=list(fields.get("tags") or []),
            user_id=user_id,
            team_id=fields.get("team_id"),
            visibility=fields["visibility"],
            embedding=fields.get("embedding"),
            created_at=now,
            updated_at=now,
        )
        self.rows[record.id] = record
        self._next_id += 1
        return record.model_copy(deep=True)

    async def get(self, snippet_id: int) -> SnippetRecord | None:
        record = self.rows.get(snippet_id)
        return record.model_copy(deep=True) if record is not None else None

    async def update(self, snippet_id: int, changes: dict[str, Any]) -> SnippetRecord | None:
        existing = self.rows.get(snippet_id)
        if existing is None:
            return None
        data = existing.model_dump()
        data.update(changes)
        data["updated_at"] = datetime.now(timezone.utc)
        record = SnippetRecord(**data)
        self.rows[snippet_id] = record
        return record.model_copy(deep=True)

    async def delete(self, snippet_id: int) -> bool:
        return self.rows.pop(snippet_id, None) is not None

    async def accessible_candidates(
        self, user_id: int | None, team_id: int | None
    ) -> list[SnippetRecord]:
        return [
            r.model_copy(deep=True)
            for _, r in sorted(self.rows.items())
            if is_search_candidate(r, user_id, team_id)
        ]

    async def is_team_member(self, team_id: int, user_id: int) -> bool:
        return (team_id, user_id) in self.memberships

    async def team_for_user(self, user_id: int) -> int | None:
        for team_id, member in self.memberships:
            if member == user_id:
                return team_id
        return None

    def _newest_first(self, rows: list[SnippetRecord]) -> list[SnippetRecord]:
        # ORDER BY updated_at DESC, id DESC
        return sorted(rows, key=lambda r: (r.updated_at, r.id), reverse=True)

    async def list_by_user(self, user_id: int) -> list[SnippetRecord]:
        return self._newest_first([r for r in self.rows.values() if r.user_id == user_id])

    async def list_by_team(self, team_id: int) -> list[SnippetRecord]:
        return self._newest_first(
            [r for r in self.rows.values() if r.team_id == team_id and r.visibility == "team"]
        )

    async def list_public(self) -> list[SnippetRecord]:
        return self._newest_first([r for r in self.rows.values() if r.visibility == "public"])


@pytest.fixture(autouse=True)
def fake_model(monkeypatch: pytest.MonkeyPatch) -> FakeModel:
    """Every test gets a fresh singleton that loads the fake model."""
    model = FakeModel()
    monkeypatch.setattr(embedding, "_load_model", lambda name: model)
    embedding.reset_model()
    yield model
    embedding.reset_model()


@pytest.fixture
def store() -> InMemorySnippetStore:
    return InMemorySnippetStore()


@pytest.fixture
def client(store: InMemorySnippetStore) -> TestClient:
    original = getattr(app.state, "store", None)
    app.state.store = store
    yield TestClient(app)
    app.state.store = original
