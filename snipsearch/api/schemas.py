"""
Pydantic schemas for snippet payloads and responses.
JSON-only; embeddings never appear in a response model.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

Visibility = Literal["private", "team", "public"]
Tag = Annotated[str, Field(max_length=50)]
Tags = Annotated[list[Tag], Field(max_length=10)]


class SnippetCreate(BaseModel):
    """POST /snippets body."""

    title: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    tags: Tags | None = None
    team_id: int | None = Field(None, gt=0, description="Required when visibility is team")
    visibility: Visibility


class SnippetUpdate(BaseModel):
    """PUT /snippets/{id} body. Only fields present in the payload are applied."""

    title: str | None = Field(None, min_length=1, max_length=255)
    code: str | None = Field(None, min_length=1)
    language: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    tags: Tags | None = None
    team_id: int | None = Field(None, gt=0)
    visibility: Visibility | None = None

    @field_validator("title", "code", "language", "visibility")
    @classmethod
    def _not_null(cls, value: str | None) -> str | None:
        # Runs only for values supplied in the payload; an explicit null is rejected.
        if value is None:
            raise ValueError("may not be null")
        return value


class Snippet(BaseModel):
    """A snippet as returned to callers."""

    id: int
    title: str
    code: str
    language: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    user_id: int
    team_id: int | None = None
    visibility: Visibility
    created_at: datetime
    updated_at: datetime


class SnippetRecord(Snippet):
    """Persisted row including the serialized embedding. Internal only."""

    embedding: str | None = None

    def to_public(self) -> Snippet:
        """Copy without the embedding, safe to return to callers."""
        return Snippet(**self.model_dump(exclude={"embedding"}))


class DeleteResponse(BaseModel):
    """DELETE /snippets/{id} response."""

    success: bool = True
