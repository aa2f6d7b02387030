from typing import Any

from pydantic import BaseModel, Field


class StoredChunk(BaseModel):
    """A chunk of tab text as held by a vector store.

    ``embedding`` is left untyped on purpose: depending on the backend it
    arrives as a list of floats, a JSON string (text columns) or ``None``.
    """

    text: str = Field("", description="Chunk text content")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Opaque chunk metadata")
    embedding: Any = Field(None, description="Embedding vector, possibly serialized")


class ScoredChunk(BaseModel):
    """A retrieved chunk with its similarity score."""

    text: str = Field("", description="Chunk text content")
    metadata: dict[str, Any] = Field(default_factory=dict)
    score: float = Field(0.0, description="Similarity to the query (cosine, -1..1)")


class HitMetadata(BaseModel):
    title: str = "Untitled"
    url: str = ""
    part: int = 1


class SearchHit(BaseModel):
    """A search result as returned to the extension."""

    content: str
    metadata: HitMetadata
    score: float
