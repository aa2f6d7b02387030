"""Supabase vector store, reached through the project's PostgREST API.

The ``documents`` table is expected to exist (``content text, metadata
jsonb, embedding vector``).  PostgREST returns ``vector`` columns as text
such as ``"[0.1,0.2]"``, which the ranker decodes.
"""

import logging
from collections.abc import Sequence

import httpx

from ...models import StoredChunk
from ..embeddings import resolve_embedding
from .base import MAX_FETCH_ROWS, VectorStore, warn_if_truncated

logger = logging.getLogger(__name__)

TABLE = "documents"


class SupabaseVectorStore(VectorStore):
    def __init__(
        self,
        url: str,
        key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        if not url or not key:
            raise ValueError("Supabase URL and key are required")
        self.url = url.rstrip("/")
        self.key = key
        self._timeout = timeout
        self._client = client

    @property
    def backend(self) -> str:
        return "supabase"

    @property
    def _endpoint(self) -> str:
        return f"{self.url}/rest/v1/{TABLE}"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Supabase store not initialized")
        return self._client

    async def init(self) -> None:
        logger.info("Using Supabase at %s", self.url)
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)

    async def add_documents(self, chunks: Sequence[StoredChunk]) -> None:
        if not chunks:
            return
        rows = [
            {
                "content": c.text,
                "metadata": c.metadata,
                "embedding": resolve_embedding(c.embedding) or None,
            }
            for c in chunks
        ]
        resp = await self._require_client().post(
            self._endpoint,
            json=rows,
            headers={**self._headers(), "Prefer": "return=minimal"},
        )
        resp.raise_for_status()
        logger.info("Added %d docs to Supabase", len(chunks))

    async def get_all_documents(self) -> list[StoredChunk]:
        resp = await self._require_client().get(
            self._endpoint,
            params={"select": "content,metadata,embedding", "limit": str(MAX_FETCH_ROWS)},
            headers=self._headers(),
        )
        resp.raise_for_status()
        docs = [
            StoredChunk(
                text=row.get("content") or "",
                metadata=row.get("metadata") if isinstance(row.get("metadata"), dict) else {},
                embedding=row.get("embedding"),
            )
            for row in resp.json()
        ]
        return warn_if_truncated(docs, self.backend)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
