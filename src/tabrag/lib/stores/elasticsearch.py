"""Elasticsearch vector store.

Chunks are indexed with a ``dense_vector`` field and searched with a
native kNN query, so ranking happens on the cluster instead of locally.
The index mapping is created on first insert, once the embedding
dimension is known.
"""

import logging
from collections.abc import Sequence

from elastic_transport import ObjectApiResponse
from elasticsearch import AsyncElasticsearch
from elasticsearch.helpers import async_bulk

from ...models import ScoredChunk, StoredChunk
from ..embeddings import resolve_embedding
from .base import MAX_FETCH_ROWS, VectorStore, warn_if_truncated

logger = logging.getLogger(__name__)

EMBEDDING_FIELD = "embedding"


def unwrap_es_response(resp) -> dict:
    """Unwrap an Elasticsearch response (ObjectApiResponse or plain dict)."""
    if isinstance(resp, ObjectApiResponse):
        return resp.body
    if isinstance(resp, dict):
        return resp
    raise TypeError(f"Unexpected Elasticsearch response type: {type(resp)}")


def build_mapping(dims: int) -> dict:
    return {
        "properties": {
            "content": {"type": "text"},
            "metadata": {"type": "object", "enabled": False},
            EMBEDDING_FIELD: {
                "type": "dense_vector",
                "dims": dims,
                "index": True,
                "similarity": "cosine",
            },
        }
    }


class ElasticsearchVectorStore(VectorStore):
    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        index: str = "tab_chunks",
        es=None,
    ):
        if es is None and not url:
            raise ValueError("Elasticsearch URL is required")
        self.url = url
        self.api_key = api_key
        self.index = index
        self._es = es

    @property
    def backend(self) -> str:
        return "elasticsearch"

    def _require_es(self):
        if self._es is None:
            raise RuntimeError("Elasticsearch store not initialized")
        return self._es

    async def init(self) -> None:
        logger.info("Using Elasticsearch index %s", self.index)
        if self._es is None:
            self._es = AsyncElasticsearch(self.url, api_key=self.api_key)

    async def _ensure_index(self, dims: int) -> None:
        es = self._require_es()
        exists = await es.indices.exists(index=self.index)
        if not exists:
            logger.info("Creating index %s with %d-d embeddings", self.index, dims)
            await es.indices.create(index=self.index, mappings=build_mapping(dims))

    async def add_documents(self, chunks: Sequence[StoredChunk]) -> None:
        vectors = [resolve_embedding(c.embedding) for c in chunks]
        dims = next((len(v) for v in vectors if v), 0)
        if not dims:
            logger.warning("No embeddings supplied; nothing indexed")
            return

        await self._ensure_index(dims)
        es = self._require_es()
        actions = []
        for chunk, vec in zip(chunks, vectors):
            doc = {"content": chunk.text, "metadata": chunk.metadata}
            if vec:
                doc[EMBEDDING_FIELD] = vec
            actions.append({"_index": self.index, "_source": doc})
        indexed, _ = await async_bulk(es, actions)
        await es.indices.refresh(index=self.index)
        logger.info("Added %d docs to Elasticsearch", indexed)

    def _hits_to_chunks(self, data: dict) -> list[StoredChunk]:
        chunks: list[StoredChunk] = []
        for hit in data.get("hits", {}).get("hits", []):
            src = hit.get("_source") or {}
            metadata = src.get("metadata")
            chunks.append(
                StoredChunk(
                    text=src.get("content") or "",
                    metadata=metadata if isinstance(metadata, dict) else {},
                    embedding=src.get(EMBEDDING_FIELD),
                )
            )
        return chunks

    async def get_all_documents(self) -> list[StoredChunk]:
        es = self._require_es()
        if not await es.indices.exists(index=self.index):
            return []
        resp = await es.search(
            index=self.index,
            query={"match_all": {}},
            size=MAX_FETCH_ROWS,
        )
        return warn_if_truncated(self._hits_to_chunks(unwrap_es_response(resp)), self.backend)

    async def similarity_search(
        self,
        query_embedding: Sequence[float],
        k: int = 5,
    ) -> list[ScoredChunk]:
        """kNN search on the cluster.

        Elasticsearch reports cosine kNN scores as ``(1 + cos) / 2``; they
        are mapped back to plain cosine so scores match local ranking.
        """
        if k <= 0:
            return []
        es = self._require_es()
        if not await es.indices.exists(index=self.index):
            return []

        knn_query = {
            "knn": {
                "field": EMBEDDING_FIELD,
                "query_vector": list(query_embedding),
                "k": k,
                "num_candidates": max(100, k * 10),
            }
        }
        resp = await es.search(index=self.index, query=knn_query, size=k)
        data = unwrap_es_response(resp)

        results: list[ScoredChunk] = []
        for hit in data.get("hits", {}).get("hits", []):
            src = hit.get("_source") or {}
            metadata = src.get("metadata")
            raw_score = hit.get("_score")
            if not isinstance(raw_score, (int, float)):
                continue
            results.append(
                ScoredChunk(
                    text=src.get("content") or "",
                    metadata=metadata if isinstance(metadata, dict) else {},
                    score=2 * raw_score - 1,
                )
            )
        return results

    async def close(self) -> None:
        if self._es is not None:
            await self._es.close()
            self._es = None
