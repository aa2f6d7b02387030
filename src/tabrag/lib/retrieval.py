"""Retrieval with fallbacks: FAISS index first, then the active store."""

import logging
from collections.abc import Sequence

from ..models import ScoredChunk
from .stores import VectorStore
from .vector_index import FaissIndex

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_K = 5


async def retrieve(
    query_embedding: Sequence[float],
    *,
    store: VectorStore | None,
    index: FaissIndex | None,
    k: int,
    url: str | None = None,
    fallback_k: int = DEFAULT_FALLBACK_K,
) -> list[ScoredChunk]:
    """Return chunks relevant to *query_embedding*.

    1. Search the FAISS index for *k* hits.
    2. If *url* is given, prefer hits from that tab; when none match,
       keep all index hits.
    3. If the index gave nothing, ask the store (server-side kNN or local
       ranking, depending on the backend).
    """
    hits = index.search(query_embedding, k) if index is not None else []

    if url:
        same_tab = [h for h in hits if h.metadata.get("url") == url]
        if same_tab:
            hits = same_tab
        elif hits:
            logger.info("No tab-specific index results for %s; using all index hits", url)

    if not hits and store is not None:
        logger.info("No index results; falling back to %s store search", store.backend)
        hits = await store.similarity_search(query_embedding, fallback_k)

    return hits
