"""Local cosine-similarity scoring and top-k ranking.

Used whenever a vector store cannot rank candidates on its own side: the
store hands back every chunk it holds and the ranking happens here.  Both
functions are pure and hold no state between calls.
"""

import logging
import math
from collections.abc import Sequence

from ..models import ScoredChunk, StoredChunk
from .embeddings import is_numeric_sequence, resolve_embedding

logger = logging.getLogger(__name__)


def cosine_similarity(a, b) -> float:
    """Cosine similarity of *a* and *b*.

    Returns 0 for anything that is not a pair of equal-length sequences of
    finite numbers, and for zero-magnitude vectors.  The result is always
    within [-1, 1].
    """
    if not is_numeric_sequence(a) or not is_numeric_sequence(b) or len(a) != len(b):
        return 0.0

    a = _unit_scaled(a)
    b = _unit_scaled(b)
    if a is None or b is None:
        return 0.0

    dot = math.fsum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    norm_b = math.sqrt(math.fsum(y * y for y in b))
    score = dot / (norm_a * norm_b)
    if not math.isfinite(score):
        return 0.0
    return max(-1.0, min(1.0, score))


def _unit_scaled(vec) -> list[float] | None:
    """Divide *vec* by its largest magnitude; ``None`` for a zero vector.

    Keeps squares and products in range for very large or very small
    components.
    """
    values = [float(x) for x in vec]
    scale = max((abs(x) for x in values), default=0.0)
    if scale == 0:
        return None
    return [x / scale for x in values]


def _label(chunk: StoredChunk) -> str:
    title = (chunk.metadata or {}).get("title")
    return title or (chunk.text or "")[:50]


def rank_top_k(
    query_embedding: Sequence[float],
    candidates: Sequence[StoredChunk],
    k: int,
) -> list[ScoredChunk]:
    """Return the *k* candidates most similar to *query_embedding*.

    Results are sorted by descending score; ties keep their input order.
    A candidate whose embedding is missing or malformed scores 0 rather
    than failing the batch.
    """
    if k <= 0 or not candidates:
        return []

    scored: list[ScoredChunk] = []
    for chunk in candidates:
        embedding = resolve_embedding(chunk.embedding, label=_label(chunk))
        if embedding and len(embedding) != len(query_embedding):
            # Scores from different embedding models are not comparable.
            logger.warning(
                "Embedding dimension %d does not match query dimension %d for doc: %s",
                len(embedding),
                len(query_embedding),
                _label(chunk),
            )
        score = cosine_similarity(query_embedding, embedding) if embedding else 0.0
        scored.append(ScoredChunk(text=chunk.text, metadata=chunk.metadata, score=score))

    scored.sort(key=lambda c: c.score, reverse=True)
    return scored[:k]
