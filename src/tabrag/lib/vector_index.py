"""On-disk FAISS index mirroring every ingested chunk.

Vectors are L2-normalized and stored in an inner-product index, so search
scores are cosine similarities.  Chunk text and metadata are kept in a
JSON sidecar next to the index file, in insertion order (FAISS ids are
positions in that list).
"""

import json
import logging
from collections.abc import Sequence
from pathlib import Path

import faiss
import numpy as np

from ..models import ScoredChunk, StoredChunk
from .embeddings import resolve_embedding

logger = logging.getLogger(__name__)

DEFAULT_INDEX_PATH = "./data/faiss.index"


def normalize_hit_metadata(metadata: dict | None) -> dict:
    metadata = metadata or {}
    return {
        "title": metadata.get("title") or "Untitled",
        "url": metadata.get("url") or "",
        "part": metadata.get("part") or 1,
    }


class FaissIndex:
    def __init__(self, path: str = DEFAULT_INDEX_PATH):
        self.path = Path(path)
        self.meta_path = self.path.with_name(self.path.name + ".meta.json")
        self._index = None
        self._records: list[dict] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def dimension(self) -> int | None:
        return self._index.d if self._index is not None else None

    def load(self) -> None:
        """Load the index from disk; start empty if missing or unreadable."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            logger.info("No FAISS index at %s; starting empty", self.path)
            return
        try:
            index = faiss.read_index(str(self.path))
            records = json.loads(self.meta_path.read_text(encoding="utf-8"))
            if index.ntotal != len(records):
                raise ValueError(
                    f"index holds {index.ntotal} vectors but {len(records)} records"
                )
        except (RuntimeError, OSError, ValueError):
            logger.warning("Failed to load FAISS index at %s, reinitializing", self.path, exc_info=True)
            self._index = None
            self._records = []
            return
        self._index = index
        self._records = records
        logger.info("Loaded FAISS index with %d chunks", len(records))

    def save(self) -> None:
        if self._index is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        faiss.write_index(self._index, str(self.path))
        self.meta_path.write_text(json.dumps(self._records), encoding="utf-8")

    def add(self, chunks: Sequence[StoredChunk]) -> int:
        """Add chunks that carry an embedding; returns how many were added.

        Raises ``ValueError`` if the embedding dimension differs from the
        dimension the index was created with.
        """
        vectors: list[list[float]] = []
        records: list[dict] = []
        for chunk in chunks:
            vec = resolve_embedding(chunk.embedding, label=chunk.metadata.get("title"))
            if not vec:
                continue
            vectors.append(vec)
            records.append({"text": chunk.text, "metadata": chunk.metadata})
        if not vectors:
            return 0

        dims = {len(v) for v in vectors}
        if len(dims) != 1:
            raise ValueError(f"Mixed embedding dimensions in batch: {sorted(dims)}")
        dim = dims.pop()
        if self._index is None:
            self._index = faiss.IndexFlatIP(dim)
        elif self._index.d != dim:
            raise ValueError(f"Embedding dimension {dim} does not match index dimension {self._index.d}")

        matrix = np.asarray(vectors, dtype=np.float32)
        faiss.normalize_L2(matrix)
        self._index.add(matrix)
        self._records.extend(records)
        self.save()
        logger.info("Synced %d chunks into FAISS index", len(records))
        return len(records)

    def search(self, query_embedding: Sequence[float], k: int = 5) -> list[ScoredChunk]:
        if self._index is None or not self._records or k <= 0:
            return []
        if len(query_embedding) != self._index.d:
            logger.warning(
                "Query dimension %d does not match index dimension %d",
                len(query_embedding),
                self._index.d,
            )
            return []

        query = np.asarray([query_embedding], dtype=np.float32)
        faiss.normalize_L2(query)
        scores, ids = self._index.search(query, min(k, len(self._records)))

        results: list[ScoredChunk] = []
        for score, idx in zip(scores[0], ids[0]):
            if idx < 0:
                continue
            record = self._records[idx]
            results.append(
                ScoredChunk(
                    text=record.get("text") or "",
                    metadata=normalize_hit_metadata(record.get("metadata")),
                    score=float(score),
                )
            )
        return results
