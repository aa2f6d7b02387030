"""SQLite vector store.

Embeddings and metadata are kept as JSON text columns, so embeddings come
back serialized and are decoded by the ranker.
"""

import asyncio
import json
import logging
import sqlite3
import threading
from collections.abc import Sequence
from pathlib import Path

from ...models import StoredChunk
from ..embeddings import encode_embedding
from .base import MAX_FETCH_ROWS, VectorStore, warn_if_truncated

logger = logging.getLogger(__name__)

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS documents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    content TEXT,
    metadata TEXT,
    embedding TEXT
)
"""


class SQLiteVectorStore(VectorStore):
    def __init__(self, db_path: str):
        if not db_path:
            raise ValueError("SQLite path is required")
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        # One connection is shared by to_thread workers; serialize its use.
        self._lock = threading.Lock()

    @property
    def backend(self) -> str:
        return "sqlite"

    def _connect(self) -> None:
        path = Path(self.db_path)
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(path), check_same_thread=False)
        conn.execute(CREATE_TABLE)
        conn.commit()
        with self._lock:
            self._conn = conn

    async def init(self) -> None:
        logger.info("Using SQLite at %s", self.db_path)
        await asyncio.to_thread(self._connect)

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("SQLite store not initialized")
        return self._conn

    def _insert(self, chunks: Sequence[StoredChunk]) -> None:
        rows = [
            (c.text, json.dumps(c.metadata), encode_embedding(c.embedding))
            for c in chunks
        ]
        with self._lock:
            conn = self._require_conn()
            with conn:
                conn.executemany(
                    "INSERT INTO documents (content, metadata, embedding) VALUES (?, ?, ?)",
                    rows,
                )

    async def add_documents(self, chunks: Sequence[StoredChunk]) -> None:
        if not chunks:
            return
        await asyncio.to_thread(self._insert, chunks)
        logger.info("Added %d docs to SQLite", len(chunks))

    def _select_all(self) -> list[StoredChunk]:
        with self._lock:
            rows = self._require_conn().execute(
                "SELECT content, metadata, embedding FROM documents ORDER BY id LIMIT ?",
                (MAX_FETCH_ROWS,),
            ).fetchall()
        docs: list[StoredChunk] = []
        for content, metadata, embedding in rows:
            try:
                meta = json.loads(metadata) if metadata else {}
            except json.JSONDecodeError:
                logger.warning("Invalid metadata JSON for doc: %s", (content or "")[:50])
                meta = {}
            if not isinstance(meta, dict):
                meta = {}
            # Embedding stays serialized; the ranker decodes it.
            docs.append(StoredChunk(text=content or "", metadata=meta, embedding=embedding))
        return warn_if_truncated(docs, self.backend)

    async def get_all_documents(self) -> list[StoredChunk]:
        return await asyncio.to_thread(self._select_all)

    async def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
