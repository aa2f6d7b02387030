"""Local Postgres vector store (``psycopg2``).

Embeddings live in a native ``FLOAT8[]`` column and come back as lists of
floats; metadata is ``JSONB``.
"""

import asyncio
import logging
from collections.abc import Sequence

import psycopg2
from psycopg2.extras import Json

from ...models import StoredChunk
from ..embeddings import resolve_embedding
from .base import MAX_FETCH_ROWS, VectorStore, warn_if_truncated

logger = logging.getLogger(__name__)

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS documents (
    id SERIAL PRIMARY KEY,
    content TEXT,
    metadata JSONB,
    embedding FLOAT8[]
);
"""


class PostgresVectorStore(VectorStore):
    def __init__(self, connection_string: str, connect=psycopg2.connect):
        if not connection_string:
            raise ValueError("Postgres connection string is required")
        self.connection_string = connection_string
        self._connect_fn = connect
        self._conn = None

    @property
    def backend(self) -> str:
        return "postgres"

    def _connect(self) -> None:
        self._conn = self._connect_fn(self.connection_string)
        with self._conn.cursor() as cur:
            cur.execute(CREATE_TABLE)
        self._conn.commit()

    async def init(self) -> None:
        logger.info("Using local Postgres database")
        await asyncio.to_thread(self._connect)

    def _require_conn(self):
        if self._conn is None:
            raise RuntimeError("Postgres store not initialized")
        return self._conn

    def _insert(self, chunks: Sequence[StoredChunk]) -> None:
        conn = self._require_conn()
        try:
            with conn.cursor() as cur:
                cur.executemany(
                    "INSERT INTO documents (content, metadata, embedding) VALUES (%s, %s, %s)",
                    [
                        (c.text, Json(c.metadata), resolve_embedding(c.embedding) or None)
                        for c in chunks
                    ],
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    async def add_documents(self, chunks: Sequence[StoredChunk]) -> None:
        if not chunks:
            return
        await asyncio.to_thread(self._insert, chunks)
        logger.info("Added %d docs to local Postgres", len(chunks))

    def _select_all(self) -> list[StoredChunk]:
        conn = self._require_conn()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT content, metadata, embedding FROM documents ORDER BY id LIMIT %s",
                (MAX_FETCH_ROWS,),
            )
            rows = cur.fetchall()
        docs = [
            StoredChunk(
                text=content or "",
                metadata=metadata if isinstance(metadata, dict) else {},
                embedding=embedding,
            )
            for content, metadata, embedding in rows
        ]
        return warn_if_truncated(docs, self.backend)

    async def get_all_documents(self) -> list[StoredChunk]:
        return await asyncio.to_thread(self._select_all)

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
