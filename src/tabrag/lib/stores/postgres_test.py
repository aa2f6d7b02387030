"""Tests for the Postgres vector store, using a fake psycopg2 connection."""

import pytest
from psycopg2.extras import Json

from ...models import StoredChunk
from .postgres import PostgresVectorStore


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.conn.executed.append((sql, params))

    def executemany(self, sql, rows):
        if self.conn.fail_inserts:
            raise RuntimeError("insert failed")
        self.conn.inserted.extend(rows)

    def fetchall(self):
        return list(self.conn.rows)


class FakeConnection:
    def __init__(self, rows=None, fail_inserts=False):
        self.rows = rows or []
        self.fail_inserts = fail_inserts
        self.executed: list = []
        self.inserted: list = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


def make_store(conn: FakeConnection) -> PostgresVectorStore:
    dsns: list[str] = []

    def connect(dsn):
        dsns.append(dsn)
        return conn

    store = PostgresVectorStore("postgresql://localhost/tabs", connect=connect)
    store.dsns = dsns
    return store


class TestPostgresVectorStore:
    def test_requires_connection_string(self):
        with pytest.raises(ValueError):
            PostgresVectorStore("")

    @pytest.mark.asyncio
    async def test_init_creates_table(self):
        conn = FakeConnection()
        store = make_store(conn)
        await store.init()
        assert store.dsns == ["postgresql://localhost/tabs"]
        assert "CREATE TABLE IF NOT EXISTS documents" in conn.executed[0][0]
        assert "FLOAT8[]" in conn.executed[0][0]
        assert conn.commits == 1

    @pytest.mark.asyncio
    async def test_add_documents_sends_native_arrays(self):
        conn = FakeConnection()
        store = make_store(conn)
        await store.init()
        await store.add_documents([
            StoredChunk(text="A", metadata={"url": "u"}, embedding="[1, 0.5]"),
            StoredChunk(text="B", metadata={}, embedding=None),
        ])
        (text_a, meta_a, emb_a), (_, _, emb_b) = conn.inserted
        assert text_a == "A"
        assert isinstance(meta_a, Json)
        assert emb_a == [1.0, 0.5]
        assert emb_b is None

    @pytest.mark.asyncio
    async def test_add_documents_rolls_back_on_error(self):
        conn = FakeConnection(fail_inserts=True)
        store = make_store(conn)
        await store.init()
        with pytest.raises(RuntimeError):
            await store.add_documents([StoredChunk(text="A", embedding=[1.0])])
        assert conn.rollbacks == 1

    @pytest.mark.asyncio
    async def test_get_all_documents_and_rank(self):
        conn = FakeConnection(rows=[
            ("far", {"url": "u1"}, [0.0, 1.0]),
            ("near", {"url": "u2"}, [1.0, 0.0]),
            ("broken", None, None),
        ])
        store = make_store(conn)
        await store.init()

        docs = await store.get_all_documents()
        assert [d.text for d in docs] == ["far", "near", "broken"]
        assert docs[2].metadata == {}

        hits = await store.similarity_search([1.0, 0.0], 2)
        assert [h.text for h in hits] == ["near", "far"]
        assert await store.existing_urls() == {"u1", "u2"}

    @pytest.mark.asyncio
    async def test_close(self):
        conn = FakeConnection()
        store = make_store(conn)
        await store.init()
        await store.close()
        assert conn.closed
