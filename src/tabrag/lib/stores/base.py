"""Base abstraction for vector stores.

Each backend persists embedded tab chunks and can hand them back for
retrieval.  Backends are registered by name in a global registry so the
API layer can build one from an explicit :class:`StoreConfig` rather than
from process-wide state.
"""

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Literal

from pydantic import BaseModel, Field

from ...models import ScoredChunk, StoredChunk
from ..similarity import rank_top_k

logger = logging.getLogger(__name__)

# Hard cap on rows pulled back for local ranking and URL dedupe.
MAX_FETCH_ROWS = 10000


def warn_if_truncated(docs: list[StoredChunk], backend: str) -> list[StoredChunk]:
    """Log when a fetch hit :data:`MAX_FETCH_ROWS` and rows were left behind."""
    if len(docs) >= MAX_FETCH_ROWS:
        logger.warning(
            "%s returned %d rows, the fetch cap; later chunks are ignored "
            "for local ranking and URL dedupe",
            backend,
            len(docs),
        )
    return docs


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

BackendName = Literal["supabase", "postgres", "sqlite", "elasticsearch"]


class StoreConfig(BaseModel):
    """Which backend to use and how to reach it."""

    backend: BackendName = Field(..., description="Vector store backend name")
    supabase_url: str | None = Field(None, description="Supabase project URL")
    supabase_key: str | None = Field(None, description="Supabase service role key")
    local_db_url: str | None = Field(None, description="Postgres connection string")
    sqlite_path: str | None = Field(None, description="Path to the SQLite database file")
    elasticsearch_url: str | None = Field(None, description="Elasticsearch endpoint")
    elasticsearch_api_key: str | None = Field(None, description="Elasticsearch API key")
    elasticsearch_index: str = Field("tab_chunks", description="Elasticsearch index name")

    def validate_for_backend(self) -> None:
        """Raise ``ValueError`` if the options for ``backend`` are missing."""
        required = {
            "supabase": ("supabase_url", "supabase_key"),
            "postgres": ("local_db_url",),
            "sqlite": ("sqlite_path",),
            "elasticsearch": ("elasticsearch_url",),
        }[self.backend]
        missing = [name for name in required if not getattr(self, name)]
        if missing:
            raise ValueError(f"Missing {', '.join(missing)} for backend '{self.backend}'")

    @classmethod
    def from_env(cls) -> "StoreConfig | None":
        """Pick the default backend from the environment, or ``None``."""
        env = os.environ
        if env.get("SUPABASE_URL") and env.get("SUPABASE_SERVICE_ROLE_KEY"):
            return cls(
                backend="supabase",
                supabase_url=env["SUPABASE_URL"],
                supabase_key=env["SUPABASE_SERVICE_ROLE_KEY"],
            )
        if env.get("LOCAL_DB_URL"):
            return cls(backend="postgres", local_db_url=env["LOCAL_DB_URL"])
        if env.get("SQLITE_PATH"):
            return cls(backend="sqlite", sqlite_path=env["SQLITE_PATH"])
        if env.get("ELASTICSEARCH_URL"):
            return cls(
                backend="elasticsearch",
                elasticsearch_url=env["ELASTICSEARCH_URL"],
                elasticsearch_api_key=env.get("ELASTICSEARCH_API_KEY") or None,
                elasticsearch_index=env.get("ELASTICSEARCH_INDEX", "tab_chunks"),
            )
        return None


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class VectorStore(ABC):
    """Abstract base class for vector store backends.

    Stores never embed text themselves: chunks arrive with their
    embeddings already computed.
    """

    @property
    @abstractmethod
    def backend(self) -> str:
        """Registry name of this backend (e.g. ``sqlite``)."""
        ...

    @abstractmethod
    async def init(self) -> None:
        """Connect and create the storage schema if needed."""
        ...

    @abstractmethod
    async def add_documents(self, chunks: Sequence[StoredChunk]) -> None:
        ...

    @abstractmethod
    async def get_all_documents(self) -> list[StoredChunk]:
        ...

    async def similarity_search(
        self,
        query_embedding: Sequence[float],
        k: int = 5,
    ) -> list[ScoredChunk]:
        """Rank every stored chunk locally against *query_embedding*.

        Backends with server-side nearest-neighbour search override this.
        """
        docs = await self.get_all_documents()
        return rank_top_k(query_embedding, docs, k)

    async def existing_urls(self) -> set[str]:
        docs = await self.get_all_documents()
        return {d.metadata.get("url") for d in docs if d.metadata.get("url")}

    async def close(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

StoreFactory = Callable[[StoreConfig], VectorStore]

_factories: dict[str, StoreFactory] = {}


def register_store(name: str, factory: StoreFactory) -> None:
    """Register a store factory under *name*."""
    _factories[name] = factory


def get_store_factory(name: str) -> StoreFactory | None:
    """Look up a registered factory by name.  Returns ``None`` if not found."""
    return _factories.get(name)


def list_stores() -> list[str]:
    """Return the names of all registered backends."""
    return list(_factories.keys())


def build_store(config: StoreConfig) -> VectorStore:
    """Build an uninitialized store for *config*.

    Raises ``ValueError`` for incomplete configs and ``LookupError`` for
    backends that are not registered.
    """
    config.validate_for_backend()
    factory = get_store_factory(config.backend)
    if factory is None:
        raise LookupError(f"Unknown store backend: {config.backend}")
    return factory(config)
