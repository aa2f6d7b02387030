"""Pluggable vector stores.

Every backend is registered by name so a store can be built from an
explicit :class:`StoreConfig`, either at startup or when the extension
switches databases at runtime.
"""

from .base import (
    StoreConfig,
    VectorStore,
    build_store,
    get_store_factory,
    list_stores,
    register_store,
)
from .elasticsearch import ElasticsearchVectorStore
from .postgres import PostgresVectorStore
from .sqlite import SQLiteVectorStore
from .supabase import SupabaseVectorStore

# Register built-in backends
register_store(
    "supabase", lambda cfg: SupabaseVectorStore(cfg.supabase_url, cfg.supabase_key)
)
register_store("postgres", lambda cfg: PostgresVectorStore(cfg.local_db_url))
register_store("sqlite", lambda cfg: SQLiteVectorStore(cfg.sqlite_path))
register_store(
    "elasticsearch",
    lambda cfg: ElasticsearchVectorStore(
        cfg.elasticsearch_url,
        api_key=cfg.elasticsearch_api_key,
        index=cfg.elasticsearch_index,
    ),
)

__all__ = [
    "StoreConfig",
    "VectorStore",
    "build_store",
    "get_store_factory",
    "list_stores",
    "register_store",
    "ElasticsearchVectorStore",
    "PostgresVectorStore",
    "SQLiteVectorStore",
    "SupabaseVectorStore",
]
