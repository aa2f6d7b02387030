"""Tests for store configuration and the backend registry."""

import logging
import os
from unittest.mock import patch

import pytest

from ...models import StoredChunk
from . import (
    ElasticsearchVectorStore,
    PostgresVectorStore,
    SQLiteVectorStore,
    StoreConfig,
    SupabaseVectorStore,
    base,
    build_store,
    list_stores,
)
from .base import warn_if_truncated

STORE_ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "LOCAL_DB_URL",
    "SQLITE_PATH",
    "ELASTICSEARCH_URL",
)


@pytest.fixture
def clean_env():
    env = {k: v for k, v in os.environ.items() if k not in STORE_ENV_VARS}
    with patch.dict(os.environ, env, clear=True):
        yield


class TestStoreConfigFromEnv:
    def test_nothing_configured(self, clean_env):
        assert StoreConfig.from_env() is None

    def test_supabase_wins(self, clean_env):
        os.environ.update({
            "SUPABASE_URL": "https://proj.supabase.co",
            "SUPABASE_SERVICE_ROLE_KEY": "key",
            "LOCAL_DB_URL": "postgresql://localhost/tabs",
        })
        cfg = StoreConfig.from_env()
        assert cfg.backend == "supabase"
        assert cfg.supabase_key == "key"

    def test_supabase_needs_both_vars(self, clean_env):
        os.environ.update({"SUPABASE_URL": "https://proj.supabase.co", "SQLITE_PATH": "/tmp/t.db"})
        assert StoreConfig.from_env().backend == "sqlite"

    def test_local_postgres(self, clean_env):
        os.environ["LOCAL_DB_URL"] = "postgresql://localhost/tabs"
        assert StoreConfig.from_env().backend == "postgres"

    def test_elasticsearch(self, clean_env):
        os.environ["ELASTICSEARCH_URL"] = "http://localhost:9200"
        cfg = StoreConfig.from_env()
        assert cfg.backend == "elasticsearch"
        assert cfg.elasticsearch_index == "tab_chunks"


class TestBuildStore:
    def test_all_backends_registered(self):
        assert set(list_stores()) == {"supabase", "postgres", "sqlite", "elasticsearch"}

    @pytest.mark.parametrize(
        "config, expected",
        [
            (StoreConfig(backend="supabase", supabase_url="https://p.supabase.co", supabase_key="k"), SupabaseVectorStore),
            (StoreConfig(backend="postgres", local_db_url="postgresql://localhost/tabs"), PostgresVectorStore),
            (StoreConfig(backend="sqlite", sqlite_path="/tmp/tabs.db"), SQLiteVectorStore),
            (StoreConfig(backend="elasticsearch", elasticsearch_url="http://localhost:9200"), ElasticsearchVectorStore),
        ],
    )
    def test_builds_expected_type(self, config, expected):
        store = build_store(config)
        assert isinstance(store, expected)
        assert store.backend == config.backend

    def test_missing_options_raise_value_error(self):
        with pytest.raises(ValueError, match="supabase_key"):
            build_store(StoreConfig(backend="supabase", supabase_url="https://p.supabase.co"))


class TestWarnIfTruncated:
    def test_below_cap_is_quiet(self, caplog):
        docs = [StoredChunk(text="a")]
        with caplog.at_level(logging.WARNING):
            assert warn_if_truncated(docs, "postgres") is docs
        assert caplog.text == ""

    def test_at_cap_warns(self, monkeypatch, caplog):
        monkeypatch.setattr(base, "MAX_FETCH_ROWS", 1)
        with caplog.at_level(logging.WARNING):
            warn_if_truncated([StoredChunk(text="a")], "supabase")
        assert "supabase returned 1 rows" in caplog.text
