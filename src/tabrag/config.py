"""Application settings read from the environment.

Store selection is handled separately by ``StoreConfig.from_env()`` in
``lib.stores`` so it can also be changed at runtime through ``/config``.
"""

import os

from pydantic import BaseModel

from .lib.chunking import DEFAULT_MAX_CHARS, DEFAULT_MIN_CHARS
from .lib.openai_client import DEFAULT_CHAT_MODEL, DEFAULT_EMBEDDING_MODEL
from .lib.scraper import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .lib.vector_index import DEFAULT_INDEX_PATH

_TRUE = ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"Env var {name} must be an int, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise RuntimeError(f"Env var {name} must be a float, got {value!r}") from exc


class Settings(BaseModel):
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = DEFAULT_BASE_URL
    scrape_timeout: float = DEFAULT_TIMEOUT
    openai_api_key: str = ""
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    chat_model: str = DEFAULT_CHAT_MODEL
    index_path: str = DEFAULT_INDEX_PATH
    index_enabled: bool = True
    chunk_max_chars: int = DEFAULT_MAX_CHARS
    chunk_min_chars: int = DEFAULT_MIN_CHARS

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        return cls(
            firecrawl_api_key=env.get("FIRECRAWL_API_KEY", ""),
            firecrawl_base_url=env.get("FIRECRAWL_BASE_URL", DEFAULT_BASE_URL),
            scrape_timeout=_env_float("SCRAPE_TIMEOUT", DEFAULT_TIMEOUT),
            openai_api_key=env.get("OPENAI_API_KEY", ""),
            embedding_model=env.get("OPENAI_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            chat_model=env.get("OPENAI_CHAT_MODEL", DEFAULT_CHAT_MODEL),
            index_path=env.get("FAISS_INDEX_PATH", DEFAULT_INDEX_PATH),
            index_enabled=env.get("FAISS_INDEX_ENABLED", "true").strip().lower() in _TRUE,
            chunk_max_chars=_env_int("CHUNK_MAX_CHARS", DEFAULT_MAX_CHARS),
            chunk_min_chars=_env_int("CHUNK_MIN_CHARS", DEFAULT_MIN_CHARS),
        )
