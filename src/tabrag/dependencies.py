"""Accessors for the application-scoped objects kept on ``app.state``.

The lifespan in ``main.py`` populates ``app.state``; tests replace the
attributes with fakes.
"""

from fastapi import HTTPException, Request

from .config import Settings
from .lib.openai_client import is_valid_openai_key
from .lib.stores import VectorStore


def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else Settings.from_env()


def require_store(request: Request) -> VectorStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=400, detail="No database configured.")
    return store


def get_index(request: Request):
    return getattr(request.app.state, "index", None)


def resolve_openai_key(request: Request, supplied: str | None) -> str:
    """Use the key sent by the extension, else the server's own key."""
    key = supplied or get_settings(request).openai_api_key
    if not is_valid_openai_key(key):
        raise HTTPException(status_code=400, detail="Missing or invalid OpenAI API key")
    return key
