"""Config router – inspect or switch the active vector store.

GET /config
    Current backend and the backends that can be selected.

POST /config
    Build and initialize a store from a :class:`StoreConfig` and make it
    the active one.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from ..lib.stores import StoreConfig, build_store, list_stores
from ..security import verify_api_key

router = APIRouter(tags=["config"], dependencies=[Depends(verify_api_key)])

logger = logging.getLogger(__name__)


class ConfigStatusResponse(BaseModel):
    configured: bool
    mode: str | None
    backends: list[str]


class ConfigSwitchResponse(BaseModel):
    ok: bool
    mode: str


@router.get("/config", response_model=ConfigStatusResponse)
async def config_status(request: Request) -> ConfigStatusResponse:
    store = getattr(request.app.state, "store", None)
    return ConfigStatusResponse(
        configured=store is not None,
        mode=store.backend if store is not None else None,
        backends=list_stores(),
    )


@router.post("/config", response_model=ConfigSwitchResponse)
async def config_switch(request: Request, payload: StoreConfig) -> ConfigSwitchResponse:
    try:
        store = build_store(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    logger.info("Switching to %s", payload.backend)
    try:
        await store.init()
    except Exception as exc:
        logger.exception("Config switch to '%s' failed", payload.backend)
        raise HTTPException(
            status_code=502,
            detail=f"Could not initialize '{payload.backend}' store",
        ) from exc

    previous = getattr(request.app.state, "store", None)
    request.app.state.store = store
    if previous is not None:
        try:
            await previous.close()
        except Exception:
            logger.warning("Failed to close previous %s store", previous.backend, exc_info=True)

    return ConfigSwitchResponse(ok=True, mode=store.backend)
