from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    store: str | None = None
    indexed_chunks: int = 0


@router.get("/health", response_model=HealthResponse, status_code=200)
async def healthcheck(request: Request):
    store = getattr(request.app.state, "store", None)
    index = getattr(request.app.state, "index", None)
    return {
        "status": "ok",
        "store": store.backend if store is not None else None,
        "indexed_chunks": len(index) if index is not None else 0,
    }
