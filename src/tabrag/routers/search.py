"""Search router – semantic search over ingested tab chunks."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from ..dependencies import get_index, require_store, resolve_openai_key
from ..lib.retrieval import retrieve
from ..lib.vector_index import normalize_hit_metadata
from ..models import HitMetadata, SearchHit
from ..security import verify_api_key

router = APIRouter(tags=["search"], dependencies=[Depends(verify_api_key)])

logger = logging.getLogger(__name__)

SEARCH_K = 5


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    q: str = Field(..., description="Natural-language query")
    api_key: str | None = Field(None, alias="apiKey", description="OpenAI API key")
    k: int = Field(SEARCH_K, ge=1, le=50, description="Number of results")


class SearchResponse(BaseModel):
    ok: bool
    results: list[SearchHit]


@router.post("/search", response_model=SearchResponse)
async def search(request: Request, payload: SearchRequest) -> SearchResponse:
    if not payload.q.strip():
        raise HTTPException(status_code=400, detail="Query required")
    key = resolve_openai_key(request, payload.api_key)
    store = require_store(request)

    try:
        query_embedding = await request.app.state.embedder_factory(key).embed_query(payload.q)
        hits = await retrieve(
            query_embedding,
            store=store,
            index=get_index(request),
            k=payload.k,
            fallback_k=payload.k,
        )
    except Exception as exc:
        logger.exception("Search failed")
        raise HTTPException(status_code=502, detail="Search failed") from exc

    return SearchResponse(
        ok=True,
        results=[
            SearchHit(
                content=h.text,
                metadata=HitMetadata(**normalize_hit_metadata(h.metadata)),
                score=h.score,
            )
            for h in hits
        ],
    )
