"""Ingest router – scrape, embed and store the user's open tabs.

POST /ingest
    Ingest tabs whose URL is not stored yet and return a per-tab report.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from ..dependencies import get_index, get_settings, require_store, resolve_openai_key
from ..lib.ingest import IngestReport, TabDoc, ingest_tabs
from ..security import verify_api_key

router = APIRouter(tags=["ingest"], dependencies=[Depends(verify_api_key)])

logger = logging.getLogger(__name__)


class IngestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    docs: list[TabDoc] = Field(..., min_length=1, description="Open tabs to ingest")
    api_key: str | None = Field(None, alias="apiKey", description="OpenAI API key")


class IngestResponse(BaseModel):
    ok: bool
    message: str
    report: IngestReport


@router.post("/ingest", response_model=IngestResponse)
async def ingest(request: Request, payload: IngestRequest) -> IngestResponse:
    store = require_store(request)
    key = resolve_openai_key(request, payload.api_key)
    settings = get_settings(request)

    try:
        report = await ingest_tabs(
            payload.docs,
            store=store,
            scraper=request.app.state.scraper,
            embedder=request.app.state.embedder_factory(key),
            index=get_index(request),
            max_chars=settings.chunk_max_chars,
            min_chars=settings.chunk_min_chars,
        )
    except Exception as exc:
        logger.exception("Ingest failed")
        raise HTTPException(status_code=502, detail=f"Ingest failed: {exc}") from exc

    if report.skipped == len(report.outcomes):
        return IngestResponse(ok=True, message="All tabs already exist.", report=report)

    if not report.stored:
        raise HTTPException(
            status_code=400,
            detail={"message": "No valid content retrieved.", "report": report.model_dump()},
        )

    return IngestResponse(
        ok=True,
        message=f"Saved {report.count_chunks} chunks from {report.count_tabs} new tabs.",
        report=report,
    )
