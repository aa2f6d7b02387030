"""Tab ingestion pipeline.

For each new tab: scrape → chunk → embed.  A failure on one tab is
recorded in the report and the batch carries on; everything collected is
then written to the store in one call and mirrored into the FAISS index.
"""

import logging
from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, Field, computed_field

from ..models import StoredChunk
from .chunking import DEFAULT_MAX_CHARS, DEFAULT_MIN_CHARS, chunk_markdown
from .stores import VectorStore
from .vector_index import FaissIndex

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class TabDoc(BaseModel):
    """An open browser tab sent by the extension."""

    url: str = Field(..., min_length=1, description="Tab URL")
    title: str | None = Field(None, description="Tab title")


class TabOutcome(BaseModel):
    url: str
    title: str | None = None
    status: Literal["ok", "skipped", "failed"]
    chunks: int = 0
    error: str | None = None


class IngestReport(BaseModel):
    outcomes: list[TabOutcome] = Field(default_factory=list)
    stored: bool = False
    index_synced: bool = False

    @computed_field
    @property
    def count_tabs(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "ok")

    @computed_field
    @property
    def count_chunks(self) -> int:
        return sum(o.chunks for o in self.outcomes if o.status == "ok")

    @computed_field
    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")

    @computed_field
    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "skipped")


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

async def _process_tab(tab: TabDoc, scraper, embedder, max_chars: int, min_chars: int):
    markdown = await scraper.scrape_markdown(tab.url)
    if not markdown:
        return [], "no content"

    chunks = chunk_markdown(markdown, max_chars=max_chars, min_chars=min_chars)
    if not chunks:
        return [], "no usable chunks"

    embeddings = await embedder.embed_documents(chunks)
    if len(embeddings) != len(chunks):
        raise ValueError(f"got {len(embeddings)} embeddings for {len(chunks)} chunks")

    return [
        StoredChunk(
            text=chunk,
            metadata={"title": tab.title or "Untitled", "url": tab.url, "part": i + 1},
            embedding=embedding,
        )
        for i, (chunk, embedding) in enumerate(zip(chunks, embeddings))
    ], None


async def ingest_tabs(
    tabs: Sequence[TabDoc],
    *,
    store: VectorStore,
    scraper,
    embedder,
    index: FaissIndex | None = None,
    max_chars: int = DEFAULT_MAX_CHARS,
    min_chars: int = DEFAULT_MIN_CHARS,
) -> IngestReport:
    """Ingest *tabs* not already present in *store*.

    Store write errors propagate; per-tab scrape and embedding errors are
    captured in the returned :class:`IngestReport`.
    """
    report = IngestReport()
    seen = await store.existing_urls()
    to_save: list[StoredChunk] = []

    for tab in tabs:
        if tab.url in seen:
            report.outcomes.append(
                TabOutcome(url=tab.url, title=tab.title, status="skipped", error="already ingested")
            )
            continue
        seen.add(tab.url)

        try:
            chunks, reason = await _process_tab(tab, scraper, embedder, max_chars, min_chars)
        except Exception as exc:
            logger.warning("Ingest failed for %s: %s", tab.url, exc)
            report.outcomes.append(
                TabOutcome(url=tab.url, title=tab.title, status="failed", error=str(exc))
            )
            continue

        if not chunks:
            report.outcomes.append(
                TabOutcome(url=tab.url, title=tab.title, status="failed", error=reason)
            )
            continue

        to_save.extend(chunks)
        report.outcomes.append(
            TabOutcome(url=tab.url, title=tab.title, status="ok", chunks=len(chunks))
        )

    if not to_save:
        return report

    await store.add_documents(to_save)
    report.stored = True

    if index is not None:
        try:
            index.add(to_save)
            report.index_synced = True
        except Exception:
            logger.exception("Failed to sync FAISS index")

    logger.info(
        "Ingested %d chunks from %d tabs (%d failed, %d skipped)",
        report.count_chunks,
        report.count_tabs,
        report.failed,
        report.skipped,
    )
    return report
