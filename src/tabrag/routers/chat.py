"""Chat router – answer questions about the current tab with RAG."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from ..dependencies import get_index, require_store, resolve_openai_key
from ..lib.answer import NO_CONTEXT_ANSWER, SYSTEM_PROMPT, build_context, build_prompt
from ..lib.retrieval import retrieve
from ..security import verify_api_key

router = APIRouter(tags=["chat"], dependencies=[Depends(verify_api_key)])

logger = logging.getLogger(__name__)

# Index hits fetched before filtering down to the current tab.
CHAT_K = 10


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(..., description="User question")
    api_key: str | None = Field(None, alias="apiKey", description="OpenAI API key")
    url: str | None = Field(None, description="URL of the tab the question is about")


class ChatResponse(BaseModel):
    answer: str


@router.post("/chat", response_model=ChatResponse)
async def chat(request: Request, payload: ChatRequest) -> ChatResponse:
    if not payload.question.strip():
        raise HTTPException(status_code=400, detail="Question required.")
    key = resolve_openai_key(request, payload.api_key)
    store = require_store(request)

    try:
        query_embedding = await request.app.state.embedder_factory(key).embed_query(
            payload.question
        )
        hits = await retrieve(
            query_embedding,
            store=store,
            index=get_index(request),
            k=CHAT_K,
            url=payload.url,
        )
        if not hits:
            return ChatResponse(answer=NO_CONTEXT_ANSWER)

        prompt = build_prompt(build_context(hits), payload.question)
        answer = await request.app.state.chat_factory(key).complete(SYSTEM_PROMPT, prompt)
    except Exception as exc:
        logger.exception("Chat failed")
        raise HTTPException(status_code=502, detail="Chat failed") from exc

    return ChatResponse(answer=answer)
