"""Thin async wrappers around the OpenAI embeddings and chat APIs.

The extension supplies its own OpenAI key per request, so these objects
are cheap and built per request by the factories on ``app.state``.
"""

from collections.abc import Iterable

from openai import AsyncOpenAI

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"
EMBED_BATCH_SIZE = 64


def is_valid_openai_key(key: str | None) -> bool:
    return bool(key) and key.startswith("sk-")


def _batched(it: Iterable[str], n: int):
    buf: list[str] = []
    for x in it:
        buf.append(x)
        if len(buf) == n:
            yield buf
            buf = []
    if buf:
        yield buf


class OpenAIEmbedder:
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_EMBEDDING_MODEL,
        batch_size: int = EMBED_BATCH_SIZE,
        client=None,
    ):
        self.model = model
        self.batch_size = batch_size
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in batches, preserving order."""
        out: list[list[float]] = []
        for batch in _batched(texts, self.batch_size):
            resp = await self.client.embeddings.create(model=self.model, input=batch)
            out.extend(item.embedding for item in resp.data)
        return out

    async def embed_query(self, text: str) -> list[float]:
        vectors = await self.embed_documents([text])
        return vectors[0]


class OpenAIChat:
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_CHAT_MODEL,
        temperature: float = 0.0,
        client=None,
    ):
        self.model = model
        self.temperature = temperature
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def complete(self, system: str, user: str) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=self.temperature,
        )
        return (resp.choices[0].message.content or "").strip()
