"""Tests for the OpenAI wrappers, using a fake SDK client."""

from types import SimpleNamespace

import pytest

from .openai_client import OpenAIChat, OpenAIEmbedder, is_valid_openai_key


class FakeEmbeddings:
    def __init__(self):
        self.calls: list[dict] = []

    async def create(self, *, model, input):
        self.calls.append({"model": model, "input": list(input)})
        return SimpleNamespace(
            data=[SimpleNamespace(embedding=[float(len(text)), 1.0]) for text in input]
        )


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class TestIsValidOpenAIKey:
    def test_valid(self):
        assert is_valid_openai_key("sk-abc")

    def test_invalid(self):
        assert not is_valid_openai_key("")
        assert not is_valid_openai_key(None)
        assert not is_valid_openai_key("pk-abc")


class TestOpenAIEmbedder:
    @pytest.mark.asyncio
    async def test_batches_and_preserves_order(self):
        fake = FakeEmbeddings()
        embedder = OpenAIEmbedder("sk-test", model="m", batch_size=2, client=SimpleNamespace(embeddings=fake))
        vectors = await embedder.embed_documents(["a", "bb", "ccc"])
        assert vectors == [[1.0, 1.0], [2.0, 1.0], [3.0, 1.0]]
        assert [c["input"] for c in fake.calls] == [["a", "bb"], ["ccc"]]
        assert all(c["model"] == "m" for c in fake.calls)

    @pytest.mark.asyncio
    async def test_embed_query(self):
        embedder = OpenAIEmbedder("sk-test", client=SimpleNamespace(embeddings=FakeEmbeddings()))
        assert await embedder.embed_query("four") == [4.0, 1.0]

    @pytest.mark.asyncio
    async def test_no_texts_no_calls(self):
        fake = FakeEmbeddings()
        embedder = OpenAIEmbedder("sk-test", client=SimpleNamespace(embeddings=fake))
        assert await embedder.embed_documents([]) == []
        assert fake.calls == []


class TestOpenAIChat:
    @pytest.mark.asyncio
    async def test_complete_sends_system_and_user(self):
        completions = FakeCompletions("  The answer.  ")
        client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
        chat = OpenAIChat("sk-test", model="gpt-test", client=client)

        answer = await chat.complete("system text", "user text")

        assert answer == "The answer."
        call = completions.calls[0]
        assert call["model"] == "gpt-test"
        assert call["temperature"] == 0.0
        assert call["messages"] == [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ]

    @pytest.mark.asyncio
    async def test_none_content_becomes_empty(self):
        client = SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(None)))
        assert await OpenAIChat("sk-test", client=client).complete("s", "u") == ""
