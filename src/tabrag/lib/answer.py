"""Prompt assembly for tab question answering."""

from collections.abc import Sequence

from ..models import ScoredChunk

SYSTEM_PROMPT = "You are a helpful assistant that answers based on given context."

NO_CONTEXT_ANSWER = "No relevant information found for this tab."


def build_context(chunks: Sequence[ScoredChunk]) -> str:
    return "\n\n".join(c.text for c in chunks if c.text)


def build_prompt(context: str, question: str) -> str:
    return (
        "Answer concisely based on the following context (from this tab only):\n"
        f"{context}\n\n"
        f"Question: {question}"
    )
