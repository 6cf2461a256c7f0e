"""
Test doubles shared across the test modules.
"""

from typing import Any, AsyncIterator

from ragchat.providers.base import LLMConfig, LLMProvider
from ragchat.rag import BaseEmbedding, FakeEmbedding, SourceType, VectorEntry, VectorMetadata


class FailingEmbedding(BaseEmbedding):
    """Embedding backend that fails for texts containing ``marker`` (or always)."""

    name = "failing"

    def __init__(self, marker: str | None = None, dimension: int = 32):
        self.marker = marker
        self.calls = 0
        self._fake = FakeEmbedding(dimension=dimension)

    @property
    def dimension(self) -> int:
        return self._fake.dimension

    async def embed_query(self, text: str) -> list[float]:
        self.calls += 1
        if self.marker is None or self.marker in text:
            raise RuntimeError("embedding backend down")
        return await self._fake.embed_query(text)

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_query(text) for text in texts]


class ScriptedProvider(LLMProvider):
    """Chat provider that streams a fixed list of fragments and records its input."""

    id = "scripted"
    name = "Scripted"
    default_model = "scripted-1"

    def __init__(self, fragments: list[str], error: Exception | None = None):
        self.fragments = fragments
        self.error = error
        self.received: list[list[dict[str, Any]]] = []

    async def chat(self, messages: list[dict[str, Any]], config: LLMConfig) -> AsyncIterator[str]:
        self.received.append(messages)
        for fragment in self.fragments:
            yield fragment
        if self.error is not None:
            raise self.error

    def get_available_models(self) -> list[str]:
        return [self.default_model]


def make_entry(
    entry_id: str,
    vector: list[float],
    doc_id: str = "doc-1",
    source: SourceType = SourceType.PDF,
    source_url: str | None = None,
    text: str = "chunk text",
) -> VectorEntry:
    return VectorEntry(
        id=entry_id,
        vector=vector,
        metadata=VectorMetadata(
            doc_id=doc_id,
            doc_name=f"{doc_id}.pdf",
            chunk_index=0,
            text=text,
            source=source,
            source_url=source_url,
        ),
    )
