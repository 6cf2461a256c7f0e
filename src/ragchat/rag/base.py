"""Base classes and abstract interfaces for knowledge base components."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .document import SourceType, VectorEntry, VectorSearchResult


class BaseEmbedding(ABC):
    """Abstract base class for embedding models."""

    name: str = "base"

    @abstractmethod
    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        pass

    @abstractmethod
    async def embed_query(self, text: str) -> list[float]:
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        pass


class BaseVectorStore(ABC):
    """Abstract base class for vector stores.

    Every backend upserts by entry id, returns search hits sorted by
    descending similarity and treats deletes of unknown ids or sources
    as no-ops.
    """

    name: str = "base"

    @abstractmethod
    async def init(self) -> None:
        pass

    @abstractmethod
    async def add_vectors_batch(self, entries: list["VectorEntry"]) -> None:
        pass

    @abstractmethod
    async def search(self, query_vector: list[float], top_k: int = 3) -> list["VectorSearchResult"]:
        pass

    @abstractmethod
    async def delete_by_id(self, entry_id: str) -> None:
        pass

    @abstractmethod
    async def delete_by_doc_id(self, doc_id: str) -> None:
        pass

    @abstractmethod
    async def delete_by_source(self, source: "SourceType") -> None:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class BaseChunker(ABC):
    """Abstract base class for text chunkers."""

    @abstractmethod
    def chunk(self, text: str) -> list[str]:
        pass
