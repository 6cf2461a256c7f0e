"""Document, vector entry and search result structures for the knowledge base."""

import random
import string
import time
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SourceType(str, Enum):
    """Provenance of a knowledge base document."""
    PDF = "pdf"
    URL = "url"
    SEARCH = "search"

    @property
    def label(self) -> str:
        return _SOURCE_LABELS[self]


_SOURCE_LABELS = {
    SourceType.PDF: "PDF",
    SourceType.URL: "Web Page",
    SourceType.SEARCH: "Web Search Result",
}

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_document_id() -> str:
    """Millisecond timestamp followed by a 9-character base-36 suffix."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}{suffix}"


class Document(BaseModel):
    """A document in the knowledge base catalog."""
    id: str = Field(default_factory=generate_document_id)
    name: str
    content: str
    chunks: list[str] = Field(default_factory=list)
    uploaded_at: datetime = Field(default_factory=datetime.now)
    source: SourceType = SourceType.PDF
    source_url: Optional[str] = None
    has_embeddings: bool = False
    embedded_chunks: int = 0
    embedding_provider: Optional[str] = None


class VectorMetadata(BaseModel):
    """Denormalized chunk data, enough to render a citation."""
    doc_id: str
    doc_name: str
    chunk_index: int
    text: str
    source: SourceType
    source_url: Optional[str] = None


class VectorEntry(BaseModel):
    """An embedded chunk as persisted in a vector store."""
    id: str
    vector: list[float]
    metadata: VectorMetadata

    @staticmethod
    def chunk_id(doc_id: str, chunk_index: int) -> str:
        return f"{doc_id}_chunk_{chunk_index}"


class VectorSearchResult(BaseModel):
    """A nearest-neighbor hit; higher score is more relevant."""
    id: str
    score: float
    metadata: VectorMetadata


class VectorStats(BaseModel):
    """Aggregate health readout of the knowledge base."""
    count: int
    documents_with_embeddings: int
