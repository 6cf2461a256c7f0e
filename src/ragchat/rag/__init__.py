"""Knowledge base (retrieval-augmented generation) components for ragchat."""

from .document import (
    Document,
    SourceType,
    VectorEntry,
    VectorMetadata,
    VectorSearchResult,
    VectorStats,
    generate_document_id,
)
from .base import BaseEmbedding, BaseVectorStore, BaseChunker
from .chunking import FixedSizeChunker
from .embeddings import (
    EmbeddingGenerator,
    FakeEmbedding,
    GeminiEmbedding,
    LocalEmbedding,
    OpenAIEmbedding,
    cosine_similarity,
)
from .vectorstore import ChromaVectorStore, FallbackVectorStore, MemoryVectorStore, SQLiteVectorStore
from .catalog import DocumentCatalog, STORAGE_KEY
from .knowledge_base import KnowledgeBase, ChunkOutcome, format_citation
from .ingestion import DocumentIngestor

__all__ = [
    "Document", "SourceType", "VectorEntry", "VectorMetadata", "VectorSearchResult", "VectorStats",
    "generate_document_id",
    "BaseEmbedding", "BaseVectorStore", "BaseChunker",
    "FixedSizeChunker",
    "EmbeddingGenerator", "FakeEmbedding", "GeminiEmbedding", "LocalEmbedding", "OpenAIEmbedding",
    "cosine_similarity",
    "ChromaVectorStore", "FallbackVectorStore", "MemoryVectorStore", "SQLiteVectorStore",
    "DocumentCatalog", "STORAGE_KEY",
    "KnowledgeBase", "ChunkOutcome", "format_citation",
    "DocumentIngestor",
]
