"""
ragchat - Retrieval-augmented chat over PDFs, web pages and live web search.
"""

from ragchat.app import RagChatApp
from ragchat.chat import ChatSession, TurnState, WebContextBuilder
from ragchat.core.message import Message, Role
from ragchat.exceptions import (
    ConfigurationError,
    EmbeddingError,
    FetchError,
    IngestionError,
    ProviderError,
    RagChatError,
    SearchError,
    StorageError,
    VectorStoreUnavailableError,
)
from ragchat.providers import LLMConfig, get_provider
from ragchat.rag import (
    # Data model
    Document,
    SourceType,
    VectorEntry,
    VectorMetadata,
    VectorSearchResult,
    VectorStats,
    # Embeddings
    EmbeddingGenerator,
    FakeEmbedding,
    LocalEmbedding,
    # Vector Stores
    ChromaVectorStore,
    FallbackVectorStore,
    MemoryVectorStore,
    SQLiteVectorStore,
    # Knowledge base
    DocumentCatalog,
    DocumentIngestor,
    FixedSizeChunker,
    KnowledgeBase,
)
from ragchat.utils.config import AppConfig, load_config

__version__ = "0.1.0"
__all__ = [
    # App
    "RagChatApp",
    "AppConfig",
    "load_config",
    # Chat
    "ChatSession",
    "TurnState",
    "WebContextBuilder",
    "Message",
    "Role",
    "LLMConfig",
    "get_provider",
    # Errors
    "RagChatError",
    "ConfigurationError",
    "EmbeddingError",
    "FetchError",
    "IngestionError",
    "ProviderError",
    "SearchError",
    "StorageError",
    "VectorStoreUnavailableError",
    # RAG
    "Document",
    "SourceType",
    "VectorEntry",
    "VectorMetadata",
    "VectorSearchResult",
    "VectorStats",
    "EmbeddingGenerator",
    "FakeEmbedding",
    "LocalEmbedding",
    "ChromaVectorStore",
    "FallbackVectorStore",
    "MemoryVectorStore",
    "SQLiteVectorStore",
    "DocumentCatalog",
    "DocumentIngestor",
    "FixedSizeChunker",
    "KnowledgeBase",
]
