"""
Test configuration and fixtures.
"""

import pytest

from ragchat.providers.base import LLMConfig
from ragchat.rag import (
    DocumentCatalog,
    EmbeddingGenerator,
    FakeEmbedding,
    FixedSizeChunker,
    KnowledgeBase,
    MemoryVectorStore,
)


@pytest.fixture
def fake_embedding():
    return FakeEmbedding(dimension=32)


@pytest.fixture
def generator(fake_embedding):
    return EmbeddingGenerator(local=fake_embedding)


@pytest.fixture
def memory_store():
    return MemoryVectorStore()


@pytest.fixture
def catalog(tmp_path):
    return DocumentCatalog(tmp_path / "documents.json")


@pytest.fixture
def knowledge_base(memory_store, generator, catalog):
    """Knowledge base over an in-memory store with 100-char chunks."""
    return KnowledgeBase(memory_store, generator, catalog, FixedSizeChunker(100, 10))


@pytest.fixture
def llm_config():
    return LLMConfig(provider="scripted", api_key="test-key")
