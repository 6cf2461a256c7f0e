"""Tests for the document catalog, knowledge base manager and ingestion flows."""

import json
import logging

import pytest

from ragchat.exceptions import FetchError, IngestionError, SearchError, StorageError
from ragchat.rag import (
    STORAGE_KEY,
    Document,
    DocumentCatalog,
    DocumentIngestor,
    EmbeddingGenerator,
    FixedSizeChunker,
    KnowledgeBase,
    MemoryVectorStore,
    SourceType,
    VectorEntry,
    VectorSearchResult,
    format_citation,
    generate_document_id,
)
from ragchat.web.search import WebSearchResult

from fakes import FailingEmbedding


class BrokenStore(MemoryVectorStore):
    """Store whose writes and searches fail."""

    async def add_vectors_batch(self, entries):
        raise RuntimeError("disk on fire")

    async def search(self, query_vector, top_k=3):
        raise RuntimeError("disk on fire")


class TestDocument:
    """Tests for the Document model and vector entry ids."""

    def test_generated_ids_unique(self):
        """Test that generated document ids are unique."""
        ids = {generate_document_id() for _ in range(100)}
        assert len(ids) == 100

    def test_defaults(self):
        """Test document default values."""
        doc = Document(name="a.pdf", content="text")
        assert doc.source == SourceType.PDF
        assert doc.has_embeddings is False
        assert doc.embedded_chunks == 0
        assert doc.chunks == []

    def test_chunk_id(self):
        """Test the composite chunk id format."""
        assert VectorEntry.chunk_id("123abc", 4) == "123abc_chunk_4"

    def test_source_labels(self):
        """Test display labels for each source type."""
        assert SourceType.PDF.label == "PDF"
        assert SourceType.URL.label == "Web Page"
        assert SourceType.SEARCH.label == "Web Search Result"


class TestDocumentCatalog:
    """Tests for DocumentCatalog persistence."""

    def test_save_and_load(self, tmp_path):
        """Test writing the snapshot and reading it back."""
        path = tmp_path / "documents.json"
        catalog = DocumentCatalog(path)
        catalog.add(Document(name="a.pdf", content="alpha", chunks=["alpha"]))

        with open(path) as f:
            data = json.load(f)
        assert data[STORAGE_KEY][0]["name"] == "a.pdf"

        reloaded = DocumentCatalog(path)
        docs = reloaded.load()
        assert len(docs) == 1
        assert docs[0].chunks == ["alpha"]
        assert docs[0].source == SourceType.PDF

    def test_missing_file(self, tmp_path):
        """Test that a missing file loads as empty."""
        assert DocumentCatalog(tmp_path / "nope.json").load() == []

    def test_corrupt_file(self, tmp_path):
        """Test that a corrupt file loads as empty."""
        path = tmp_path / "documents.json"
        path.write_text("{not json")
        catalog = DocumentCatalog(path)
        assert catalog.load() == []
        assert len(catalog) == 0

    def test_unwritable(self, tmp_path):
        """Test that a failed write raises StorageError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        catalog = DocumentCatalog(blocker / "documents.json")
        with pytest.raises(StorageError):
            catalog.add(Document(name="a.pdf", content="alpha"))

    def test_in_memory(self):
        """Test a catalog with no backing file."""
        catalog = DocumentCatalog()
        doc = Document(name="a.pdf", content="alpha")
        catalog.add(doc)
        assert catalog.get(doc.id) is doc
        assert catalog.get("missing") is None


class TestKnowledgeBase:
    """Tests for KnowledgeBase."""

    @pytest.mark.asyncio
    async def test_add_document(self, knowledge_base, memory_store):
        """Test chunking, embedding and storing a document."""
        content = "word " * 60
        doc = await knowledge_base.add_document("notes.pdf", content)

        assert len(doc.chunks) == 4
        assert doc.has_embeddings
        assert doc.embedded_chunks == 4
        assert doc.embedding_provider == "local"
        assert await memory_store.count() == 4
        for i in range(4):
            entry = memory_store.get(f"{doc.id}_chunk_{i}")
            assert entry.metadata.chunk_index == i
            assert entry.metadata.text == doc.chunks[i]
            assert entry.metadata.doc_name == "notes.pdf"

    @pytest.mark.asyncio
    async def test_uses_given_catalog_and_chunker(self, memory_store, generator, tmp_path):
        """Test that an empty catalog passed in is kept and written to disk."""
        path = tmp_path / "documents.json"
        catalog = DocumentCatalog(path)
        chunker = FixedSizeChunker(50, 5)
        kb = KnowledgeBase(memory_store, generator, catalog, chunker)

        assert kb.catalog is catalog
        assert kb.chunker is chunker

        doc = await kb.add_document("a.pdf", "persistent content")
        assert path.exists()
        with open(path) as f:
            assert json.load(f)[STORAGE_KEY][0]["id"] == doc.id

    @pytest.mark.asyncio
    async def test_empty_content(self, knowledge_base, memory_store):
        """Test that an empty document is stored with no chunks and no vectors."""
        progress = []
        doc = await knowledge_base.add_document("x", "", on_progress=lambda d, t: progress.append((d, t)))

        assert doc.chunks == []
        assert doc.has_embeddings
        assert doc.embedded_chunks == 0
        assert progress == []
        assert await memory_store.count() == 0
        assert knowledge_base.get_document(doc.id) is doc

    @pytest.mark.asyncio
    async def test_search_empty_knowledge_base(self, knowledge_base):
        """Test that searching an empty knowledge base returns no citations."""
        assert await knowledge_base.search_documents("refund policy", 3) == []

    @pytest.mark.asyncio
    async def test_progress_after_every_chunk(self, knowledge_base):
        """Test that progress is reported after each chunk."""
        progress = []
        doc = await knowledge_base.add_document("notes.pdf", "x" * 250, on_progress=lambda d, t: progress.append((d, t)))
        total = len(doc.chunks)
        assert progress == [(i, total) for i in range(1, total + 1)]

    @pytest.mark.asyncio
    async def test_partial_embedding_failure(self, memory_store, catalog):
        """Test that failed chunks are skipped and the rest are stored."""
        generator = EmbeddingGenerator(local=FailingEmbedding(marker="FAIL"))
        kb = KnowledgeBase(memory_store, generator, catalog, FixedSizeChunker(10, 0))
        progress = []

        doc = await kb.add_document("mixed.pdf", "aaaaaaaaaaFAILFAILFAbbbbbbbbbb", on_progress=lambda d, t: progress.append(d))

        assert doc.chunks == ["aaaaaaaaaa", "FAILFAILFA", "bbbbbbbbbb"]
        assert progress == [1, 2, 3]
        assert doc.has_embeddings
        assert doc.embedded_chunks == 2
        assert memory_store.get(f"{doc.id}_chunk_1") is None
        assert await memory_store.count() == 2

    @pytest.mark.asyncio
    async def test_store_failure_keeps_document(self, generator, catalog):
        """Test that a vector store failure still keeps the document."""
        kb = KnowledgeBase(BrokenStore(), generator, catalog)
        doc = await kb.add_document("notes.pdf", "some content to index")

        assert kb.get_document(doc.id) is doc
        assert not doc.has_embeddings
        assert len(DocumentCatalog(catalog.path).load()) == 1

    @pytest.mark.asyncio
    async def test_search_returns_citations(self, knowledge_base):
        """Test that search returns formatted citations by relevance."""
        await knowledge_base.add_document("cats.pdf", "Cats sleep for most of the day.")
        await knowledge_base.add_document(
            "example.com", "Dogs enjoy long walks.", SourceType.URL, "https://example.com/dogs"
        )

        citations = await knowledge_base.search_documents("Dogs enjoy long walks.", top_k=2)
        assert len(citations) == 2
        assert citations[0].startswith("Source: example.com (https://example.com/dogs) [Web Page]")
        assert "Relevance: 100.0%" in citations[0]
        assert citations[0].endswith('"Dogs enjoy long walks."')
        assert citations[1].startswith("Source: cats.pdf [PDF]")

    @pytest.mark.asyncio
    async def test_search_failure_returns_empty(self, generator, catalog):
        """Test that a search failure returns no citations."""
        kb = KnowledgeBase(BrokenStore(), generator, catalog)
        assert await kb.search_documents("anything") == []

    @pytest.mark.asyncio
    async def test_search_embedding_failure_returns_empty(self, memory_store, catalog):
        """Test that a query embedding failure returns no citations."""
        kb = KnowledgeBase(memory_store, EmbeddingGenerator(local=FailingEmbedding()), catalog)
        assert await kb.search_documents("anything") == []

    @pytest.mark.asyncio
    async def test_delete_by_source_scopes_retrieval(self, knowledge_base, memory_store):
        """Test that deleting a source removes it from retrieval."""
        pdf = await knowledge_base.add_document("guide.pdf", "Shared topic: gardening tips from the guide.")
        await knowledge_base.add_document(
            "blog.example", "Shared topic: gardening tips from the blog.", SourceType.URL, "https://blog.example/post"
        )

        removed = await knowledge_base.delete_by_source(SourceType.URL)

        assert removed == 1
        assert [d.id for d in knowledge_base.get_all_documents()] == [pdf.id]
        citations = await knowledge_base.search_documents("gardening tips", top_k=10)
        assert citations
        assert all("[Web Page]" not in c for c in citations)
        assert await memory_store.count() == len(pdf.chunks)

    @pytest.mark.asyncio
    async def test_delete_document(self, knowledge_base, memory_store):
        """Test deleting a document and its vectors."""
        doc = await knowledge_base.add_document("a.pdf", "alpha content")
        keep = await knowledge_base.add_document("b.pdf", "beta content")

        await knowledge_base.delete_document(doc.id)
        await knowledge_base.delete_document(doc.id)

        assert knowledge_base.get_document(doc.id) is None
        assert memory_store.get(f"{doc.id}_chunk_0") is None
        assert memory_store.get(f"{keep.id}_chunk_0") is not None

    @pytest.mark.asyncio
    async def test_delete_by_query(self, knowledge_base, memory_store):
        """Test deleting documents whose name or content matches."""
        await knowledge_base.add_document("Quarterly Report.pdf", "numbers")
        await knowledge_base.add_document("notes.pdf", "mentions the QUARTERLY plan")
        await knowledge_base.add_document("recipes.pdf", "pancakes")

        assert await knowledge_base.delete_by_query("quarterly") == 2
        assert [d.name for d in knowledge_base.get_all_documents()] == ["recipes.pdf"]
        assert await memory_store.count() == 1
        assert await knowledge_base.delete_by_query("nothing matches") == 0

    @pytest.mark.asyncio
    async def test_clear(self, knowledge_base, memory_store):
        """Test clearing documents and vectors."""
        await knowledge_base.add_document("a.pdf", "alpha content")
        await knowledge_base.clear()
        assert knowledge_base.get_all_documents() == []
        assert await memory_store.count() == 0

    @pytest.mark.asyncio
    async def test_vector_stats_and_size(self, knowledge_base):
        """Test vector statistics and total content size."""
        a = await knowledge_base.add_document("a.pdf", "a" * 150)
        b = await knowledge_base.add_document("b.pdf", "b" * 50)

        stats = await knowledge_base.get_vector_stats()
        assert stats.count == len(a.chunks) + len(b.chunks)
        assert stats.documents_with_embeddings == 2
        assert knowledge_base.get_total_size() == 200

    @pytest.mark.asyncio
    async def test_migrate_existing_documents(self, knowledge_base, catalog, memory_store):
        """Test embedding documents saved without vectors."""
        legacy = Document(name="old.pdf", content="legacy text", chunks=["legacy text"])
        catalog.add(legacy)
        progress = []

        await knowledge_base.migrate_existing_documents(on_progress=lambda d, t: progress.append((d, t)))

        assert legacy.has_embeddings
        assert memory_store.get(f"{legacy.id}_chunk_0") is not None
        assert progress == [(1, 1)]

    @pytest.mark.asyncio
    async def test_catalog_survives_restart(self, memory_store, generator, catalog):
        """Test that documents are reloaded by a new knowledge base."""
        kb = KnowledgeBase(memory_store, generator, catalog)
        doc = await kb.add_document("a.pdf", "persistent content")

        restarted = KnowledgeBase(memory_store, generator, DocumentCatalog(catalog.path))
        loaded = restarted.get_document(doc.id)
        assert loaded is not None
        assert loaded.has_embeddings
        assert loaded.chunks == doc.chunks

    @pytest.mark.asyncio
    async def test_mixed_embedding_providers_warn(self, knowledge_base, caplog):
        """Test the warning when switching embedding providers."""
        await knowledge_base.add_document("a.pdf", "alpha content")
        with caplog.at_level(logging.WARNING):
            knowledge_base.set_embedding_config("openai", "sk-test")
        assert "not comparable" in caplog.text
        assert knowledge_base.embedding_provider == "openai"

    def test_format_citation(self):
        """Test the citation layout."""
        entry = VectorEntry(
            id="d_chunk_0",
            vector=[1.0],
            metadata={"doc_id": "d", "doc_name": "news.example - Headline", "chunk_index": 0,
                      "text": "quoted", "source": "search", "source_url": "https://news.example/a"},
        )
        result = VectorSearchResult(id=entry.id, score=0.875, metadata=entry.metadata)
        assert format_citation(result) == (
            'Source: news.example - Headline (https://news.example/a) [Web Search Result]\n'
            'Relevance: 87.5%\n\n"quoted"'
        )


class StubScraper:
    def __init__(self, pages: dict[str, str], min_chars: int = 50):
        self.pages = pages
        self.min_chars = min_chars

    async def fetch_url_content(self, url, on_progress=None):
        if url not in self.pages:
            raise FetchError("Failed to fetch URL content", url=url)
        return self.pages[url]


class StubSearcher:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error

    async def search(self, query, max_results=3):
        if self.error:
            raise self.error
        return self.results[:max_results]


class TestDocumentIngestor:
    """Tests for PDF, URL and search ingestion."""

    @pytest.mark.asyncio
    async def test_ingest_url(self, knowledge_base):
        """Test adding a web page named after its domain."""
        url = "https://www.example.com/article"
        ingestor = DocumentIngestor(knowledge_base, StubScraper({url: "An article body. " * 10}), StubSearcher())

        doc = await ingestor.ingest_url(url)
        assert doc.name == "example.com"
        assert doc.source == SourceType.URL
        assert doc.source_url == url
        assert doc.has_embeddings

    @pytest.mark.asyncio
    async def test_ingest_url_failure(self, knowledge_base):
        """Test that a failed fetch adds nothing."""
        ingestor = DocumentIngestor(knowledge_base, StubScraper({}), StubSearcher())
        with pytest.raises(IngestionError):
            await ingestor.ingest_url("https://unreachable.example")
        assert knowledge_base.get_all_documents() == []

    @pytest.mark.asyncio
    async def test_ingest_url_too_short(self, knowledge_base):
        """Test that a page with too little text is rejected."""
        url = "https://thin.example"
        ingestor = DocumentIngestor(knowledge_base, StubScraper({url: "tiny"}), StubSearcher())
        with pytest.raises(IngestionError):
            await ingestor.ingest_url(url)

    @pytest.mark.asyncio
    async def test_ingest_search(self, knowledge_base):
        """Test adding search results with snippet fallback."""
        results = [
            WebSearchResult(title="First", url="https://one.example/a", snippet="snippet one"),
            WebSearchResult(title="Second", url="https://two.example/b", snippet="snippet two"),
            WebSearchResult(title="Third", url="https://three.example/c", snippet=""),
        ]
        scraper = StubScraper({"https://one.example/a": "Full page text of the first result."})
        ingestor = DocumentIngestor(knowledge_base, scraper, StubSearcher(results))

        docs = await ingestor.ingest_search("query", max_results=3)

        assert [d.name for d in docs] == ["one.example - First", "two.example - Second"]
        assert docs[0].content == "Full page text of the first result."
        assert docs[1].content == "snippet two"
        assert all(d.source == SourceType.SEARCH for d in docs)

    @pytest.mark.asyncio
    async def test_ingest_search_failure(self, knowledge_base):
        """Test that a failed search raises IngestionError."""
        ingestor = DocumentIngestor(knowledge_base, StubScraper({}), StubSearcher(error=SearchError()))
        with pytest.raises(IngestionError):
            await ingestor.ingest_search("query")

    @pytest.mark.asyncio
    async def test_ingest_pdf(self, knowledge_base, monkeypatch):
        """Test adding a PDF."""
        monkeypatch.setattr("ragchat.rag.ingestion.extract_text_from_pdf", lambda data: "Extracted PDF text body.")
        ingestor = DocumentIngestor(knowledge_base, StubScraper({}), StubSearcher())

        doc = await ingestor.ingest_pdf("paper.pdf", b"%PDF-")
        assert doc.name == "paper.pdf"
        assert doc.source == SourceType.PDF
        assert doc.source_url is None

    @pytest.mark.asyncio
    async def test_ingest_pdf_without_text(self, knowledge_base, monkeypatch):
        """Test that a PDF without text is rejected."""
        monkeypatch.setattr("ragchat.rag.ingestion.extract_text_from_pdf", lambda data: "")
        ingestor = DocumentIngestor(knowledge_base, StubScraper({}), StubSearcher())
        with pytest.raises(IngestionError):
            await ingestor.ingest_pdf("scan.pdf", b"%PDF-")

    @pytest.mark.asyncio
    async def test_ingest_corrupt_pdf(self, knowledge_base):
        """Test that an unreadable PDF is rejected."""
        ingestor = DocumentIngestor(knowledge_base, StubScraper({}), StubSearcher())
        with pytest.raises(IngestionError):
            await ingestor.ingest_pdf("broken.pdf", b"this is not a pdf")
