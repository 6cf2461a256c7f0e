"""Knowledge base manager: ingestion, deletion and cited retrieval."""

from typing import Callable, Optional

from pydantic import BaseModel

from ragchat.utils.logging import get_logger

from .base import BaseChunker, BaseVectorStore
from .catalog import DocumentCatalog
from .chunking import FixedSizeChunker
from .document import Document, SourceType, VectorEntry, VectorMetadata, VectorSearchResult, VectorStats
from .embeddings import EmbeddingGenerator

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class ChunkOutcome(BaseModel):
    """Result of embedding one chunk."""
    index: int
    entry: Optional[VectorEntry] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.entry is not None


def format_citation(result: VectorSearchResult) -> str:
    """Render a search hit as a citation block for the prompt."""
    metadata = result.metadata
    citation = f"Source: {metadata.doc_name}"
    if metadata.source_url:
        citation += f" ({metadata.source_url})"
    citation += f" [{SourceType(metadata.source).label}]"
    citation += f"\nRelevance: {result.score * 100:.1f}%"
    citation += f'\n\n"{metadata.text}"'
    return citation


class KnowledgeBase:
    """Owns the document catalog and keeps the vector store in step with it.

    The catalog and the vector store are persisted independently; every
    mutation here updates the catalog first and then issues the matching
    vector-store call.
    """

    def __init__(
        self,
        vectorstore: BaseVectorStore,
        embeddings: EmbeddingGenerator,
        catalog: Optional[DocumentCatalog] = None,
        chunker: Optional[BaseChunker] = None,
        embedding_provider: str = "local",
        api_key: Optional[str] = None,
    ):
        self.vectorstore = vectorstore
        self.embeddings = embeddings
        self.catalog = catalog if catalog is not None else DocumentCatalog()
        self.chunker = chunker if chunker is not None else FixedSizeChunker()
        self.embedding_provider = embedding_provider
        self.api_key = api_key
        self.catalog.load()

    async def initialize(self) -> None:
        """Resolve the vector store backend."""
        await self.vectorstore.init()

    def set_embedding_config(self, provider: str, api_key: Optional[str] = None) -> None:
        """Set embedding provider and API key."""
        used = {
            doc.embedding_provider
            for doc in self.catalog.documents
            if doc.has_embeddings and doc.embedding_provider
        }
        if used - {provider}:
            logger.warning(
                f"Embedding provider set to '{provider}' but the knowledge base holds vectors from "
                f"{sorted(used)}; similarity scores across providers are not comparable"
            )
        self.embedding_provider = provider
        self.api_key = api_key

    async def add_document(
        self,
        name: str,
        content: str,
        source: SourceType | str = SourceType.PDF,
        source_url: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Document:
        """Add a document and generate its embeddings.

        The document is saved before embedding starts, so it is listed even
        if embedding fails. Chunks that fail to embed are skipped.
        """
        doc = Document(
            name=name,
            content=content,
            chunks=self.chunker.chunk(content),
            source=SourceType(source),
            source_url=source_url,
        )
        self.catalog.add(doc)

        try:
            await self._generate_embeddings(doc, on_progress)
        except Exception as e:
            logger.error(f"Failed to generate embeddings for '{doc.name}': {e}", exc_info=True)

        return doc

    async def _embed_chunks(self, doc: Document, on_progress: Optional[ProgressCallback]) -> list[ChunkOutcome]:
        outcomes = []
        total = len(doc.chunks)
        for i, chunk in enumerate(doc.chunks):
            try:
                vector = await self.embeddings.embed(chunk, self.embedding_provider, self.api_key)
                outcomes.append(ChunkOutcome(
                    index=i,
                    entry=VectorEntry(
                        id=VectorEntry.chunk_id(doc.id, i),
                        vector=vector,
                        metadata=VectorMetadata(
                            doc_id=doc.id,
                            doc_name=doc.name,
                            chunk_index=i,
                            text=chunk,
                            source=doc.source,
                            source_url=doc.source_url,
                        ),
                    ),
                ))
            except Exception as e:
                logger.error(f"Failed to generate embedding for chunk {i} of '{doc.name}': {e}")
                outcomes.append(ChunkOutcome(index=i, error=str(e)))
            if on_progress:
                on_progress(i + 1, total)
        return outcomes

    async def _generate_embeddings(self, doc: Document, on_progress: Optional[ProgressCallback] = None) -> None:
        outcomes = await self._embed_chunks(doc, on_progress)
        entries = [outcome.entry for outcome in outcomes if outcome.ok]
        failed = len(outcomes) - len(entries)
        if failed:
            logger.warning(f"{failed} of {len(outcomes)} chunks of '{doc.name}' were not embedded")

        await self.vectorstore.add_vectors_batch(entries)

        # set after the attempt finishes, even if some chunks failed
        doc.has_embeddings = True
        doc.embedded_chunks = len(entries)
        doc.embedding_provider = self.embedding_provider
        self.catalog.save()

    async def search_documents(self, query: str, top_k: int = 3) -> list[str]:
        """Search documents using vector similarity.

        Returns formatted citations, or an empty list if embedding or search
        fails.
        """
        try:
            query_vector = await self.embeddings.embed(query, self.embedding_provider, self.api_key)
            results = await self.vectorstore.search(query_vector, top_k)
        except Exception as e:
            logger.error(f"Vector search failed: {e}")
            return []
        return [format_citation(result) for result in results]

    async def delete_document(self, document_id: str) -> None:
        """Delete document and its vectors."""
        self.catalog.documents = [doc for doc in self.catalog.documents if doc.id != document_id]
        self.catalog.save()
        await self.vectorstore.delete_by_doc_id(document_id)

    async def delete_by_source(self, source: SourceType | str) -> int:
        """Delete documents by source type; returns how many were removed."""
        source = SourceType(source)
        removed = [doc for doc in self.catalog.documents if doc.source == source]
        self.catalog.documents = [doc for doc in self.catalog.documents if doc.source != source]
        self.catalog.save()
        await self.vectorstore.delete_by_source(source)
        return len(removed)

    async def delete_by_query(self, query_text: str) -> int:
        """Delete documents whose name or content contains the text (case-insensitive)."""
        needle = query_text.lower()

        def matches(doc: Document) -> bool:
            return needle in doc.name.lower() or needle in doc.content.lower()

        removed = [doc for doc in self.catalog.documents if matches(doc)]
        self.catalog.documents = [doc for doc in self.catalog.documents if not matches(doc)]
        self.catalog.save()
        for doc in removed:
            await self.vectorstore.delete_by_doc_id(doc.id)
        return len(removed)

    async def clear(self) -> None:
        self.catalog.documents = []
        self.catalog.save()
        await self.vectorstore.clear()

    async def get_vector_stats(self) -> VectorStats:
        documents_with_embeddings = sum(1 for doc in self.catalog.documents if doc.has_embeddings)
        return VectorStats(count=await self.vectorstore.count(), documents_with_embeddings=documents_with_embeddings)

    async def migrate_existing_documents(self, on_progress: Optional[ProgressCallback] = None) -> None:
        """Generate embeddings for documents that do not have them yet."""
        pending = [doc for doc in self.catalog.documents if not doc.has_embeddings]
        for i, doc in enumerate(pending):
            await self._generate_embeddings(doc)
            if on_progress:
                on_progress(i + 1, len(pending))

    def get_all_documents(self) -> list[Document]:
        return list(self.catalog.documents)

    def get_document(self, document_id: str) -> Optional[Document]:
        return self.catalog.get(document_id)

    def get_total_size(self) -> int:
        return sum(len(doc.content) for doc in self.catalog.documents)
