"""Ingestion flows that turn PDFs, pages and search hits into documents."""

from typing import Optional

from ragchat.exceptions import FetchError, IngestionError, SearchError
from ragchat.utils.logging import get_logger
from ragchat.web.pdf import extract_text_from_pdf
from ragchat.web.scraper import WebScraper, get_domain_from_url
from ragchat.web.search import WebSearcher

from .document import Document, SourceType
from .knowledge_base import KnowledgeBase, ProgressCallback

logger = get_logger(__name__)

MIN_PDF_CHARS = 10


class DocumentIngestor:
    """Feed external content into the knowledge base.

    Each call ingests one source; a failure aborts that ingestion only and
    is raised as ``IngestionError``.
    """

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        scraper: Optional[WebScraper] = None,
        searcher: Optional[WebSearcher] = None,
    ):
        self.knowledge_base = knowledge_base
        self.scraper = scraper or WebScraper()
        self.searcher = searcher or WebSearcher()

    async def ingest_pdf(
        self,
        filename: str,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Document:
        text = extract_text_from_pdf(data)
        if len(text) < MIN_PDF_CHARS:
            raise IngestionError("PDF appears to be empty or contains no extractable text")
        return await self.knowledge_base.add_document(filename, text, SourceType.PDF, None, on_progress)

    async def ingest_url(
        self,
        url: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Document:
        try:
            content = await self.scraper.fetch_url_content(url)
        except FetchError as e:
            raise IngestionError(e.message) from e
        if len(content) < self.scraper.min_chars:
            raise IngestionError("Extracted content is too short. The page may be empty or blocked.")
        domain = get_domain_from_url(url)
        return await self.knowledge_base.add_document(domain, content, SourceType.URL, url, on_progress)

    async def ingest_search(self, query: str, max_results: int = 3) -> list[Document]:
        """Add one ``search`` document per result; the snippet stands in when a page cannot be fetched."""
        try:
            results = await self.searcher.search(query, max_results)
        except SearchError as e:
            raise IngestionError(e.message) from e
        documents = []
        for result in results:
            try:
                content = await self.scraper.fetch_url_content(result.url)
            except FetchError as e:
                logger.warning(f"Using snippet for {result.url}: {e.message}")
                content = result.snippet
            if not content.strip():
                logger.warning(f"Skipping search result without content: {result.url}")
                continue
            name = f"{get_domain_from_url(result.url)} - {result.title}"
            documents.append(await self.knowledge_base.add_document(name, content, SourceType.SEARCH, result.url))
        return documents
