"""
Application wiring: builds every collaborator from one AppConfig.
"""

from typing import Optional

from ragchat.chat.session import ChatSession
from ragchat.chat.web_context import WebContextBuilder
from ragchat.core.message import Message
from ragchat.rag.base import BaseEmbedding, BaseVectorStore
from ragchat.rag.catalog import DocumentCatalog
from ragchat.rag.chunking import FixedSizeChunker
from ragchat.rag.embeddings import EmbeddingGenerator
from ragchat.rag.ingestion import DocumentIngestor
from ragchat.rag.knowledge_base import KnowledgeBase
from ragchat.rag.vectorstore import ChromaVectorStore, FallbackVectorStore, SQLiteVectorStore
from ragchat.utils.config import AppConfig
from ragchat.utils.logging import configure_logging, get_logger
from ragchat.web.scraper import WebScraper
from ragchat.web.search import WebSearcher

logger = get_logger(__name__)


class RagChatApp:
    """
    Holds the knowledge base, ingestor and chat session for one user session.

    Example:
        app = RagChatApp.create(load_config())
        await app.start()
        await app.ingestor.ingest_url("https://example.com/article")
        reply = await app.ask("What does the article say?")
    """

    def __init__(
        self,
        config: AppConfig,
        knowledge_base: KnowledgeBase,
        ingestor: DocumentIngestor,
        session: ChatSession,
    ):
        self.config = config
        self.knowledge_base = knowledge_base
        self.ingestor = ingestor
        self.session = session

    @staticmethod
    def build_vectorstore(config: AppConfig) -> BaseVectorStore:
        sqlite_store = SQLiteVectorStore(config.vector_db_path)
        if not config.prefer_chroma:
            return sqlite_store
        chroma_store = ChromaVectorStore(
            host=config.chroma_host,
            port=config.chroma_port,
            collection_name=config.collection_name,
        )
        return FallbackVectorStore(chroma_store, sqlite_store)

    @classmethod
    def create(
        cls,
        config: Optional[AppConfig] = None,
        vectorstore: Optional[BaseVectorStore] = None,
        local_embedding: Optional[BaseEmbedding] = None,
    ) -> "RagChatApp":
        """Wire the application; ``vectorstore`` and ``local_embedding`` override the defaults."""
        config = config or AppConfig()
        configure_logging(config.log_level, config.log_file)
        config.data_path.mkdir(parents=True, exist_ok=True)

        knowledge_base = KnowledgeBase(
            vectorstore=vectorstore or cls.build_vectorstore(config),
            embeddings=EmbeddingGenerator(local=local_embedding),
            catalog=DocumentCatalog(config.catalog_path),
            chunker=FixedSizeChunker(config.chunk_size, config.chunk_overlap),
            embedding_provider=config.embedding_provider,
            api_key=config.embedding_api_key,
        )

        web = config.web
        scraper = WebScraper(
            proxies=web.cors_proxies,
            timeout=web.fetch_timeout,
            min_chars=web.min_page_chars,
        )
        searcher = WebSearcher(proxy=web.search_proxy, timeout=web.fetch_timeout)

        session = ChatSession(
            knowledge_base=knowledge_base,
            web_context=WebContextBuilder(searcher, scraper, web.max_results, web.page_char_budget),
            top_k=config.top_k,
        )
        return cls(config, knowledge_base, DocumentIngestor(knowledge_base, scraper, searcher), session)

    async def start(self) -> None:
        """Resolve the vector store backend."""
        await self.knowledge_base.initialize()
        logger.info(f"Knowledge base ready with {len(self.knowledge_base.get_all_documents())} documents")

    async def ask(self, text: str, **kwargs) -> Optional[Message]:
        """Submit one turn using the configured model and source toggles."""
        kwargs.setdefault("use_knowledge_base", self.config.use_knowledge_base)
        kwargs.setdefault("use_web_search", self.config.use_web_search)
        return await self.session.submit(text, self.config.llm, **kwargs)
