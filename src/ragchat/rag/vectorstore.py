"""Vector store implementations."""

import asyncio
import json
import sqlite3
from pathlib import Path
from typing import Any, Optional

from ragchat.exceptions import VectorStoreUnavailableError
from ragchat.utils.logging import get_logger

from .base import BaseVectorStore
from .document import SourceType, VectorEntry, VectorMetadata, VectorSearchResult
from .embeddings import cosine_similarity

logger = get_logger(__name__)


def _rank(query_vector: list[float], entries: list[VectorEntry], top_k: int) -> list[VectorSearchResult]:
    """Linear cosine scan; ties keep store iteration order (stable sort)."""
    results = [
        VectorSearchResult(id=entry.id, score=cosine_similarity(query_vector, entry.vector), metadata=entry.metadata)
        for entry in entries
    ]
    results.sort(key=lambda r: r.score, reverse=True)
    return results[:max(top_k, 0)]


class MemoryVectorStore(BaseVectorStore):
    """In-memory vector store for tests and ephemeral sessions."""

    name = "memory"

    def __init__(self):
        self._entries: dict[str, VectorEntry] = {}

    async def init(self) -> None:
        return None

    async def add_vectors_batch(self, entries: list[VectorEntry]) -> None:
        for entry in entries:
            self._entries[entry.id] = entry

    async def search(self, query_vector: list[float], top_k: int = 3) -> list[VectorSearchResult]:
        return _rank(query_vector, list(self._entries.values()), top_k)

    async def delete_by_id(self, entry_id: str) -> None:
        self._entries.pop(entry_id, None)

    async def delete_by_doc_id(self, doc_id: str) -> None:
        for entry_id in [e.id for e in self._entries.values() if e.metadata.doc_id == doc_id]:
            del self._entries[entry_id]

    async def delete_by_source(self, source: SourceType) -> None:
        source = SourceType(source)
        for entry_id in [e.id for e in self._entries.values() if e.metadata.source == source]:
            del self._entries[entry_id]

    async def clear(self) -> None:
        self._entries.clear()

    async def count(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Optional[VectorEntry]:
        return self._entries.get(entry_id)


class SQLiteVectorStore(BaseVectorStore):
    """Embedded local vector store on SQLite.

    One row per chunk vector, keyed by the composite chunk id. Search loads
    every vector and ranks by cosine similarity, which is fine for a
    single-user knowledge base.
    """

    name = "sqlite"

    def __init__(self, db_path: str | Path = "vectors.db"):
        """Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_table(self, conn: sqlite3.Connection) -> None:
        """Ensure the vectors table exists."""
        conn.execute("""
            CREATE TABLE IF NOT EXISTS vectors (
                id TEXT PRIMARY KEY,
                doc_id TEXT NOT NULL,
                doc_name TEXT NOT NULL,
                chunk_index INTEGER NOT NULL,
                text TEXT NOT NULL,
                source TEXT NOT NULL,
                source_url TEXT,
                vector TEXT NOT NULL
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_vectors_doc_id ON vectors(doc_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_vectors_source ON vectors(source)")
        conn.commit()

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def init(self) -> None:
        try:
            await self._run(self._init_sync)
        except (sqlite3.Error, OSError) as e:
            raise VectorStoreUnavailableError(f"Could not open local vector database at {self.db_path}: {e}", backend=self.name) from e

    def _init_sync(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
        finally:
            conn.close()

    async def add_vectors_batch(self, entries: list[VectorEntry]) -> None:
        if entries:
            await self._run(self._add_sync, entries)

    def _add_sync(self, entries: list[VectorEntry]) -> None:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            conn.executemany(
                """
                INSERT OR REPLACE INTO vectors
                (id, doc_id, doc_name, chunk_index, text, source, source_url, vector)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        entry.id,
                        entry.metadata.doc_id,
                        entry.metadata.doc_name,
                        entry.metadata.chunk_index,
                        entry.metadata.text,
                        entry.metadata.source.value,
                        entry.metadata.source_url,
                        json.dumps(entry.vector),
                    )
                    for entry in entries
                ],
            )
            conn.commit()
        finally:
            conn.close()

    async def search(self, query_vector: list[float], top_k: int = 3) -> list[VectorSearchResult]:
        entries = await self._run(self._load_all_sync)
        return _rank(query_vector, entries, top_k)

    def _load_all_sync(self) -> list[VectorEntry]:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            rows = conn.execute("SELECT * FROM vectors ORDER BY rowid").fetchall()
            return [
                VectorEntry(
                    id=row["id"],
                    vector=json.loads(row["vector"]),
                    metadata=VectorMetadata(
                        doc_id=row["doc_id"],
                        doc_name=row["doc_name"],
                        chunk_index=row["chunk_index"],
                        text=row["text"],
                        source=row["source"],
                        source_url=row["source_url"],
                    ),
                )
                for row in rows
            ]
        finally:
            conn.close()

    async def delete_by_id(self, entry_id: str) -> None:
        await self._run(self._delete_sync, "id", entry_id)

    async def delete_by_doc_id(self, doc_id: str) -> None:
        await self._run(self._delete_sync, "doc_id", doc_id)

    async def delete_by_source(self, source: SourceType) -> None:
        await self._run(self._delete_sync, "source", SourceType(source).value)

    def _delete_sync(self, column: str, value: str) -> int:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            cursor = conn.execute(f"DELETE FROM vectors WHERE {column} = ?", (value,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    async def clear(self) -> None:
        await self._run(self._clear_sync)

    def _clear_sync(self) -> None:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            conn.execute("DELETE FROM vectors")
            conn.commit()
        finally:
            conn.close()

    async def count(self) -> int:
        return await self._run(self._count_sync)

    def _count_sync(self) -> int:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            return conn.execute("SELECT COUNT(*) FROM vectors").fetchone()[0]
        finally:
            conn.close()


class ChromaVectorStore(BaseVectorStore):
    """Vector store backed by a Chroma server.

    The collection uses cosine distance; search converts it back to a
    similarity (``1 - distance``) so scores match the local stores.
    """

    name = "chroma"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8000,
        collection_name: str = "knowledge_base",
        client: Any = None,
    ):
        self.host = host
        self.port = port
        self.collection_name = collection_name
        self._client = client
        self._collection = None

    def _get_client(self):
        if self._client is None:
            import chromadb
            self._client = chromadb.HttpClient(host=self.host, port=self.port)
        return self._client

    def _connect_sync(self):
        client = self._get_client()
        client.heartbeat()
        return client.get_or_create_collection(
            name=self.collection_name, metadata={"hnsw:space": "cosine"}
        )

    async def init(self) -> None:
        if self._collection is not None:
            return
        loop = asyncio.get_running_loop()
        try:
            self._collection = await loop.run_in_executor(None, self._connect_sync)
        except Exception as e:
            raise VectorStoreUnavailableError(
                f"Could not connect to Chroma DB. Is the server running on {self.host}:{self.port}? ({e})",
                backend=self.name,
            ) from e
        logger.info(f"Chroma DB initialized (collection '{self.collection_name}')")

    async def _get_collection(self):
        if self._collection is None:
            await self.init()
        return self._collection

    async def add_vectors_batch(self, entries: list[VectorEntry]) -> None:
        if not entries:
            return
        collection = await self._get_collection()
        ids = [entry.id for entry in entries]
        embeddings = [entry.vector for entry in entries]
        documents = [entry.metadata.text for entry in entries]
        metadatas = [
            {
                "doc_id": entry.metadata.doc_id,
                "doc_name": entry.metadata.doc_name,
                "chunk_index": entry.metadata.chunk_index,
                "text": entry.metadata.text,
                "source": entry.metadata.source.value,
                # Chroma metadata values cannot be None
                "source_url": entry.metadata.source_url or "",
            }
            for entry in entries
        ]
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            lambda: collection.upsert(ids=ids, embeddings=embeddings, metadatas=metadatas, documents=documents),
        )

    async def search(self, query_vector: list[float], top_k: int = 3) -> list[VectorSearchResult]:
        if top_k <= 0:
            return []
        collection = await self._get_collection()
        loop = asyncio.get_running_loop()
        results = await loop.run_in_executor(
            None,
            lambda: collection.query(
                query_embeddings=[query_vector], n_results=top_k, include=["documents", "metadatas", "distances"]
            ),
        )
        search_results = []
        if results and results["ids"] and results["ids"][0]:
            for i, chunk_id in enumerate(results["ids"][0]):
                metadata = dict(results["metadatas"][0][i]) if results.get("metadatas") else {}
                text = results["documents"][0][i] if results.get("documents") else None
                distance = results["distances"][0][i] if results.get("distances") else 0.0
                search_results.append(VectorSearchResult(
                    id=chunk_id,
                    score=1 - (distance or 0.0),
                    metadata=VectorMetadata(
                        doc_id=metadata.get("doc_id", ""),
                        doc_name=metadata.get("doc_name", ""),
                        chunk_index=metadata.get("chunk_index", 0),
                        text=text or metadata.get("text", ""),
                        source=metadata.get("source", SourceType.PDF.value),
                        source_url=metadata.get("source_url") or None,
                    ),
                ))
        search_results.sort(key=lambda r: r.score, reverse=True)
        return search_results[:top_k]

    async def delete_by_id(self, entry_id: str) -> None:
        collection = await self._get_collection()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, lambda: collection.delete(ids=[entry_id]))

    async def delete_by_doc_id(self, doc_id: str) -> None:
        collection = await self._get_collection()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, lambda: collection.delete(where={"doc_id": doc_id}))

    async def delete_by_source(self, source: SourceType) -> None:
        collection = await self._get_collection()
        value = SourceType(source).value
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, lambda: collection.delete(where={"source": value}))

    async def clear(self) -> None:
        collection = await self._get_collection()
        loop = asyncio.get_running_loop()

        def _clear_sync() -> None:
            ids = collection.get(include=[])["ids"]
            if ids:
                collection.delete(ids=ids)

        await loop.run_in_executor(None, _clear_sync)

    async def count(self) -> int:
        collection = await self._get_collection()
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, collection.count)
        except Exception as e:
            logger.warning(f"Chroma count unavailable: {e}")
            return 0


class FallbackVectorStore(BaseVectorStore):
    """Pick one of two backends once, at initialization.

    ``init()`` tries the preferred backend; if that fails the fallback is
    initialized instead. The choice is kept for the rest of the session and
    every other call is routed to the chosen backend without re-probing.
    """

    name = "fallback"

    def __init__(self, preferred: BaseVectorStore, fallback: BaseVectorStore):
        self.preferred = preferred
        self.fallback = fallback
        self._active: Optional[BaseVectorStore] = None
        self._init_lock = asyncio.Lock()

    @property
    def active_backend(self) -> Optional[BaseVectorStore]:
        return self._active

    @property
    def using_fallback(self) -> bool:
        return self._active is self.fallback

    async def init(self) -> None:
        async with self._init_lock:
            if self._active is not None:
                return
            try:
                await self.preferred.init()
                self._active = self.preferred
                logger.info(f"Using {self.preferred.name} for vector storage")
            except Exception as e:
                logger.warning(f"{self.preferred.name} not available, falling back to {self.fallback.name}: {e}")
                await self.fallback.init()
                self._active = self.fallback
                logger.info(f"Using {self.fallback.name} for vector storage")

    async def _backend(self) -> BaseVectorStore:
        if self._active is None:
            await self.init()
        return self._active

    async def add_vectors_batch(self, entries: list[VectorEntry]) -> None:
        await (await self._backend()).add_vectors_batch(entries)

    async def search(self, query_vector: list[float], top_k: int = 3) -> list[VectorSearchResult]:
        return await (await self._backend()).search(query_vector, top_k)

    async def delete_by_id(self, entry_id: str) -> None:
        await (await self._backend()).delete_by_id(entry_id)

    async def delete_by_doc_id(self, doc_id: str) -> None:
        await (await self._backend()).delete_by_doc_id(doc_id)

    async def delete_by_source(self, source: SourceType) -> None:
        await (await self._backend()).delete_by_source(source)

    async def clear(self) -> None:
        await (await self._backend()).clear()

    async def count(self) -> int:
        return await (await self._backend()).count()
