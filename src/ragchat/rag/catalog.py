"""Persisted document catalog."""

import json
import os
from pathlib import Path
from typing import Optional

from ragchat.exceptions import StorageError
from ragchat.utils.logging import get_logger

from .document import Document

logger = get_logger(__name__)

STORAGE_KEY = "knowledge_base_documents"


class DocumentCatalog:
    """All knowledge base documents, saved as one JSON snapshot.

    The whole catalog is rewritten on every save. Loading is best-effort:
    an unreadable file leaves the catalog empty.
    """

    def __init__(self, path: Optional[str | Path] = None, storage_key: str = STORAGE_KEY):
        self.path = Path(path) if path is not None else None
        self.storage_key = storage_key
        self._documents: list[Document] = []

    @property
    def documents(self) -> list[Document]:
        return self._documents

    @documents.setter
    def documents(self, documents: list[Document]) -> None:
        self._documents = list(documents)

    def load(self) -> list[Document]:
        if self.path is None or not self.path.exists():
            self._documents = []
            return self._documents
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            self._documents = [Document.model_validate(item) for item in data.get(self.storage_key, [])]
        except Exception as e:
            logger.error(f"Error loading knowledge base: {e}")
            self._documents = []
        return self._documents

    def save(self) -> None:
        if self.path is None:
            return
        payload = {self.storage_key: [doc.model_dump(mode="json") for doc in self._documents]}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error saving knowledge base: {e}")
            raise StorageError() from e

    def add(self, document: Document) -> None:
        self._documents.append(document)
        self.save()

    def get(self, document_id: str) -> Optional[Document]:
        return next((doc for doc in self._documents if doc.id == document_id), None)

    def __len__(self) -> int:
        return len(self._documents)
