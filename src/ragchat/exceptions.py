"""
ragchat exceptions.
"""


class RagChatError(Exception):
    """Base exception for ragchat errors."""

    def __init__(self, message: str, code: int | None = None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ConfigurationError(RagChatError):
    """Raised for missing credentials, unknown provider tags or invalid settings."""

    def __init__(self, message: str):
        super().__init__(message, code=1001)


class EmbeddingError(RagChatError):
    """Raised when an embedding backend fails."""

    def __init__(self, message: str = "Embedding generation failed", provider: str | None = None):
        self.provider = provider
        super().__init__(message, code=1002)


class VectorStoreUnavailableError(RagChatError):
    """Raised when a vector store backend cannot be initialized."""

    def __init__(self, message: str = "Vector store is unavailable", backend: str | None = None):
        self.backend = backend
        super().__init__(message, code=1003)


class StorageError(RagChatError):
    """Raised when the document catalog cannot be persisted."""

    def __init__(self, message: str = "Failed to save document. Storage may be full."):
        super().__init__(message, code=1004)


class FetchError(RagChatError):
    """Raised when a page cannot be fetched."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message, code=1005)


class SearchError(RagChatError):
    """Raised when a web search fails."""

    def __init__(self, message: str = "Failed to search the web. Please try again."):
        super().__init__(message, code=1006)


class IngestionError(RagChatError):
    """Raised when a single document ingestion is aborted."""

    def __init__(self, message: str):
        super().__init__(message, code=1007)


class ProviderError(RagChatError):
    """Raised when a chat provider request fails."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message, code=1008)
