"""Embedding model implementations and the provider-dispatching generator."""

import asyncio
import hashlib
import math
import struct
from typing import Optional

import httpx

from ragchat.exceptions import ConfigurationError, EmbeddingError
from ragchat.utils.logging import get_logger

from .base import BaseEmbedding

logger = get_logger(__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Calculate cosine similarity between two vectors."""
    if len(a) != len(b):
        raise ValueError("Vectors must have the same dimension")
    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot_product / (norm_a * norm_b)


class FakeEmbedding(BaseEmbedding):
    """Fake embedding that generates deterministic embeddings from text."""

    name = "fake"

    def __init__(self, dimension: int = 384, seed: int = 42):
        self._dimension = dimension
        self.seed = seed

    @property
    def dimension(self) -> int:
        return self._dimension

    def _hash_text(self, text: str) -> list[float]:
        embedding = []
        counter = 0
        while len(embedding) < self._dimension:
            digest = hashlib.sha256(f"{self.seed}:{counter}:{text}".encode()).digest()
            for offset in range(0, len(digest), 4):
                value = struct.unpack(">I", digest[offset:offset + 4])[0]
                embedding.append(value / 0xFFFFFFFF * 2 - 1)
            counter += 1
        return embedding[:self._dimension]

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._hash_text(text) for text in texts]

    async def embed_query(self, text: str) -> list[float]:
        return self._hash_text(text)


class LocalEmbedding(BaseEmbedding):
    """Local embedding model using sentence-transformers.

    The model is loaded on first use and shared by every later call. Output
    vectors are mean-pooled and L2-normalized.
    """

    name = "local"

    MODEL_DIMENSIONS = {
        "all-MiniLM-L6-v2": 384,
        "all-mpnet-base-v2": 768,
    }

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", device: Optional[str] = None, normalize: bool = True):
        self.model_name = model_name
        self.device = device
        self.normalize = normalize
        self._model = None
        self._load_lock = asyncio.Lock()

    @property
    def dimension(self) -> int:
        return self.MODEL_DIMENSIONS.get(self.model_name, 384)

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def _load_model(self):
        from sentence_transformers import SentenceTransformer
        return SentenceTransformer(self.model_name, device=self.device)

    async def _get_model(self):
        if self._model is not None:
            return self._model
        async with self._load_lock:
            if self._model is None:
                logger.info(f"Loading embedding model {self.model_name} (one-time)")
                loop = asyncio.get_running_loop()
                self._model = await loop.run_in_executor(None, self._load_model)
        return self._model

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        model = await self._get_model()
        loop = asyncio.get_running_loop()
        embeddings = await loop.run_in_executor(
            None, lambda: model.encode(texts, normalize_embeddings=self.normalize, convert_to_numpy=True)
        )
        return embeddings.tolist()

    async def embed_query(self, text: str) -> list[float]:
        embeddings = await self.embed_documents([text])
        return embeddings[0]


class OpenAIEmbedding(BaseEmbedding):
    """OpenAI embedding model."""

    name = "openai"

    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(self, api_key: Optional[str] = None, model: str = "text-embedding-3-small", client=None):
        if not api_key and client is None:
            raise ConfigurationError("OpenAI API key required")
        self.model = model
        self.api_key = api_key
        self._client = client

    @property
    def dimension(self) -> int:
        return self.MODEL_DIMENSIONS.get(self.model, 1536)

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        response = await self._get_client().embeddings.create(model=self.model, input=texts)
        return [item.embedding for item in response.data]

    async def embed_query(self, text: str) -> list[float]:
        response = await self._get_client().embeddings.create(model=self.model, input=text)
        return response.data[0].embedding


class GeminiEmbedding(BaseEmbedding):
    """Google Gemini embedding model over the REST API."""

    name = "gemini"
    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "embedding-001",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        if not api_key:
            raise ConfigurationError("Gemini API key required")
        self.api_key = api_key
        self.model = model
        self._transport = transport
        self._timeout = timeout

    @property
    def dimension(self) -> int:
        return 768

    async def embed_query(self, text: str) -> list[float]:
        url = f"{self.BASE_URL}/{self.model}:embedContent"
        payload = {"content": {"parts": [{"text": text}]}}
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            response = await client.post(url, params={"key": self.api_key}, json=payload)
        if response.status_code >= 400:
            raise EmbeddingError(f"Gemini embedding API failed: HTTP {response.status_code}", provider=self.name)
        return response.json()["embedding"]["values"]

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_query(text) for text in texts]


class EmbeddingGenerator:
    """Turn text into vectors with a selectable backend.

    Remote backends are built on first use and reused per provider tag and API key.
    When a remote backend fails, the call is retried once on the shared
    local model; a local failure is raised as ``EmbeddingError``.
    """

    LOCAL = "local"

    def __init__(
        self,
        local: Optional[BaseEmbedding] = None,
        remote_factories: Optional[dict] = None,
    ):
        self.local = local or LocalEmbedding()
        self._factories = {
            "openai": lambda api_key: OpenAIEmbedding(api_key=api_key),
            "gemini": lambda api_key: GeminiEmbedding(api_key=api_key),
        }
        if remote_factories:
            self._factories.update(remote_factories)
        self._remote: dict[tuple[str, Optional[str]], BaseEmbedding] = {}

    def get_backend(self, provider: str, api_key: Optional[str] = None) -> BaseEmbedding:
        """Resolve a provider tag to a backend; credentials are checked here."""
        if provider == self.LOCAL:
            return self.local
        factory = self._factories.get(provider)
        if factory is None:
            raise ConfigurationError(f"Unknown embedding provider: {provider}")
        key = (provider, api_key)
        if key not in self._remote:
            self._remote[key] = factory(api_key)
        return self._remote[key]

    async def embed(self, text: str, provider: str = "local", api_key: Optional[str] = None) -> list[float]:
        if provider != self.LOCAL and provider not in self._factories:
            raise ConfigurationError(f"Unknown embedding provider: {provider}")
        try:
            backend = self.get_backend(provider, api_key)
            return await backend.embed_query(text)
        except Exception as e:
            if provider == self.LOCAL:
                raise EmbeddingError(f"Local embedding failed: {e}", provider=self.LOCAL) from e
            logger.warning(f"Embedding with {provider} failed ({e}), falling back to local embeddings")

        try:
            return await self.local.embed_query(text)
        except Exception as e:
            raise EmbeddingError(f"Local embedding fallback failed: {e}", provider=self.LOCAL) from e
