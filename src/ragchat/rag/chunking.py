"""Text chunking."""

from ragchat.exceptions import ConfigurationError

from .base import BaseChunker


class FixedSizeChunker(BaseChunker):
    """Split text into fixed-size windows that overlap by a fixed amount.

    Windows start at offset 0 and advance by ``chunk_size - overlap``
    characters. Each window is stripped and empty windows are dropped, so
    whitespace-only text yields no chunks.
    """

    def __init__(self, chunk_size: int = 500, overlap: int = 50):
        if chunk_size <= 0:
            raise ConfigurationError("chunk_size must be positive")
        if overlap < 0 or overlap >= chunk_size:
            raise ConfigurationError("Overlap must be non-negative and less than chunk_size")
        self.chunk_size = chunk_size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.chunk_size - self.overlap

    def chunk(self, text: str) -> list[str]:
        chunks = []
        start = 0
        while start < len(text):
            window = text[start:start + self.chunk_size].strip()
            if window:
                chunks.append(window)
            start += self.step
        return chunks

    def window_offsets(self, text: str) -> list[int]:
        """Start offsets of every window, including ones dropped as empty."""
        return list(range(0, len(text), self.step))
