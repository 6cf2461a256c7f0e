"""
Configuration utilities.
"""

import json
from pathlib import Path

import yaml

from pydantic import BaseModel, Field

from ragchat.providers.base import LLMConfig


DEFAULT_CORS_PROXIES = [
    "https://api.allorigins.win/raw?url=",
    "https://corsproxy.io/?",
    "https://api.codetabs.com/v1/proxy?quest=",
]


class Config(BaseModel):
    """Base configuration class."""

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from file (YAML or JSON)."""
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        elif path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
            return cls(**data)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")


class WebConfig(BaseModel):
    """Settings for web search and page fetching."""
    max_results: int = 5
    page_char_budget: int = 2000
    fetch_timeout: float = 15.0
    min_page_chars: int = 50
    cors_proxies: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_PROXIES))
    search_proxy: str | None = "https://api.allorigins.win/raw?url="


class AppConfig(Config):
    """Configuration for the chat application."""
    llm: LLMConfig = Field(default_factory=lambda: LLMConfig(provider="openai", model="gpt-4o"))

    # Embedding settings
    embedding_provider: str = "local"
    embedding_api_key: str | None = None

    # Persistence
    data_dir: str = "~/.ragchat"
    catalog_file: str = "documents.json"
    vector_db_file: str = "vectors.db"

    # External vector-search service
    prefer_chroma: bool = True
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    collection_name: str = "knowledge_base"

    # Retrieval
    chunk_size: int = 500
    chunk_overlap: int = 50
    top_k: int = 3

    web: WebConfig = Field(default_factory=WebConfig)

    use_knowledge_base: bool = True
    use_web_search: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def catalog_path(self) -> Path:
        return self.data_path / self.catalog_file

    @property
    def vector_db_path(self) -> Path:
        return self.data_path / self.vector_db_file


def load_config(path: str | Path = "ragchat.yaml") -> AppConfig:
    """
    Load application configuration from file.

    Args:
        path: Path to config file

    Returns:
        AppConfig instance
    """
    path = Path(path)

    if not path.exists():
        return AppConfig()

    return AppConfig.from_file(path)
