"""
Issue Search Server - Configuration

Pydantic Settings for all configuration via environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, Literal
from pathlib import Path


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""
    host: str = Field("localhost", alias="QDRANT_HOST")
    port: int = Field(6333, alias="QDRANT_PORT")
    collection: str = Field("github_issues", alias="QDRANT_COLLECTION")
    api_key: Optional[str] = Field(None, alias="QDRANT_API_KEY")

    model_config = {"env_prefix": "", "extra": "ignore"}


class EmbeddingSettings(BaseSettings):
    """Embedding model configuration."""
    model_dense: str = Field(
        "BAAI/bge-base-en-v1.5", alias="EMBEDDING_MODEL_DENSE"
    )
    cache_dir: Path = Field(
        Path("./models_cache"), alias="MODELS_CACHE_DIR"
    )

    model_config = {"env_prefix": "", "extra": "ignore"}


class SearchSettings(BaseSettings):
    """Search strategy tuning."""
    min_similarity: float = Field(
        0.35, ge=0.0, le=1.0, alias="SEARCH_MIN_SIMILARITY"
    )
    max_candidates: int = Field(1000, ge=1, alias="SEARCH_MAX_CANDIDATES")
    default_page_size: int = Field(10, ge=1, alias="SEARCH_DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(50, ge=1, alias="SEARCH_MAX_PAGE_SIZE")
    text_match_score: float = Field(
        0.5, ge=0.0, le=1.0, alias="SEARCH_TEXT_MATCH_SCORE"
    )

    model_config = {"env_prefix": "", "extra": "ignore"}


class MCPSettings(BaseSettings):
    """MCP server configuration."""
    transport: Literal["sse", "stdio"] = Field("sse", alias="MCP_TRANSPORT")
    port: int = Field(8080, alias="MCP_PORT")
    host: str = Field("0.0.0.0", alias="MCP_HOST")

    model_config = {"env_prefix": "", "extra": "ignore"}


class CacheSettings(BaseSettings):
    """Caching configuration."""
    enabled: bool = Field(True, alias="CACHE_ENABLED")
    ttl_query: int = Field(300, alias="CACHE_TTL_QUERY_SECONDS")
    max_entries: int = Field(1000, alias="CACHE_MAX_ENTRIES")

    model_config = {"env_prefix": "", "extra": "ignore"}


class LogSettings(BaseSettings):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", alias="LOG_LEVEL"
    )

    model_config = {"env_prefix": "", "extra": "ignore"}


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    mcp: MCPSettings = Field(default_factory=MCPSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = {"env_prefix": "", "extra": "ignore"}


def get_settings() -> Settings:
    """Load settings from environment variables."""
    from dotenv import load_dotenv
    load_dotenv()
    return Settings()
