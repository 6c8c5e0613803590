"""Configuration module for the transcript RAG pipeline."""

import os
from enum import StrEnum

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Load environment variables from .env file
load_dotenv()


class ReingestPolicy(StrEnum):
    """What ingestion does with a transcript that already has chunks."""

    RESUME = "resume"  # keep existing chunks, write only the missing tail
    REPLACE = "replace"  # delete existing chunks, then write all
    APPEND = "append"  # write all chunks again, duplicating rows


class TranscriptRAGConfig(BaseModel):
    """Configuration for transcript ingestion and retrieval.

    All settings are process-wide and read once from environment variables;
    explicit keyword arguments override the environment.
    """

    model_config = ConfigDict(validate_default=True)

    # Chunking settings (character windows)
    chunk_size: int = Field(default_factory=lambda: int(os.getenv("CHUNK_SIZE", "800")))
    chunk_overlap: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_OVERLAP", "150"))
    )
    reingest_policy: ReingestPolicy = Field(
        default_factory=lambda: os.getenv("REINGEST_POLICY", "resume")
    )

    # Search settings
    match_count: int = Field(default_factory=lambda: int(os.getenv("MATCH_COUNT", "6")))
    match_threshold: float = Field(
        default_factory=lambda: float(os.getenv("MATCH_THRESHOLD", "0.3"))
    )

    # Embedding settings
    embedding_provider: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_PROVIDER", "openai")
    )
    embedding_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_BASE_URL", "https://api.openai.com/v1"
        )
    )
    embedding_api_key: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_API_KEY")
        or os.getenv("OPENAI_KEY", "")
    )
    embedding_model: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_MODEL_CHOICE", "text-embedding-3-small"
        )
    )
    # 0 disables the dimensionality check
    embedding_dimensions: int = Field(
        default_factory=lambda: int(os.getenv("EMBEDDING_DIMENSIONS", "1536"))
    )

    # Timeouts and retry for provider and store calls
    embedding_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("EMBEDDING_TIMEOUT_SECONDS", "30"))
    )
    store_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("STORE_TIMEOUT_SECONDS", "15"))
    )
    max_retries: int = Field(default_factory=lambda: int(os.getenv("MAX_RETRIES", "2")))
    retry_initial_wait: float = Field(
        default_factory=lambda: float(os.getenv("RETRY_INITIAL_WAIT", "0.5"))
    )
    retry_max_wait: float = Field(
        default_factory=lambda: float(os.getenv("RETRY_MAX_WAIT", "8"))
    )

    # Database settings
    supabase_url: str = Field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    supabase_key: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_SERVICE_KEY")
        or os.getenv("SECRET_SUPABASE_KEY", "")
    )

    # Transcript source
    supadata_api_key: str = Field(
        default_factory=lambda: os.getenv("SUPADATA_API_KEY", "")
    )

    # Server settings
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def get_config() -> TranscriptRAGConfig:
    """Get validated configuration instance.

    Returns:
        TranscriptRAGConfig: Validated configuration object with all settings.

    Raises:
        ValidationError: If an environment variable holds an invalid value.
    """
    return TranscriptRAGConfig()
