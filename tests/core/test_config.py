"""Unit tests for transcript RAG configuration."""

import pytest
from pydantic import ValidationError

from src.core.config import ReingestPolicy, TranscriptRAGConfig, get_config

ENV_VARS = [
    "CHUNK_SIZE",
    "CHUNK_OVERLAP",
    "REINGEST_POLICY",
    "MATCH_COUNT",
    "MATCH_THRESHOLD",
    "EMBEDDING_PROVIDER",
    "EMBEDDING_API_KEY",
    "OPENAI_KEY",
    "EMBEDDING_MODEL_CHOICE",
    "EMBEDDING_DIMENSIONS",
    "MAX_RETRIES",
    "SUPABASE_SERVICE_KEY",
    "SECRET_SUPABASE_KEY",
    "PORT",
]


@pytest.mark.unit
class TestTranscriptRAGConfig:
    """Test suite for TranscriptRAGConfig class."""

    @pytest.fixture
    def clean_env(self, monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
        """Remove every variable the config reads."""
        for name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)
        return monkeypatch

    def test_config_with_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test config creation with default values."""
        config = TranscriptRAGConfig()

        assert config.chunk_size == 800
        assert config.chunk_overlap == 150
        assert config.reingest_policy == ReingestPolicy.RESUME
        assert config.match_count == 6
        assert config.match_threshold == 0.3
        assert config.embedding_provider == "openai"
        assert config.embedding_model == "text-embedding-3-small"
        assert config.embedding_dimensions == 1536
        assert config.max_retries == 2
        assert config.embedding_api_key == ""
        assert config.port == 3000

    def test_config_with_explicit_values(self) -> None:
        """Test config creation with explicit parameter values."""
        config = TranscriptRAGConfig(
            chunk_size=500,
            chunk_overlap=100,
            reingest_policy="replace",
            match_count=3,
            embedding_provider="ollama",
            embedding_model="nomic-embed-text",
            supabase_url="https://test.supabase.co",
            supabase_key="test_key",
        )

        assert config.chunk_size == 500
        assert config.chunk_overlap == 100
        assert config.reingest_policy == ReingestPolicy.REPLACE
        assert config.match_count == 3
        assert config.embedding_provider == "ollama"
        assert config.supabase_url == "https://test.supabase.co"
        assert config.supabase_key == "test_key"

    def test_config_from_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test config loads from environment variables."""
        clean_env.setenv("CHUNK_SIZE", "1000")
        clean_env.setenv("CHUNK_OVERLAP", "200")
        clean_env.setenv("REINGEST_POLICY", "append")
        clean_env.setenv("MATCH_THRESHOLD", "0.5")
        clean_env.setenv("PORT", "8080")

        config = get_config()

        assert config.chunk_size == 1000
        assert config.chunk_overlap == 200
        assert config.reingest_policy == ReingestPolicy.APPEND
        assert config.match_threshold == 0.5
        assert config.port == 8080

    def test_legacy_key_fallbacks(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that OPENAI_KEY and SECRET_SUPABASE_KEY are used as fallbacks."""
        clean_env.setenv("OPENAI_KEY", "sk-legacy")
        clean_env.setenv("SECRET_SUPABASE_KEY", "legacy-service-key")

        config = TranscriptRAGConfig()

        assert config.embedding_api_key == "sk-legacy"
        assert config.supabase_key == "legacy-service-key"

    def test_primary_keys_win(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that the primary variables take precedence over fallbacks."""
        clean_env.setenv("EMBEDDING_API_KEY", "sk-primary")
        clean_env.setenv("OPENAI_KEY", "sk-legacy")

        assert TranscriptRAGConfig().embedding_api_key == "sk-primary"

    def test_invalid_policy_rejected(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that an unknown re-ingest policy fails validation."""
        clean_env.setenv("REINGEST_POLICY", "merge")

        with pytest.raises(ValidationError):
            TranscriptRAGConfig()
