"""Embedding service for generating text embeddings via OpenAI-compatible APIs."""

from openai import AsyncOpenAI

from src.utils.logging import get_logger
from src.utils.retry import call_with_retry

from .config import TranscriptRAGConfig
from .errors import EmbeddingFailure

logger = get_logger(__name__)


class EmbeddingService:
    """Service for generating text embeddings.

    Supports OpenAI, Ollama and OpenRouter through OpenAI-compatible APIs. The
    same instance (and so the same model) must serve ingestion and queries,
    otherwise similarity scores are meaningless.
    """

    def __init__(self, config: TranscriptRAGConfig, client: AsyncOpenAI | None = None):
        """Initialize embedding service with configuration.

        Args:
            config: Configuration object with embedding provider settings.
            client: Preconfigured client; built from config when omitted.
        """
        self.config = config
        self.client = client or self._get_client()
        logger.info(
            "embedding_service_initialized",
            provider=config.embedding_provider,
            model=config.embedding_model,
            base_url=config.embedding_base_url,
        )

    def _get_client(self) -> AsyncOpenAI:
        """Initialize OpenAI-compatible client based on provider.

        Returns:
            Configured AsyncOpenAI client instance.
        """
        if self.config.embedding_provider == "ollama":
            # Ollama doesn't require a real API key
            return AsyncOpenAI(
                base_url=self.config.embedding_base_url,
                api_key="ollama",
            )
        else:
            return AsyncOpenAI(
                base_url=self.config.embedding_base_url,
                api_key=self.config.embedding_api_key,
            )

    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        The provider call is bounded by ``embedding_timeout_seconds`` and
        retried with exponential backoff.

        Args:
            text: Text content to embed.

        Returns:
            Embedding vector as a list of floats.

        Raises:
            EmbeddingFailure: If the call fails, times out, or returns a vector
                of the wrong shape.
        """

        async def create_embedding() -> list[float]:
            response = await self.client.embeddings.create(
                input=text,
                model=self.config.embedding_model,
            )
            return self._validate(response)

        embedding = await call_with_retry(
            create_embedding,
            operation="embedding",
            failure_cls=EmbeddingFailure,
            timeout=self.config.embedding_timeout_seconds,
            max_retries=self.config.max_retries,
            initial_wait=self.config.retry_initial_wait,
            max_wait=self.config.retry_max_wait,
        )
        logger.debug(
            "embedding_generated",
            text_length=len(text),
            embedding_dim=len(embedding),
        )
        return embedding

    def _validate(self, response: object) -> list[float]:
        """Extract the vector from a provider response and check its shape."""
        data = getattr(response, "data", None)
        if not data:
            raise EmbeddingFailure("Embedding response contained no data")

        embedding = getattr(data[0], "embedding", None)
        if not isinstance(embedding, list) or not embedding:
            raise EmbeddingFailure("Embedding response contained no vector")
        if not all(isinstance(x, int | float) for x in embedding):
            raise EmbeddingFailure("Embedding vector contains non-numeric values")

        expected = self.config.embedding_dimensions
        if expected and len(embedding) != expected:
            logger.error(
                "embedding_dimension_mismatch",
                expected=expected,
                actual=len(embedding),
                model=self.config.embedding_model,
            )
            raise EmbeddingFailure(
                f"Embedding has {len(embedding)} dimensions, expected {expected}"
            )

        return [float(x) for x in embedding]
