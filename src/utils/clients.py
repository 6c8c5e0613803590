"""Client initialization utilities.

Builds the store and embedding handles from configuration so they can be
passed into the ingestion pipeline, the search service and the tool server.
"""

from src.core.config import TranscriptRAGConfig
from src.core.embedding_service import EmbeddingService
from src.core.storage_service import StorageService


def get_clients(config: TranscriptRAGConfig) -> tuple[EmbeddingService, StorageService]:
    """Initialize and return the embedding service and the Supabase store.

    Args:
        config: Process configuration.

    Returns:
        Tuple of (EmbeddingService, StorageService).

    Raises:
        ValueError: If required credentials are missing.

    Examples:
        >>> embedding_service, store = get_clients(get_config())
    """
    if not config.embedding_api_key and config.embedding_provider != "ollama":
        raise ValueError("EMBEDDING_API_KEY (or OPENAI_KEY) environment variable is required")

    if not config.supabase_url or not config.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables are required")

    return EmbeddingService(config), StorageService(config)
