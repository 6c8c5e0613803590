"""Retrieval service for semantic search over transcript chunks.

Embeds a query with the ingestion embedding model and asks the chunk store for
the most similar windows.
"""

from src.core.config import TranscriptRAGConfig
from src.core.embedding_service import EmbeddingService
from src.core.errors import ExternalCallError, InvalidConfiguration, SearchFailure
from src.core.schemas import SearchResult
from src.core.storage_service import ChunkStore
from src.utils.logging import get_logger

logger = get_logger(__name__)


# ==============================================================================
# Helper Functions
# ==============================================================================


def format_results_markdown(query: str, results: list[SearchResult]) -> str:
    """Render search results as readable markdown for terminals and chat.

    Args:
        query: The query that produced the results.
        results: Results ordered by similarity.

    Returns:
        One block per result with transcript id, similarity and chunk text,
        or an empty-state message.

    Examples:
        >>> format_results_markdown("goal setting", [])
        'No transcript chunks matched "goal setting".'
    """
    if not results:
        return f'No transcript chunks matched "{query}".'

    blocks = []
    for i, result in enumerate(results, 1):
        blocks.append(
            f"**Result {i}** (Similarity: {result.similarity:.2%})\n"
            f"**Transcript:** {result.transcript_id}\n\n"
            f"{result.chunk_text.strip()}"
        )
    return "\n\n---\n\n".join(blocks)


# ==============================================================================
# Service
# ==============================================================================


class TranscriptSearchService:
    """Answers natural-language queries with the most similar transcript chunks.

    Holds no per-query state, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        config: TranscriptRAGConfig,
        chunk_store: ChunkStore,
        embedding_service: EmbeddingService,
    ):
        self.config = config
        self.chunk_store = chunk_store
        self.embedding_service = embedding_service

    async def search(
        self,
        query: str,
        top_k: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Search for transcript chunks similar to the query.

        Args:
            query: Natural-language query; must not be blank.
            top_k: Maximum number of results (default: config.match_count).
            similarity_threshold: Minimum similarity in [0, 1]
                (default: config.match_threshold).

        Returns:
            At most top_k results, all at or above the threshold, ordered by
            similarity descending. Empty when nothing matches.

        Raises:
            InvalidConfiguration: If the arguments are invalid. Raised before
                the embedding call.
            SearchFailure: If embedding the query or querying the store fails.
        """
        top_k = self.config.match_count if top_k is None else top_k
        threshold = (
            self.config.match_threshold
            if similarity_threshold is None
            else similarity_threshold
        )

        if not query or not query.strip():
            raise InvalidConfiguration("query must be a non-empty string")
        if top_k < 1:
            raise InvalidConfiguration(f"top_k must be positive, got {top_k}")
        if not 0.0 <= threshold <= 1.0:
            raise InvalidConfiguration(
                f"similarity_threshold must be within [0, 1], got {threshold}"
            )

        logger.info(
            "transcript_search_started",
            query_length=len(query),
            top_k=top_k,
            threshold=threshold,
        )

        try:
            query_embedding = await self.embedding_service.embed_text(query)
            matches = await self.chunk_store.match_chunks(
                query_embedding, threshold, top_k
            )
        except ExternalCallError as e:
            logger.exception(
                "transcript_search_failed",
                error_type=type(e).__name__,
                timed_out=e.timed_out,
            )
            raise SearchFailure("Vector search failed") from e

        results = sorted(
            (m for m in matches if m.similarity >= threshold),
            key=lambda m: m.similarity,
            reverse=True,
        )[:top_k]

        logger.info(
            "transcript_search_completed",
            results_found=len(results),
            dropped=len(matches) - len(results),
        )
        return results
