"""Storage for transcripts and transcript chunks in the Supabase vector database."""

import asyncio
from collections.abc import Callable
from typing import Any, Protocol

from pydantic import ValidationError
from supabase import Client, create_client

from src.utils.logging import get_logger
from src.utils.retry import call_with_retry

from .config import TranscriptRAGConfig
from .errors import ExternalCallError, StoreReadFailure, StoreWriteFailure
from .schemas import ChunkId, ChunkWithEmbedding, SearchResult, Transcript, TranscriptId

logger = get_logger(__name__)

TRANSCRIPTS_TABLE = "transcripts"
CHUNKS_TABLE = "transcript_chunks"
MATCH_FUNCTION = "match_transcript_chunk"


class TranscriptStore(Protocol):
    """Read/insert surface over raw transcripts."""

    async def list_transcripts(self) -> list[Transcript]: ...

    async def get_transcript(self, transcript_id: TranscriptId) -> Transcript | None: ...

    async def insert_transcript(self, url: str, text: str) -> Transcript: ...


class ChunkStore(Protocol):
    """Append-only chunk surface plus similarity search."""

    async def insert_chunk(self, chunk: ChunkWithEmbedding) -> ChunkId | None: ...

    async def count_chunks(self, transcript_id: TranscriptId) -> int: ...

    async def list_chunk_texts(self, transcript_id: TranscriptId) -> list[str]: ...

    async def delete_chunks(self, transcript_id: TranscriptId) -> int: ...

    async def match_chunks(
        self,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[SearchResult]: ...


class StorageService:
    """Supabase-backed TranscriptStore and ChunkStore.

    The Supabase client is synchronous, so each query runs in a worker thread
    and only suspends the calling task. Every call is bounded by
    ``store_timeout_seconds`` and retried with backoff; inserts are not retried
    after a timeout because the row may already exist.
    """

    def __init__(self, config: TranscriptRAGConfig, client: Client | None = None):
        """Initialize storage service with configuration.

        Args:
            config: Configuration object with Supabase credentials.
            client: Preconfigured Supabase client; built from config when omitted.
        """
        self.config = config
        self.client: Client = client or create_client(
            config.supabase_url,
            config.supabase_key,
        )
        logger.info(
            "storage_service_initialized",
            supabase_url=config.supabase_url,
        )

    async def _execute(
        self,
        operation: str,
        query: Callable[[], Any],
        failure_cls: type[ExternalCallError],
        retry_on_timeout: bool = True,
    ) -> Any:
        """Run a blocking Supabase query under the store timeout and retry policy."""
        return await call_with_retry(
            lambda: asyncio.to_thread(query),
            operation=operation,
            failure_cls=failure_cls,
            timeout=self.config.store_timeout_seconds,
            max_retries=self.config.max_retries,
            initial_wait=self.config.retry_initial_wait,
            max_wait=self.config.retry_max_wait,
            retry_on_timeout=retry_on_timeout,
        )

    # ------------------------------------------------------------------
    # Transcript surface
    # ------------------------------------------------------------------

    async def list_transcripts(self) -> list[Transcript]:
        """Fetch every stored transcript, oldest first.

        Raises:
            StoreReadFailure: If the query fails or returns malformed rows.
        """
        response = await self._execute(
            "list_transcripts",
            lambda: self.client.table(TRANSCRIPTS_TABLE)
            .select("id, url, transcript")
            .order("id")
            .execute(),
            StoreReadFailure,
        )
        transcripts = self._parse_transcripts(response.data or [])
        logger.info("transcripts_loaded", count=len(transcripts))
        return transcripts

    async def get_transcript(self, transcript_id: TranscriptId) -> Transcript | None:
        """Fetch one transcript by id, or None if it does not exist."""
        response = await self._execute(
            "get_transcript",
            lambda: self.client.table(TRANSCRIPTS_TABLE)
            .select("id, url, transcript")
            .eq("id", transcript_id)
            .execute(),
            StoreReadFailure,
        )
        transcripts = self._parse_transcripts(response.data or [])
        if not transcripts:
            logger.warning("transcript_not_found", transcript_id=transcript_id)
            return None
        return transcripts[0]

    async def insert_transcript(self, url: str, text: str) -> Transcript:
        """Store a new transcript and return it with its assigned id.

        Raises:
            StoreWriteFailure: If the insert fails or returns no row.
        """
        response = await self._execute(
            "insert_transcript",
            lambda: self.client.table(TRANSCRIPTS_TABLE)
            .insert({"url": url, "transcript": text})
            .execute(),
            StoreWriteFailure,
            retry_on_timeout=False,
        )
        if not response.data:
            raise StoreWriteFailure(f"Insert returned no row for transcript {url}")

        transcript = Transcript.model_validate(response.data[0])
        logger.info(
            "transcript_saved",
            transcript_id=transcript.id,
            url=url,
            length=len(text),
        )
        return transcript

    @staticmethod
    def _parse_transcripts(rows: list[dict[str, Any]]) -> list[Transcript]:
        try:
            return [Transcript.model_validate(row) for row in rows]
        except ValidationError as e:
            raise StoreReadFailure(f"Malformed transcript row: {e}") from e

    # ------------------------------------------------------------------
    # Chunk surface
    # ------------------------------------------------------------------

    async def insert_chunk(self, chunk: ChunkWithEmbedding) -> ChunkId | None:
        """Insert one chunk with its embedding.

        Returns:
            The id assigned by the store, when the insert echoes it back.

        Raises:
            StoreWriteFailure: If the insert fails or times out.
        """
        data = {
            "transcript_id": chunk.transcript_id,
            "chunk_index": chunk.chunk_index,
            "chunk_text": chunk.chunk_text,
            "embedding": chunk.embedding,
        }
        response = await self._execute(
            "insert_chunk",
            lambda: self.client.table(CHUNKS_TABLE).insert(data).execute(),
            StoreWriteFailure,
            retry_on_timeout=False,
        )
        logger.debug(
            "chunk_saved",
            transcript_id=chunk.transcript_id,
            chunk_index=chunk.chunk_index,
        )
        return response.data[0].get("id") if response.data else None

    async def count_chunks(self, transcript_id: TranscriptId) -> int:
        """Count chunks already stored for a transcript."""
        response = await self._execute(
            "count_chunks",
            lambda: self.client.table(CHUNKS_TABLE)
            .select("id", count="exact")
            .eq("transcript_id", transcript_id)
            .execute(),
            StoreReadFailure,
        )
        count = response.count if response.count is not None else len(response.data or [])
        logger.debug("chunks_counted", transcript_id=transcript_id, count=count)
        return count

    async def list_chunk_texts(self, transcript_id: TranscriptId) -> list[str]:
        """Fetch the stored chunk texts of a transcript in chunk_index order.

        Raises:
            StoreReadFailure: If the query fails or returns malformed rows.
        """
        response = await self._execute(
            "list_chunk_texts",
            lambda: self.client.table(CHUNKS_TABLE)
            .select("chunk_index, chunk_text")
            .eq("transcript_id", transcript_id)
            .order("chunk_index")
            .execute(),
            StoreReadFailure,
        )
        rows = response.data or []
        try:
            texts = [row["chunk_text"] for row in rows]
        except (KeyError, TypeError) as e:
            raise StoreReadFailure(f"Malformed chunk row: {e}") from e

        logger.debug("chunk_texts_loaded", transcript_id=transcript_id, count=len(texts))
        return texts

    async def delete_chunks(self, transcript_id: TranscriptId) -> int:
        """Delete every chunk of a transcript and return how many were removed."""
        response = await self._execute(
            "delete_chunks",
            lambda: self.client.table(CHUNKS_TABLE)
            .delete()
            .eq("transcript_id", transcript_id)
            .execute(),
            StoreWriteFailure,
        )
        deleted = len(response.data or [])
        logger.info("chunks_deleted", transcript_id=transcript_id, count=deleted)
        return deleted

    async def match_chunks(
        self,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[SearchResult]:
        """Search for similar chunks using the match_transcript_chunk RPC.

        Similarity is cosine-based and computed by the database.

        Args:
            query_embedding: Query embedding vector.
            match_threshold: Minimum similarity for a row to be returned.
            match_count: Maximum number of rows to return.

        Returns:
            Matches as returned by the database.

        Raises:
            StoreReadFailure: If the RPC fails or returns malformed rows.
        """
        response = await self._execute(
            "match_chunks",
            lambda: self.client.rpc(
                MATCH_FUNCTION,
                {
                    "query_embedding": query_embedding,
                    "match_threshold": match_threshold,
                    "match_count": match_count,
                },
            ).execute(),
            StoreReadFailure,
        )
        rows = response.data or []
        try:
            results = [SearchResult.model_validate(row) for row in rows]
        except ValidationError as e:
            raise StoreReadFailure(f"Malformed match row: {e}") from e

        logger.info(
            "vector_search_completed",
            results=len(results),
            match_count=match_count,
            match_threshold=match_threshold,
        )
        return results
