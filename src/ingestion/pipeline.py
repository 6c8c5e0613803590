"""Ingestion pipeline: chunk, embed and store transcripts."""

from src.core.config import ReingestPolicy, TranscriptRAGConfig
from src.core.embedding_service import EmbeddingService
from src.core.errors import (
    EmbeddingFailure,
    ExternalCallError,
    InvalidConfiguration,
    StoreWriteFailure,
    TranscriptRAGError,
)
from src.core.schemas import (
    Chunk,
    ChunkWithEmbedding,
    PipelineResult,
    Transcript,
    TranscriptId,
    TranscriptIngestionResult,
)
from src.core.storage_service import ChunkStore, TranscriptStore
from src.utils.logging import get_logger

from .chunking_service import ChunkingService, expected_chunk_count

logger = get_logger(__name__)


class TranscriptIngestionPipeline:
    """Orchestrates chunking, embedding and storage for stored transcripts.

    Chunks of one transcript are embedded and written strictly in order, one
    provider call at a time. Ingestion is not transactional: a failure at chunk
    i leaves chunks 0..i-1 in the store, and the raised error says how far it
    got. What happens to a transcript that already has chunks is decided by
    ``config.reingest_policy``.
    """

    def __init__(
        self,
        config: TranscriptRAGConfig,
        transcript_store: TranscriptStore,
        chunk_store: ChunkStore,
        embedding_service: EmbeddingService,
    ):
        """Initialize pipeline with injected store and embedding handles.

        Args:
            config: Configuration object with window and re-ingestion settings.
            transcript_store: Source of transcripts to ingest.
            chunk_store: Destination for embedded chunks.
            embedding_service: Embedding client, shared with retrieval.

        Raises:
            InvalidConfiguration: If the window parameters are invalid.
        """
        self.config = config
        self.transcript_store = transcript_store
        self.chunk_store = chunk_store
        self.embedding_service = embedding_service
        self.chunking_service = ChunkingService(config)

        logger.info(
            "pipeline_initialized",
            chunk_size=config.chunk_size,
            overlap=config.chunk_overlap,
            reingest_policy=str(config.reingest_policy),
        )

    async def ingest(self, transcript: Transcript) -> int:
        """Ingest one transcript.

        Args:
            transcript: Stored transcript to chunk and embed.

        Returns:
            Number of chunks written by this call. Zero when the resume policy
            finds the transcript already complete.

        Raises:
            EmbeddingFailure: If embedding chunk i fails; chunks before i stay.
            StoreWriteFailure: If writing chunk i (or clearing old chunks) fails.
            StoreReadFailure: If existing chunks cannot be read.
            InvalidConfiguration: If stored chunks were cut with different
                window settings under the resume policy.
        """
        chunks = self.chunking_service.chunk_transcript(transcript)
        start_index = await self._resolve_start_index(transcript.id, chunks)

        if start_index >= len(chunks):
            logger.info(
                "transcript_already_ingested",
                transcript_id=transcript.id,
                chunks=len(chunks),
            )
            return 0

        written = 0
        for chunk in chunks[start_index:]:
            try:
                await self._write_chunk(chunk)
            except (EmbeddingFailure, StoreWriteFailure) as e:
                logger.error(
                    "chunk_ingestion_failed",
                    transcript_id=transcript.id,
                    chunk_index=chunk.chunk_index,
                    chunks_written=written,
                    error_type=type(e).__name__,
                    timed_out=e.timed_out,
                )
                raise e.with_progress(transcript.id, chunk.chunk_index, written)

            written += 1
            logger.info(
                "chunk_inserted",
                transcript_id=transcript.id,
                chunk_index=chunk.chunk_index,
                total=len(chunks),
            )

        logger.info(
            "transcript_ingested",
            transcript_id=transcript.id,
            chunks_written=written,
            resumed_from=start_index,
        )
        return written

    async def _write_chunk(self, chunk: Chunk) -> None:
        """Embed one chunk, then insert it."""
        embedding = await self.embedding_service.embed_text(chunk.chunk_text)
        await self.chunk_store.insert_chunk(
            ChunkWithEmbedding(**chunk.model_dump(), embedding=embedding)
        )

    async def _resolve_start_index(
        self, transcript_id: TranscriptId, chunks: list[Chunk]
    ) -> int:
        """Apply the re-ingestion policy and return the first index to write.

        Under the resume policy the stored chunks must be exactly the leading
        windows of the current chunking, otherwise new windows would be mixed
        with windows cut under other settings.
        """
        policy = self.config.reingest_policy
        total_chunks = len(chunks)

        if policy == ReingestPolicy.APPEND:
            return 0

        if policy == ReingestPolicy.REPLACE:
            await self.chunk_store.delete_chunks(transcript_id)
            return 0

        stored_texts = await self.chunk_store.list_chunk_texts(transcript_id)
        existing = len(stored_texts)
        if existing > total_chunks:
            raise InvalidConfiguration(
                f"Transcript {transcript_id} has {existing} stored chunks but the "
                f"current window settings produce {total_chunks}; "
                "re-ingest with the replace policy"
            )
        mismatch = next(
            (
                i
                for i, (stored, chunk) in enumerate(zip(stored_texts, chunks))
                if stored != chunk.chunk_text
            ),
            None,
        )
        if mismatch is not None:
            logger.warning(
                "stored_chunks_mismatch",
                transcript_id=transcript_id,
                chunk_index=mismatch,
                existing_chunks=existing,
            )
            raise InvalidConfiguration(
                f"Stored chunk {mismatch} of transcript {transcript_id} does not "
                "match the current window settings; "
                "re-ingest with the replace policy"
            )
        if existing:
            logger.info(
                "transcript_resuming",
                transcript_id=transcript_id,
                existing_chunks=existing,
                total_chunks=total_chunks,
            )
        return existing

    async def ingest_all(
        self,
        transcript_id: TranscriptId | None = None,
        dry_run: bool = False,
    ) -> PipelineResult:
        """Ingest every stored transcript, or a single one.

        Failures are recorded per transcript and the batch moves on to the next
        one.

        Args:
            transcript_id: Only ingest this transcript when given.
            dry_run: Chunk and count only; no embedding calls or writes.

        Returns:
            PipelineResult with per-transcript outcomes and totals.

        Raises:
            StoreReadFailure: If the transcripts cannot be loaded at all.
        """
        logger.info("pipeline_started", transcript_id=transcript_id, dry_run=dry_run)

        result = PipelineResult()

        if transcript_id is not None:
            transcript = await self.transcript_store.get_transcript(transcript_id)
            if transcript is None:
                result.total_transcripts = 1
                result.failed = 1
                result.transcripts.append(
                    TranscriptIngestionResult(
                        transcript_id=transcript_id,
                        status="failed",
                        error="Transcript not found",
                    )
                )
                result.errors.append(f"{transcript_id}: Transcript not found")
                return result
            transcripts = [transcript]
        else:
            transcripts = await self.transcript_store.list_transcripts()

        result.total_transcripts = len(transcripts)
        logger.info("transcripts_fetched", count=len(transcripts))

        for transcript in transcripts:
            outcome = (
                self._dry_run(transcript)
                if dry_run
                else await self._ingest_with_report(transcript)
            )
            result.transcripts.append(outcome)

            if outcome.status == "completed":
                result.processed += 1
            elif outcome.status == "skipped":
                result.skipped += 1
            elif outcome.status == "partial":
                result.partial += 1
            else:
                result.failed += 1
            result.chunks_created += outcome.chunks_written

            if outcome.error:
                result.errors.append(f"{transcript.id}: {outcome.error}")

        logger.info(
            "pipeline_completed",
            processed=result.processed,
            partial=result.partial,
            failed=result.failed,
            skipped=result.skipped,
            chunks_created=result.chunks_created,
        )
        return result

    def _dry_run(self, transcript: Transcript) -> TranscriptIngestionResult:
        chunks = self.chunking_service.chunk_transcript(transcript)
        return TranscriptIngestionResult(
            transcript_id=transcript.id,
            status="skipped",
            chunks_expected=len(chunks),
        )

    async def _ingest_with_report(
        self, transcript: Transcript
    ) -> TranscriptIngestionResult:
        """Run ingest() and turn its outcome into a report instead of raising."""
        expected = expected_chunk_count(
            len(transcript.transcript),
            self.config.chunk_size,
            self.config.chunk_overlap,
        )
        logger.info("processing_transcript", transcript_id=transcript.id)

        try:
            written = await self.ingest(transcript)
        except ExternalCallError as e:
            # Chunks before the failing index are stored and stay stored
            partial = bool(e.chunk_index)
            return TranscriptIngestionResult(
                transcript_id=transcript.id,
                status="partial" if partial else "failed",
                chunks_expected=expected,
                chunks_written=e.chunks_written,
                failed_chunk_index=e.chunk_index,
                error=str(e),
            )
        except TranscriptRAGError as e:
            logger.warning(
                "transcript_ingestion_rejected",
                transcript_id=transcript.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return TranscriptIngestionResult(
                transcript_id=transcript.id,
                status="failed",
                chunks_expected=expected,
                error=str(e),
            )

        status = "skipped" if written == 0 and expected > 0 else "completed"
        return TranscriptIngestionResult(
            transcript_id=transcript.id,
            status=status,
            chunks_expected=expected,
            chunks_written=written,
        )
