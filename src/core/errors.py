"""Exception taxonomy for the transcript RAG pipeline.

Ingestion errors carry enough context (transcript, chunk index, chunks already
written) for a batch driver to report partial ingestion and move on. Provider
and store errors record whether the failure was a timeout so callers can tell a
slow dependency from a hard failure.
"""

from typing import Any


class TranscriptRAGError(Exception):
    """Base class for all errors raised by this package."""


class InvalidConfiguration(TranscriptRAGError):
    """Raised for bad chunking, search or tool parameters, before any I/O."""


class ExternalCallError(TranscriptRAGError):
    """Failure of a call to the embedding provider or the store."""

    def __init__(
        self,
        message: str,
        *,
        timed_out: bool = False,
        transcript_id: Any = None,
        chunk_index: int | None = None,
        chunks_written: int = 0,
    ):
        super().__init__(message)
        self.timed_out = timed_out
        self.transcript_id = transcript_id
        self.chunk_index = chunk_index
        self.chunks_written = chunks_written

    def with_progress(
        self, transcript_id: Any, chunk_index: int, chunks_written: int
    ) -> "ExternalCallError":
        """Attach ingestion progress to the error and return it."""
        self.transcript_id = transcript_id
        self.chunk_index = chunk_index
        self.chunks_written = chunks_written
        return self


class EmbeddingFailure(ExternalCallError):
    """Embedding provider call failed, timed out, or returned malformed data."""


class StoreWriteFailure(ExternalCallError):
    """Insert or delete against the store failed."""


class StoreReadFailure(ExternalCallError):
    """Read or similarity query against the store failed."""


class SearchFailure(TranscriptRAGError):
    """Retrieval failed because the embedding or the store query failed."""
