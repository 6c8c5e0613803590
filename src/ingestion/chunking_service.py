"""Chunking service for fixed-size, overlapping transcript windows."""

import math

from src.core.config import TranscriptRAGConfig
from src.core.errors import InvalidConfiguration
from src.core.schemas import Chunk, Transcript
from src.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 800
DEFAULT_CHUNK_OVERLAP = 150


def validate_chunking(chunk_size: int, overlap: int) -> None:
    """Reject window parameters that would loop forever or move backwards.

    Raises:
        InvalidConfiguration: If chunk_size < 1, overlap < 0 or
            overlap >= chunk_size.
    """
    if chunk_size < 1:
        raise InvalidConfiguration(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise InvalidConfiguration(f"overlap must be non-negative, got {overlap}")
    if overlap >= chunk_size:
        raise InvalidConfiguration(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
        )


def chunk_offsets(
    text_length: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[int]:
    """Start offsets of every window over a text of the given length."""
    validate_chunking(chunk_size, overlap)
    return list(range(0, text_length, chunk_size - overlap))


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Split text into overlapping character windows.

    Windows start at 0 and advance by ``chunk_size - overlap``; the last one
    may be shorter than ``chunk_size``. Boundaries fall on character offsets,
    not words or sentences.

    Args:
        text: Text to split.
        chunk_size: Maximum window length in characters.
        overlap: Characters shared by consecutive windows.

    Returns:
        Windows in order. Empty text yields an empty list.

    Raises:
        InvalidConfiguration: If the window parameters are invalid.

    Examples:
        >>> chunk_text("ABCDEFGHIJ", chunk_size=4, overlap=1)
        ['ABCD', 'DEFG', 'GHIJ']
    """
    return [
        text[start : min(start + chunk_size, len(text))]
        for start in chunk_offsets(len(text), chunk_size, overlap)
    ]


def expected_chunk_count(
    text_length: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> int:
    """Number of windows chunk_text produces for a text of this length.

    This is ``ceil((n - overlap) / step)`` except when the last start offset
    lands inside the previous window's overlap; that tail window is still
    emitted, so the count is ``ceil(n / step)``.
    """
    validate_chunking(chunk_size, overlap)
    return math.ceil(text_length / (chunk_size - overlap))


class ChunkingService:
    """Turns stored transcripts into indexed Chunk models."""

    def __init__(self, config: TranscriptRAGConfig):
        """Initialize chunking service with configuration.

        Args:
            config: Configuration object with window size and overlap.

        Raises:
            InvalidConfiguration: If the window parameters are invalid.
        """
        validate_chunking(config.chunk_size, config.chunk_overlap)
        self.config = config
        logger.info(
            "chunking_service_initialized",
            chunk_size=config.chunk_size,
            overlap=config.chunk_overlap,
        )

    def chunk_transcript(self, transcript: Transcript) -> list[Chunk]:
        """Chunk a transcript into windows numbered from 0.

        Args:
            transcript: Stored transcript to split.

        Returns:
            Chunks in sequence-index order, ready for embedding.
        """
        windows = chunk_text(
            transcript.transcript,
            self.config.chunk_size,
            self.config.chunk_overlap,
        )
        chunks = [
            Chunk(transcript_id=transcript.id, chunk_index=i, chunk_text=window)
            for i, window in enumerate(windows)
        ]
        logger.info(
            "chunking_completed",
            transcript_id=transcript.id,
            text_length=len(transcript.transcript),
            chunks_created=len(chunks),
        )
        return chunks
