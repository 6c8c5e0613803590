"""Pydantic schemas for transcript ingestion and retrieval."""

from typing import Literal

from pydantic import BaseModel, Field

# Store-assigned identifiers are opaque: bigint or uuid depending on the table.
TranscriptId = int | str
ChunkId = int | str


class Transcript(BaseModel):
    """A stored transcript.

    Immutable once stored; one row per ingested source.
    """

    id: TranscriptId
    url: str
    transcript: str


class Chunk(BaseModel):
    """One overlapping character window of a transcript."""

    transcript_id: TranscriptId
    chunk_index: int
    chunk_text: str


class ChunkWithEmbedding(Chunk):
    """Chunk with the embedding vector that gets stored alongside it."""

    embedding: list[float]


class SearchResult(BaseModel):
    """A chunk matched by similarity search."""

    transcript_id: TranscriptId
    chunk_text: str
    similarity: float


IngestionStatus = Literal["completed", "partial", "failed", "skipped"]


class TranscriptIngestionResult(BaseModel):
    """Outcome of ingesting one transcript.

    ``partial`` means some chunks were written before a failure; they are kept,
    and ``failed_chunk_index`` is where a resumed run will start again.
    """

    transcript_id: TranscriptId
    status: IngestionStatus
    chunks_expected: int = 0
    chunks_written: int = 0
    failed_chunk_index: int | None = None
    error: str | None = None


class PipelineResult(BaseModel):
    """Result of a batch ingestion run.

    Summary statistics and error information, used for reporting.
    """

    total_transcripts: int = 0
    processed: int = 0
    partial: int = 0
    failed: int = 0
    skipped: int = 0
    chunks_created: int = 0
    transcripts: list[TranscriptIngestionResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
