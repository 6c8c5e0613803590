"""Shared fixtures: test configuration, an in-memory store and a fake embedder."""

import math
import re
import zlib
from typing import Any

import pytest

from src.core.config import ReingestPolicy, TranscriptRAGConfig
from src.core.errors import EmbeddingFailure, StoreReadFailure, StoreWriteFailure
from src.core.schemas import ChunkWithEmbedding, SearchResult, Transcript

DIMENSIONS = 64


class FakeEmbeddingService:
    """Deterministic bag-of-words embedder: identical text, identical vector."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail_on_call: int | None = None

    async def embed_text(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise EmbeddingFailure("embedding provider unavailable")

        vector = [0.0] * DIMENSIONS
        for word in re.findall(r"\w+", text.lower()):
            vector[zlib.crc32(word.encode()) % DIMENSIONS] += 1.0
        return vector


class InMemoryStore:
    """TranscriptStore and ChunkStore backed by lists, with cosine search."""

    def __init__(self) -> None:
        self.transcripts: list[Transcript] = []
        self.chunks: list[ChunkWithEmbedding] = []
        self.fail_insert_on: int | None = None
        self.fail_match = False
        self.insert_calls = 0
        self.match_calls: list[dict[str, Any]] = []

    async def list_transcripts(self) -> list[Transcript]:
        return list(self.transcripts)

    async def get_transcript(self, transcript_id: Any) -> Transcript | None:
        return next((t for t in self.transcripts if t.id == transcript_id), None)

    async def insert_transcript(self, url: str, text: str) -> Transcript:
        transcript = Transcript(id=len(self.transcripts) + 1, url=url, transcript=text)
        self.transcripts.append(transcript)
        return transcript

    async def insert_chunk(self, chunk: ChunkWithEmbedding) -> int:
        self.insert_calls += 1
        if self.fail_insert_on is not None and self.insert_calls == self.fail_insert_on:
            raise StoreWriteFailure("insert rejected")
        self.chunks.append(chunk)
        return len(self.chunks)

    async def count_chunks(self, transcript_id: Any) -> int:
        return len(self.chunks_for(transcript_id))

    async def list_chunk_texts(self, transcript_id: Any) -> list[str]:
        ordered = sorted(self.chunks_for(transcript_id), key=lambda c: c.chunk_index)
        return [c.chunk_text for c in ordered]

    async def delete_chunks(self, transcript_id: Any) -> int:
        before = len(self.chunks)
        self.chunks = [c for c in self.chunks if c.transcript_id != transcript_id]
        return before - len(self.chunks)

    async def match_chunks(
        self, query_embedding: list[float], match_threshold: float, match_count: int
    ) -> list[SearchResult]:
        self.match_calls.append(
            {"threshold": match_threshold, "count": match_count}
        )
        if self.fail_match:
            raise StoreReadFailure("rpc failed")

        scored = [
            SearchResult(
                transcript_id=c.transcript_id,
                chunk_text=c.chunk_text,
                similarity=cosine(query_embedding, c.embedding),
            )
            for c in self.chunks
        ]
        scored = [s for s in scored if s.similarity >= match_threshold]
        scored.sort(key=lambda s: s.similarity, reverse=True)
        return scored[:match_count]

    def chunks_for(self, transcript_id: Any) -> list[ChunkWithEmbedding]:
        return [c for c in self.chunks if c.transcript_id == transcript_id]


def cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return min(1.0, dot / norm) if norm else 0.0


@pytest.fixture
def config() -> TranscriptRAGConfig:
    """Configuration with small windows and no retry delays."""
    return TranscriptRAGConfig(
        chunk_size=40,
        chunk_overlap=10,
        reingest_policy=ReingestPolicy.RESUME,
        match_count=6,
        match_threshold=0.3,
        embedding_api_key="test_key",
        embedding_dimensions=0,
        embedding_timeout_seconds=1.0,
        store_timeout_seconds=1.0,
        max_retries=1,
        retry_initial_wait=0,
        retry_max_wait=0,
        supabase_url="https://test.supabase.co",
        supabase_key="test_key",
    )


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def embedder() -> FakeEmbeddingService:
    """Deterministic fake embedding service."""
    return FakeEmbeddingService()
