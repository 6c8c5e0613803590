"""Transcript acquisition via the Supadata YouTube transcript API."""

import asyncio
import re
from urllib.parse import parse_qs, urlparse

from supadata import Supadata

from src.core.config import TranscriptRAGConfig
from src.core.errors import InvalidConfiguration
from src.core.schemas import Transcript
from src.core.storage_service import TranscriptStore
from src.utils.logging import get_logger

logger = get_logger(__name__)

_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")


def extract_video_id(url: str) -> str:
    """Extract the 11-character video id from a YouTube URL.

    Accepts watch, youtu.be, shorts, embed and live URLs, or a bare id.

    Raises:
        InvalidConfiguration: If no video id can be found.

    Examples:
        >>> extract_video_id("https://youtube.com/watch?v=dQw4w9WgXcQ")
        'dQw4w9WgXcQ'
        >>> extract_video_id("https://youtu.be/dQw4w9WgXcQ?t=42")
        'dQw4w9WgXcQ'
    """
    candidate = url.strip()
    if _VIDEO_ID.match(candidate):
        return candidate

    parsed = urlparse(candidate if "://" in candidate else f"https://{candidate}")
    host = (parsed.hostname or "").lower()
    path_parts = [p for p in parsed.path.split("/") if p]

    if host.endswith("youtu.be") and path_parts:
        candidate = path_parts[0]
    elif "youtube" in host:
        query_id = parse_qs(parsed.query).get("v")
        if query_id:
            candidate = query_id[0]
        elif len(path_parts) >= 2 and path_parts[0] in ("shorts", "embed", "live", "v"):
            candidate = path_parts[1]

    if not _VIDEO_ID.match(candidate):
        raise InvalidConfiguration(f"Not a YouTube video URL: {url}")
    return candidate


class TranscriptService:
    """Fetches YouTube transcripts and records them in the transcript store."""

    def __init__(
        self,
        config: TranscriptRAGConfig,
        transcript_store: TranscriptStore,
        client: Supadata | None = None,
    ):
        """Initialize transcript service with configuration.

        Args:
            config: Configuration object with the Supadata API key.
            transcript_store: Where fetched transcripts are inserted.
            client: Preconfigured Supadata client; built from config when omitted.
        """
        self.config = config
        self.transcript_store = transcript_store
        self.client = client or Supadata(api_key=config.supadata_api_key)
        logger.info(
            "transcript_service_initialized",
            api_key_present=bool(config.supadata_api_key),
        )

    async def fetch_transcript_text(self, url: str) -> str | None:
        """Fetch a video transcript as one string.

        Segment texts are joined with single spaces and the result is stripped.

        Args:
            url: YouTube video URL or id.

        Returns:
            Transcript text, or None if the video has no usable transcript.

        Raises:
            InvalidConfiguration: If the URL is not a YouTube video URL.
            Exception: If the API request fails for another reason.
        """
        video_id = extract_video_id(url)
        logger.info("fetching_transcript", url=url, video_id=video_id)

        try:
            response = await asyncio.to_thread(
                self.client.youtube.transcript,
                video_id=video_id,
                text=False,
            )
        except Exception as e:
            error_str = str(e).lower()
            if "transcript-unavailable" in error_str or "206" in error_str:
                logger.warning("transcript_unavailable", video_id=video_id)
                return None

            logger.exception(
                "transcript_fetch_error",
                video_id=video_id,
                error_type=type(e).__name__,
            )
            raise

        content = getattr(response, "content", None)
        if not isinstance(content, list):
            logger.warning("transcript_content_invalid", video_id=video_id)
            return None

        text = " ".join(segment.text for segment in content).strip()
        logger.info(
            "transcript_fetched",
            video_id=video_id,
            segments=len(content),
            length=len(text),
        )
        return text or None

    async def add_transcript(self, url: str) -> Transcript | None:
        """Fetch a transcript and store it.

        Returns:
            The stored transcript, or None if none was available.

        Raises:
            StoreWriteFailure: If the insert fails.
        """
        text = await self.fetch_transcript_text(url)
        if text is None:
            return None
        return await self.transcript_store.insert_transcript(url, text)
