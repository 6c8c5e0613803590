"""The search_transcripts tool: typed contract and transport-independent handler.

The structured payload is the canonical result; the text content carries the
same results rendered as JSON for transports that only show text.
"""

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from src.core.errors import InvalidConfiguration
from src.core.schemas import SearchResult

from .service import TranscriptSearchService

TOOL_NAME = "search_transcripts"


class SearchTranscriptsInput(BaseModel):
    """Arguments accepted by search_transcripts."""

    query: str = Field(
        description="Natural-language description of what to look for in the transcripts."
    )


class SearchTranscriptsOutput(BaseModel):
    """Structured result of search_transcripts."""

    results: list[SearchResult]


SEARCH_TRANSCRIPTS_TOOL: dict[str, Any] = {
    "name": TOOL_NAME,
    "title": "Search Transcripts",
    "description": (
        "Semantic search over transcript chunks stored in Supabase. Returns the "
        "most similar transcript windows with their transcript id and a "
        "similarity score between 0 and 1."
    ),
    "inputSchema": SearchTranscriptsInput.model_json_schema(),
    "outputSchema": SearchTranscriptsOutput.model_json_schema(),
}


async def search_transcripts_tool(
    service: TranscriptSearchService,
    arguments: dict[str, Any] | None,
) -> dict[str, Any]:
    """Validate tool arguments, run the search and build the tool result.

    Args:
        service: Retrieval service that performs the search.
        arguments: Raw tool arguments, expected to match SearchTranscriptsInput.

    Returns:
        Tool result with ``content`` (one text item) and ``structuredContent``.

    Raises:
        InvalidConfiguration: If the arguments are missing or invalid, or the
            query is empty.
        SearchFailure: If the search itself fails.
    """
    try:
        params = SearchTranscriptsInput.model_validate(arguments or {})
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise InvalidConfiguration(
            f"Invalid arguments for {TOOL_NAME}: {fields or 'arguments'}"
        ) from e

    results = await service.search(params.query)
    structured = SearchTranscriptsOutput(results=results).model_dump(mode="json")

    return {
        "content": [
            {
                "type": "text",
                "text": json.dumps(structured["results"], indent=2),
            }
        ],
        "structuredContent": structured,
    }
