"""JSON-RPC tool dispatch shared by the stdio and HTTP transports.

Implements the subset of the Model Context Protocol a single-tool server needs:
initialize, ping, tools/list and tools/call. The dispatcher keeps no session
state, so a long-lived stdio session and one-shot HTTP requests see the same
behaviour.
"""

from typing import Any

from src.core.errors import InvalidConfiguration, SearchFailure
from src.tools.transcript_search.service import TranscriptSearchService
from src.tools.transcript_search.tool import (
    SEARCH_TRANSCRIPTS_TOOL,
    TOOL_NAME,
    search_transcripts_tool,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)

SERVER_NAME = "transcript-search"
SERVER_VERSION = "1.0.0"

LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    """Build a JSON-RPC error response."""
    return {
        "jsonrpc": "2.0",
        "error": {"code": code, "message": message},
        "id": request_id,
    }


def success_response(request_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    """Build a JSON-RPC success response."""
    return {"jsonrpc": "2.0", "result": result, "id": request_id}


class ToolDispatcher:
    """Routes JSON-RPC messages to the search_transcripts tool."""

    def __init__(self, search_service: TranscriptSearchService):
        self.search_service = search_service

    async def handle(self, message: Any) -> dict[str, Any] | None:
        """Handle one decoded JSON-RPC message.

        Args:
            message: Decoded JSON value received from a transport.

        Returns:
            The response object, or None for notifications, which get no reply.
        """
        if not isinstance(message, dict) or message.get("jsonrpc") != "2.0":
            return error_response(None, INVALID_REQUEST, "Invalid Request")

        method = message.get("method")
        request_id = message.get("id")
        is_notification = "id" not in message

        if not isinstance(method, str):
            if is_notification:
                # A response sent by the client; nothing to answer
                return None
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        if is_notification:
            logger.debug("notification_received", method=method)
            return None

        params = message.get("params") or {}
        if not isinstance(params, dict):
            return error_response(request_id, INVALID_PARAMS, "Invalid params")

        logger.info("rpc_request_received", method=method, request_id=request_id)

        try:
            if method == "initialize":
                return success_response(request_id, self._initialize(params))
            if method == "ping":
                return success_response(request_id, {})
            if method == "tools/list":
                return success_response(request_id, {"tools": [SEARCH_TRANSCRIPTS_TOOL]})
            if method == "tools/call":
                return success_response(request_id, await self._call_tool(params))

            return error_response(
                request_id, METHOD_NOT_FOUND, f"Method not found: {method}"
            )

        except InvalidConfiguration as e:
            logger.warning("rpc_invalid_params", method=method, error=str(e))
            return error_response(request_id, INVALID_PARAMS, str(e))
        except SearchFailure:
            # Cause is logged by the search service; callers get a generic error
            return error_response(request_id, INTERNAL_ERROR, "Vector search failed")
        except Exception:
            logger.exception("rpc_request_failed", method=method, request_id=request_id)
            return error_response(request_id, INTERNAL_ERROR, "Internal server error")

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        version = (
            requested
            if requested in SUPPORTED_PROTOCOL_VERSIONS
            else LATEST_PROTOCOL_VERSION
        )
        return {
            "protocolVersion": version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if name != TOOL_NAME:
            raise InvalidConfiguration(f"Unknown tool: {name}")

        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise InvalidConfiguration("Tool arguments must be an object")

        return await search_transcripts_tool(self.search_service, arguments)
