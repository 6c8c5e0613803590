"""FastAPI application exposing the transcript search tool over HTTP.

Stateless transport: every POST /mcp carries one JSON-RPC message and gets one
JSON response. No session ids are issued and nothing is kept between requests.
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from src.core.config import TranscriptRAGConfig, get_config
from src.tools.transcript_search.service import TranscriptSearchService
from src.utils.clients import get_clients
from src.utils.logging import configure_logging, get_logger

from .dispatcher import PARSE_ERROR, ToolDispatcher, error_response

logger = get_logger(__name__)

INTERNAL_ERROR_PAYLOAD = {
    "jsonrpc": "2.0",
    "error": {"code": -32603, "message": "Internal server error"},
    "id": None,
}


def build_dispatcher(config: TranscriptRAGConfig) -> ToolDispatcher:
    """Wire the search service and dispatcher from configuration."""
    embedding_service, store = get_clients(config)
    search_service = TranscriptSearchService(config, store, embedding_service)
    return ToolDispatcher(search_service)


# ==============================================================================
# Routes
# ==============================================================================

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint.

    Returns:
        Health status and timestamp.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "services": {
            "dispatcher": getattr(request.app.state, "dispatcher", None) is not None,
        },
    }


@router.post("/mcp")
async def mcp_endpoint(request: Request) -> Response:
    """Handle one JSON-RPC message.

    Returns:
        200 with the JSON-RPC response, 202 for notifications, 400 for bodies
        that are not JSON, or 500 with a generic internal error.
    """
    try:
        try:
            message = await request.json()
        except ValueError:
            logger.warning("mcp_parse_error")
            return JSONResponse(
                status_code=400,
                content=error_response(None, PARSE_ERROR, "Parse error"),
            )

        dispatcher: ToolDispatcher = request.app.state.dispatcher
        response = await dispatcher.handle(message)

        if response is None:
            return Response(status_code=202)
        return JSONResponse(content=response)

    except Exception:
        logger.exception("mcp_request_failed")
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_PAYLOAD)


# ==============================================================================
# FastAPI Application Setup
# ==============================================================================


def create_app(dispatcher: ToolDispatcher | None = None) -> FastAPI:
    """Create the HTTP app.

    Args:
        dispatcher: Tool dispatcher to serve. When omitted it is built from
            environment configuration at startup.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("application_startup_started")
        if app.state.dispatcher is None:
            try:
                config = get_config()
                configure_logging(config.log_level)
                app.state.dispatcher = build_dispatcher(config)
            except Exception:
                logger.exception("application_startup_failed")
                raise
        logger.info("application_startup_completed")

        yield

        logger.info("application_shutdown_completed")

    app = FastAPI(
        title="Transcript Search MCP Server",
        description="Semantic search over transcript chunks exposed as an MCP tool",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher
    app.include_router(router)
    return app


app = create_app()
