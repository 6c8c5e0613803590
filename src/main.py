"""Entry point for the transcript search tool server.

Runs over stdio with ``--stdio`` (for desktop MCP clients), otherwise serves
HTTP on ``/mcp``.
"""

import argparse
import asyncio
import sys

from src.api.main import app, build_dispatcher
from src.api.stdio import serve_stdio
from src.core.config import get_config
from src.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def run(argv: list[str] | None = None) -> None:
    """Parse arguments and start the selected transport."""
    parser = argparse.ArgumentParser(description="Transcript search MCP server")
    parser.add_argument(
        "--stdio",
        action="store_true",
        help="Serve over stdin/stdout instead of HTTP",
    )
    parser.add_argument("--host", default="127.0.0.1", help="HTTP bind address")
    parser.add_argument("--port", type=int, help="HTTP port (default: $PORT or 3000)")
    args = parser.parse_args(argv)

    config = get_config()
    configure_logging(config.log_level)

    try:
        dispatcher = build_dispatcher(config)
    except Exception:
        logger.exception("server_startup_failed")
        sys.exit(1)

    if args.stdio:
        logger.info("server_starting", transport="stdio")
        asyncio.run(serve_stdio(dispatcher))
        return

    import uvicorn

    port = args.port or config.port
    logger.info("server_starting", transport="http", host=args.host, port=port)
    app.state.dispatcher = dispatcher
    uvicorn.run(app, host=args.host, port=port)


if __name__ == "__main__":
    run()
