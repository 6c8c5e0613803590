"""Stdio transport: one long-lived session, one JSON-RPC message per line.

Messages are handled one at a time in arrival order. stdout carries only
protocol responses; logging goes to stderr.
"""

import asyncio
import json
import sys
from typing import Any, TextIO

from src.utils.logging import get_logger

from .dispatcher import PARSE_ERROR, ToolDispatcher, error_response

logger = get_logger(__name__)


async def handle_line(dispatcher: ToolDispatcher, line: str) -> str | None:
    """Decode one line, dispatch it and encode the response.

    Returns:
        The response line without a trailing newline, or None when there is
        nothing to send (blank line or notification).
    """
    line = line.strip()
    if not line:
        return None

    try:
        message: Any = json.loads(line)
    except json.JSONDecodeError:
        logger.warning("stdio_parse_error", length=len(line))
        return json.dumps(error_response(None, PARSE_ERROR, "Parse error"))

    response = await dispatcher.handle(message)
    if response is None:
        return None
    return json.dumps(response)


async def serve_stdio(
    dispatcher: ToolDispatcher,
    instream: TextIO | None = None,
    outstream: TextIO | None = None,
) -> None:
    """Serve JSON-RPC over line-delimited streams until end of input.

    Args:
        dispatcher: Tool dispatch core.
        instream: Input stream (default: sys.stdin).
        outstream: Output stream (default: sys.stdout).
    """
    instream = instream or sys.stdin
    outstream = outstream or sys.stdout

    logger.info("stdio_server_started")

    while True:
        # Blocking read runs in a thread so the event loop stays responsive
        line = await asyncio.to_thread(instream.readline)
        if not line:
            break

        reply = await handle_line(dispatcher, line)
        if reply is not None:
            outstream.write(reply + "\n")
            outstream.flush()

    logger.info("stdio_server_stopped")
