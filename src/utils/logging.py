"""Shared logging utilities for structured logging across the application.

Logs are JSON lines produced by structlog and written to stderr. stdout is
reserved for protocol traffic when the tool server runs over stdio.
"""

import logging
import sys

import structlog

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog and the standard library root logger.

    Safe to call more than once; only the level changes on later calls.

    Args:
        level: Log level name such as "INFO" or "DEBUG".
    """
    global _configured

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if _configured:
        logging.getLogger().setLevel(numeric_level)
        return

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured structured logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module).

    Returns:
        Configured structlog logger instance ready for use.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("chunk_inserted", transcript_id=12, chunk_index=0)
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)
