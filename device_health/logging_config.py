"""
Structured logging setup for device health diagnostics.

Every module logs through `structlog.get_logger(__name__)` with key-value
events. This module wires structlog into the stdlib root logger once at
startup, rendering either human-readable console lines (development) or one
JSON object per line (log aggregation).

Usage:
    from device_health.logging_config import configure_logging
    configure_logging()                    # LOG_LEVEL / LOG_FORMAT from env
    configure_logging("DEBUG", json_output=True)

Environment variables:
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default INFO)
    LOG_FORMAT: "json" or "console" (default console)
"""

import logging
import os
import sys
from typing import Optional

import structlog

_SHARED_PROCESSORS = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
)


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Log level name; falls back to LOG_LEVEL, then INFO
        json_output: JSON renderer if True; falls back to LOG_FORMAT == "json"
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_output is None:
        json_output = os.getenv("LOG_FORMAT", "console").lower() == "json"

    if json_output:
        final_processors = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=list(_SHARED_PROCESSORS),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *final_processors,
        ],
    )

    # stdout is reserved for command output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level, logging.INFO))
