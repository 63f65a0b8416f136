"""Structured logging for the autopilot, built on structlog.

Development gets a colored console; every other environment gets one JSON
object per line. Request handlers bind a request_id and the engine binds the
cycle number through contextvars, so both show up on every event emitted
underneath them.

Agent bearer keys travel through the marketplace adapter and the squadron
profiles. Any event field whose name looks like a credential is masked
before rendering.

Usage:
    from agent_autopilot.logging_config import setup_logging, get_logger
    setup_logging(log_level="INFO", json_logs=True)
    logger = get_logger(__name__)
    logger.info("cycle.started", cycle=3)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_SECRET_FIELDS = ("api_key", "agent_key", "authorization", "token", "secret")

# Third-party loggers that drown out cycle events at DEBUG.
_QUIET_LOGGERS = (
    "uvicorn.access",
    "sqlalchemy.engine",
    "aiosqlite",
    "httpx",
    "httpcore",
    "mcp.server",
)


def mask_secret(value: object) -> str:
    """Keep the last four characters of a credential, e.g. ``****3f9a``."""
    text = str(value)
    if len(text) <= 4:
        return "****"
    return "****" + text[-4:]


def redact_secrets(
    _logger: Any, _method: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """structlog processor masking credential-like fields."""
    for key, value in event_dict.items():
        if not value or key == "event" or key.endswith("_address"):
            continue
        if any(s in key.lower() for s in _SECRET_FIELDS):
            event_dict[key] = mask_secret(value)
    return event_dict


def setup_logging(log_level: str = "DEBUG", json_logs: bool = False) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ...). Unknown names fall back to DEBUG.
        json_logs: JSON lines when True, colored console otherwise.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.DEBUG))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger; pass ``__name__`` to tag events with the module."""
    return structlog.get_logger(name)
