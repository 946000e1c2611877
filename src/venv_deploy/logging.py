"""Logging configuration."""
import datetime
import json
import logging
import sys
from typing import Any, List

import structlog
from structlog.types import Processor, EventDict

IGNORED_LOGGERS = [
    "mcp.server.session",
    "mcp.server.stdio",
    "asyncio",
]


def add_timestamp(_, __, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to the event dict."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return event_dict


def drop_ignored(logger: Any, name: str, event_dict: EventDict) -> EventDict:
    """Drop records coming from noisy third-party loggers."""
    logger_name = getattr(logger, "name", "") or ""
    if any(ignored in logger_name for ignored in IGNORED_LOGGERS):
        raise structlog.DropEvent
    return event_dict


def unpack_event(_, __, event_dict: EventDict) -> EventDict:
    """Flatten dict events (``logger.info({"event": ..., ...})``) into the record."""
    event = event_dict.get("event")
    if isinstance(event, dict):
        payload = dict(event)
        event_dict["event"] = payload.pop("event", "")
        for key, value in payload.items():
            event_dict.setdefault(key, value)
    return event_dict


class CompactJSONRenderer:
    """Single-line JSON renderer with minimal output."""

    def __call__(self, _: Any, __: str, event_dict: EventDict) -> str:
        items = {
            "ts": event_dict.pop("timestamp", None),
            "lvl": event_dict.pop("level", "???"),
            "msg": event_dict.pop("event", ""),
        }
        if event_dict:
            items["data"] = dict(event_dict)
        return json.dumps(items, separators=(",", ":"), default=str)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging for the application.

    This sets up:
    - TTY stderr: compact JSON, one record per line
    - otherwise: coloured console output
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )

    json_processors: List[Processor] = [
        drop_ignored,
        structlog.stdlib.filter_by_level,
        unpack_event,
        structlog.stdlib.add_log_level,
        add_timestamp,
        CompactJSONRenderer(),
    ]

    console_processors: List[Processor] = [
        drop_ignored,
        structlog.stdlib.filter_by_level,
        unpack_event,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=True),
    ]

    structlog.configure(
        processors=json_processors if sys.stderr.isatty() else console_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
