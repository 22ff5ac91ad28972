from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Libraries that log every request at INFO; the sync job logs its own calls.
_QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite", "asyncio")


def configure_logging(env: str = "development", debug: bool = False) -> None:
    """Route structlog through stdlib logging on stdout.

    Development gets the coloured console renderer, production one JSON
    object per line. ``order_id`` and ``cabinet_id`` bound with
    ``structlog.contextvars`` appear on every line logged while they are set.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if env == "production":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
