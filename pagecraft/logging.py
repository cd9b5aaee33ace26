"""structlog setup for conversions run from the CLI or embedded in a service."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

# Library loggers that report every request or browser event at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "markdown", "asyncio")


def setup_logging(*, json: bool = True, level: str = "INFO", stream: TextIO | None = None) -> None:
    """Route structlog and stdlib logging through one handler.

    Parameters
    ----------
    json:
        JSON lines when *True*; the console renderer otherwise (the CLI's
        ``--console-log``).
    level:
        Root log level name, case-insensitive.
    stream:
        Destination, ``sys.stderr`` by default.  stdout stays free for
        ``-o -`` output.
    """
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_conversion_context(**context: Any) -> None:
    """Attach *context* (source, mode, ...) to every following log event."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{k: v for k, v in context.items() if v is not None})
