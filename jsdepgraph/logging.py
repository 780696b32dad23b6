"""Structured logging configuration using ``structlog``.

Call :func:`setup_logging` once at startup (the API lifespan and the
command line both do) to configure ``structlog`` and the
standard-library ``logging`` module together.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def setup_logging(
    log_level: str = "INFO",
    *,
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Minimum severity level (e.g. ``"DEBUG"``, ``"INFO"``).
        json_output: Render one JSON object per line instead of the
            coloured console format; useful when scans run in CI.
        stream: Where log lines go.  Defaults to ``sys.stdout``; the
            command line passes ``sys.stderr`` so scan output stays clean.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    stream = stream if stream is not None else sys.stdout

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=numeric_level,
    )

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )
