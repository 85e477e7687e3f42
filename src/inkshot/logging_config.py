# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge for the capture engine.

Leaf module, no inkshot imports. Engine modules log through
``logging.getLogger(__name__)``; this routes those records through
structlog so add-on logs and local runs share one format.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import AbstractContextManager

import structlog

_TRUTHY = ("1", "true", "yes")


def configure(*, json_output: bool | None = None, level: str | None = None) -> None:
    """Configure structlog with stdlib bridge.

    Args:
        json_output: True for JSON lines, False for human-readable console output.
            None reads ``INKSHOT_LOG_JSON``.
        level: Root logger level. None reads ``INKSHOT_LOG_LEVEL`` (default INFO).
    """
    if json_output is None:
        json_output = os.environ.get("INKSHOT_LOG_JSON", "").strip().lower() in _TRUTHY
    if level is None:
        level = os.environ.get("INKSHOT_LOG_LEVEL", "").strip() or "INFO"

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def bind_capture(**fields: object) -> AbstractContextManager[None]:
    """Bind per-capture context (target URL) onto log records emitted inside the block.

    Fields are unbound on exit; outer bindings are restored.
    """
    return structlog.contextvars.bound_contextvars(**fields)
