# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Clock and sleep used by every detector (patched by tests)."""

from __future__ import annotations

import asyncio
import time


def now_ms() -> float:
    return time.monotonic() * 1000


async def sleep_ms(ms: float) -> None:
    await asyncio.sleep(ms / 1000)


def elapsed_ms(start_ms: float, timeout_ms: int) -> int:
    """Elapsed time since ``start_ms``, clamped to ``[0, timeout_ms]``."""
    return int(min(max(now_ms() - start_ms, 0.0), timeout_ms))
