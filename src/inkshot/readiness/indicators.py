# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Loading indicators: wait until no spinner or skeleton is visible in HA's shadow trees."""

from __future__ import annotations

import logging

from . import _timing

logger = logging.getLogger(__name__)

INDICATOR_ROOT = "home-assistant"
LOADING_SELECTORS = (
    "ha-circular-progress",
    ".loading",
    ".spinner",
    "[loading]",
    "hui-card-preview",
)


async def wait_for_loading_cleared(
    session,
    timeout_ms: int = 10000,
    poll_ms: int = 100,
    selectors: tuple[str, ...] = LOADING_SELECTORS,
) -> int:
    """Poll until zero visible loading indicators. Returns elapsed ms."""
    start = _timing.now_ms()
    while _timing.now_ms() - start < timeout_ms:
        try:
            visible = await session.count_visible_in_shadow(INDICATOR_ROOT, selectors)
        except Exception:
            logger.debug("Loading indicator query failed", exc_info=True)
            visible = None
        if visible == 0:
            elapsed = _timing.elapsed_ms(start, timeout_ms)
            logger.debug("Loading indicators cleared after %dms", elapsed)
            return elapsed
        await _timing.sleep_ms(poll_ms)

    elapsed = _timing.elapsed_ms(start, timeout_ms)
    logger.debug("Loading indicator timeout after %dms", elapsed)
    return elapsed
