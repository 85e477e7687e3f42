# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DOM readiness: wait until HA's panel resolver has rendered a loaded panel."""

from __future__ import annotations

import logging

from . import _timing

logger = logging.getLogger(__name__)

# home-assistant -> (shadow) home-assistant-main -> (shadow) partial-panel-resolver
HA_PANEL_CHAIN = ("home-assistant", "home-assistant-main", "partial-panel-resolver")


async def wait_for_dom_ready(session, timeout_ms: int = 3000, poll_ms: int = 100) -> int:
    """Poll the panel chain until present and not loading.

    Returns elapsed ms; on timeout returns the (clamped) elapsed time silently.
    """
    start = _timing.now_ms()
    while _timing.now_ms() - start < timeout_ms:
        try:
            state = await session.shadow_chain_state(HA_PANEL_CHAIN)
        except Exception:
            logger.debug("Panel chain query failed, retrying", exc_info=True)
            state = None
        if state and state.get("complete") and not state.get("loading"):
            elapsed = _timing.elapsed_ms(start, timeout_ms)
            logger.debug("HA panel ready after %dms", elapsed)
            return elapsed
        await _timing.sleep_ms(poll_ms)

    elapsed = _timing.elapsed_ms(start, timeout_ms)
    logger.debug("Timeout waiting for HA to finish loading (%dms)", elapsed)
    return elapsed
