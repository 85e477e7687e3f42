# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Content stability: wait until rendered height and shadow content size stop changing."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from . import _timing

logger = logging.getLogger(__name__)

REQUIRED_STABLE_CHECKS = 3
CONTENT_ROOT = "home-assistant"


@dataclass(frozen=True, slots=True)
class ContentSample:
    height: int
    content_size: int  # serialized shadow root length, a cheap proxy for content


class StabilityTracker:
    """Counts consecutive unchanged samples; any change resets to 0."""

    __slots__ = ("required", "stable_checks", "_last")

    def __init__(self, required: int = REQUIRED_STABLE_CHECKS) -> None:
        self.required = required
        self.stable_checks = 0
        self._last: ContentSample | None = None

    def observe(self, sample: ContentSample | None) -> bool:
        """Feed one sample; True once ``required`` consecutive samples matched their predecessor.

        A failed sample (None) counts as a change.
        """
        if sample is not None and sample == self._last:
            self.stable_checks += 1
        else:
            self.stable_checks = 0
        self._last = sample
        return self.stable_checks >= self.required


async def wait_for_stable_content(
    session,
    timeout_ms: int = 5000,
    poll_ms: int = 100,
    required_checks: int = REQUIRED_STABLE_CHECKS,
) -> int:
    """Sample content metrics until stable or timeout. Returns elapsed ms."""
    start = _timing.now_ms()
    tracker = StabilityTracker(required_checks)

    while _timing.now_ms() - start < timeout_ms:
        try:
            raw = await session.shadow_content_metrics(CONTENT_ROOT)
            sample = ContentSample(height=int(raw.get("height", 0)), content_size=int(raw.get("contentSize", 0)))
        except Exception:
            logger.debug("Content metrics sample failed", exc_info=True)
            sample = None

        if tracker.observe(sample):
            elapsed = _timing.elapsed_ms(start, timeout_ms)
            logger.debug("Page stable after %dms (%d checks)", elapsed, tracker.stable_checks)
            return elapsed
        await _timing.sleep_ms(poll_ms)

    elapsed = _timing.elapsed_ms(start, timeout_ms)
    logger.debug("Page stability timeout after %dms", elapsed)
    return elapsed
