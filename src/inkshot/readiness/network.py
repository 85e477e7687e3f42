# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Network idle: wait until no requests are in flight for a quiet window.

Activity is observed on a dedicated CDP channel (Network domain), so it
sees every request the page makes, not only those visible to page script.
If the channel cannot be opened the detector degrades to returning its
elapsed time.
"""

from __future__ import annotations

import logging
from contextlib import suppress

from . import _timing

logger = logging.getLogger(__name__)

_START_EVENTS = ("Network.requestWillBeSent",)
_SETTLE_EVENTS = ("Network.loadingFinished", "Network.loadingFailed")


class NetworkActivity:
    """In-flight request ids plus the time of the last start/settle event."""

    __slots__ = ("_in_flight", "last_activity_ms")

    def __init__(self, now_ms: float) -> None:
        self._in_flight: set[str] = set()
        self.last_activity_ms = now_ms

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def on_request_started(self, params: dict) -> None:
        # Redirects reuse the request id, so a set keeps the count honest.
        self._in_flight.add(str(params.get("requestId", "")))
        self.last_activity_ms = _timing.now_ms()

    def on_request_settled(self, params: dict) -> None:
        self._in_flight.discard(str(params.get("requestId", "")))
        self.last_activity_ms = _timing.now_ms()

    def is_idle(self, now_ms: float, quiet_ms: int) -> bool:
        return not self._in_flight and now_ms - self.last_activity_ms >= quiet_ms


async def wait_for_network_idle(
    session,
    timeout_ms: int = 10000,
    quiet_ms: int = 500,
    poll_ms: int = 100,
) -> int:
    """Wait for network idle or timeout. Returns elapsed ms; never raises."""
    start = _timing.now_ms()

    try:
        channel = await session.open_network_channel()
    except Exception as exc:
        logger.warning("Network idle detection unavailable: %s", exc)
        return _timing.elapsed_ms(start, timeout_ms)

    activity = NetworkActivity(start)
    try:
        for event in _START_EVENTS:
            channel.on(event, activity.on_request_started)
        for event in _SETTLE_EVENTS:
            channel.on(event, activity.on_request_settled)
        await channel.send("Network.enable")

        while _timing.now_ms() - start < timeout_ms:
            if activity.is_idle(_timing.now_ms(), quiet_ms):
                elapsed = _timing.elapsed_ms(start, timeout_ms)
                logger.debug("Network idle after %dms", elapsed)
                return elapsed
            await _timing.sleep_ms(poll_ms)

        elapsed = _timing.elapsed_ms(start, timeout_ms)
        logger.debug("Network idle timeout after %dms (%d pending)", elapsed, activity.in_flight)
        return elapsed
    except Exception as exc:
        logger.warning("Network idle detection failed: %s", exc)
        return _timing.elapsed_ms(start, timeout_ms)
    finally:
        with suppress(Exception):
            await channel.detach()
