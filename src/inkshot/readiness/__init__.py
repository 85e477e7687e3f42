# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page readiness detectors and the glue that sequences them.

Each detector observes one session, returns its elapsed wait in ms and
never raises. Detectors are independent; the caller picks which to run
through :class:`DetectorKind` and :func:`run_detector`.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from ..config import EngineConfig
from .dom import wait_for_dom_ready
from .indicators import wait_for_loading_cleared
from .network import wait_for_network_idle
from .stability import wait_for_stable_content

logger = logging.getLogger(__name__)


class DetectorKind(str, Enum):
    DOM_READY = "dom_ready"
    CONTENT_STABILITY = "content_stability"
    NETWORK_IDLE = "network_idle"
    LOADING_INDICATORS = "loading_indicators"


DEFAULT_DETECTORS = (
    DetectorKind.DOM_READY,
    DetectorKind.NETWORK_IDLE,
    DetectorKind.LOADING_INDICATORS,
    DetectorKind.CONTENT_STABILITY,
)


def detector_timeout_ms(kind: DetectorKind, config: EngineConfig) -> int:
    """Configured ceiling for one detector."""
    return {
        DetectorKind.DOM_READY: config.dom_ready_timeout_ms,
        DetectorKind.CONTENT_STABILITY: config.stability_timeout_ms,
        DetectorKind.NETWORK_IDLE: config.network_idle_timeout_ms,
        DetectorKind.LOADING_INDICATORS: config.loading_timeout_ms,
    }[kind]


_DetectorFn = Callable[[object, EngineConfig, int], Awaitable[int]]

_DISPATCH: dict[DetectorKind, _DetectorFn] = {
    DetectorKind.DOM_READY: lambda s, c, t: wait_for_dom_ready(s, t, c.dom_ready_poll_ms),
    DetectorKind.CONTENT_STABILITY: lambda s, c, t: wait_for_stable_content(
        s, t, c.poll_interval_ms, c.stability_required_checks
    ),
    DetectorKind.NETWORK_IDLE: lambda s, c, t: wait_for_network_idle(s, t, c.network_quiet_ms, c.poll_interval_ms),
    DetectorKind.LOADING_INDICATORS: lambda s, c, t: wait_for_loading_cleared(s, t, c.poll_interval_ms),
}


async def run_detector(
    kind: DetectorKind,
    session,
    config: EngineConfig | None = None,
    timeout_ms: int | None = None,
) -> int:
    """Run one detector with its configured (or the given) timeout."""
    config = config or EngineConfig()
    kind = DetectorKind(kind)
    timeout = detector_timeout_ms(kind, config) if timeout_ms is None else timeout_ms
    return await _DISPATCH[kind](session, config, timeout)


@dataclass
class ReadinessReport:
    """Summed detector guidance for one capture."""

    total_ms: int = 0
    per_detector: dict[str, int] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)  # not run: budget spent


async def await_readiness(
    session,
    kinds: Iterable[DetectorKind] = DEFAULT_DETECTORS,
    config: EngineConfig | None = None,
    budget_ms: int | None = None,
) -> ReadinessReport:
    """Run detectors in order, summing elapsed waits.

    With ``budget_ms``, each detector's timeout is capped by the remaining
    budget and no further detector starts once it is spent.
    """
    config = config or EngineConfig()
    report = ReadinessReport()

    for kind in kinds:
        kind = DetectorKind(kind)
        timeout = detector_timeout_ms(kind, config)
        if budget_ms is not None:
            remaining = budget_ms - report.total_ms
            if remaining <= 0:
                report.skipped.append(kind.value)
                continue
            timeout = min(timeout, remaining)

        elapsed = await run_detector(kind, session, config, timeout)
        report.per_detector[kind.value] = elapsed
        report.total_ms += elapsed

    if report.skipped:
        logger.info("Readiness budget spent (%dms), skipped: %s", report.total_ms, ", ".join(report.skipped))
    else:
        logger.debug("Readiness settled in %dms: %s", report.total_ms, report.per_detector)
    return report


__all__ = [
    "DEFAULT_DETECTORS",
    "DetectorKind",
    "ReadinessReport",
    "await_readiness",
    "detector_timeout_ms",
    "run_detector",
]
