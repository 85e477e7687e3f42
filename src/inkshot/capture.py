# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Capture preparation: navigate, wait for readiness, apply page tweaks.

This is the seam the capture pipeline calls before taking a screenshot.
It owns no session state; everything comes in through its arguments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from . import NavigationTarget
from .config import EngineConfig
from .errors import NavigationFailure
from .interactions import set_language, set_theme, zoom_and_dismiss_toasts
from .logging_config import bind_capture
from .navigation import NavigationController
from .readiness import DEFAULT_DETECTORS, DetectorKind, ReadinessReport, _timing, await_readiness

logger = logging.getLogger(__name__)


class CaptureParams(BaseModel):
    """Per-capture page settings supplied by the schedule or HTTP request."""

    zoom: float = Field(1.0, gt=0, description="Page zoom factor (1.0 = 100%)")
    lang: str | None = Field(None, description="HA UI language, e.g. 'de'")
    theme: str | None = Field(None, description="HA theme name")
    dark: bool = Field(False, description="Dark mode for the HA theme")
    extra_wait_ms: int | None = Field(None, ge=0, description="Overrides the navigation's recommended wait")
    detectors: list[DetectorKind] = Field(
        default_factory=lambda: list(DEFAULT_DETECTORS),
        description="Readiness detectors to run, in order",
    )
    readiness_budget_ms: int | None = Field(None, ge=0, description="Overall cap on readiness waiting")


@dataclass
class CapturePlan:
    """What the pipeline needs to take the screenshot."""

    wait_ms: int
    readiness: ReadinessReport
    toast_dismissed: bool = False
    stage_ms: dict[str, float] = field(default_factory=dict)


class _Stages:
    """Start marks for navigation, readiness and interactions."""

    def __init__(self) -> None:
        self._marks: list[tuple[str, float]] = []

    def enter(self, name: str) -> None:
        self._marks.append((name, _timing.now_ms()))

    def elapsed(self) -> dict[str, float]:
        """{stage: ms}; each stage runs until the next one starts, the last one until now."""
        ends = [start for _, start in self._marks[1:]] + [_timing.now_ms()]
        return {name: round(end - start, 1) for (name, start), end in zip(self._marks, ends)}


async def prepare_capture(
    session,
    controller: NavigationController,
    target: NavigationTarget,
    params: CaptureParams | None = None,
    *,
    is_first_navigation: bool = False,
    config: EngineConfig | None = None,
) -> CapturePlan:
    """Bring ``session`` to a capturable state for ``target``.

    ``config`` defaults to the one ``controller`` was built with, so
    navigation and readiness share the same timeouts.

    Raises:
        NavigationFailure: propagated from the navigation controller.
    """
    params = params or CaptureParams()
    config = config or controller.config
    stages = _Stages()

    with bind_capture(target=controller.resolve(target)):
        stages.enter("navigation")
        try:
            nav = await controller.call(target, is_first_navigation)
        except NavigationFailure as exc:
            logger.warning(
                "Capture aborted in navigation: status=%d url=%s stages=%s",
                exc.status,
                exc.url,
                stages.elapsed(),
            )
            raise

        stages.enter("readiness")
        report = await await_readiness(session, params.detectors, config, params.readiness_budget_ms)

        stages.enter("interactions")
        if params.lang:
            await set_language(session, params.lang)
        if params.theme is not None or params.dark:
            await set_theme(session, params.theme, params.dark)
        dismissed = await zoom_and_dismiss_toasts(session, params.zoom)

    wait_ms = params.extra_wait_ms if params.extra_wait_ms is not None else nav.recommended_wait_ms
    return CapturePlan(
        wait_ms=wait_ms,
        readiness=report,
        toast_dismissed=dismissed,
        stage_ms=stages.elapsed(),
    )
