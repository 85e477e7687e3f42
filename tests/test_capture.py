# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for prepare_capture: navigation -> readiness -> interactions."""

from __future__ import annotations

import pytest
import structlog
from pydantic import ValidationError

from inkshot import NavigationTarget
from inkshot.capture import CaptureParams, prepare_capture
from inkshot.config import EngineConfig
from inkshot.errors import NavigationFailure
from inkshot.navigation import NavigationController
from inkshot.readiness import DEFAULT_DETECTORS, DetectorKind

CONFIG = EngineConfig(base_url="http://homeassistant:8123")


def _controller(session) -> NavigationController:
    return NavigationController(session, {"hassTokens": "{}"}, CONFIG)


class TestCaptureParams:
    def test_defaults(self):
        params = CaptureParams()
        assert params.zoom == 1.0
        assert params.dark is False
        assert params.detectors == list(DEFAULT_DETECTORS)

    def test_detector_names_coerced(self):
        params = CaptureParams(detectors=["network_idle", "dom_ready"])
        assert params.detectors == [DetectorKind.NETWORK_IDLE, DetectorKind.DOM_READY]

    @pytest.mark.parametrize("bad", [{"zoom": 0}, {"extra_wait_ms": -1}, {"detectors": ["nope"]}])
    def test_rejects_invalid(self, bad):
        with pytest.raises(ValidationError):
            CaptureParams(**bad)


class TestPrepareCapture:
    async def test_full_flow(self, clock, session):
        session.evaluate_result = True
        params = CaptureParams(lang="de", theme="eink", detectors=["dom_ready", "content_stability"])

        plan = await prepare_capture(
            session,
            _controller(session),
            NavigationTarget(path="/lovelace/0"),
            params,
            is_first_navigation=True,
            config=CONFIG,
        )

        assert plan.wait_ms == 750
        assert plan.readiness.per_detector == {"dom_ready": 0, "content_stability": 300}
        assert plan.toast_dismissed is True
        assert plan.stage_ms == {"navigation": 0.0, "readiness": 300.0, "interactions": 0.0}
        # language, theme, zoom in that order
        assert [arg for _, arg in session.evaluate_calls] == ["de", {"theme": "eink", "dark": False}, 1.0]

    async def test_skips_language_and_theme_when_unset(self, clock, session):
        plan = await prepare_capture(
            session,
            _controller(session),
            NavigationTarget(path="/lovelace/0"),
            CaptureParams(detectors=[]),
            is_first_navigation=True,
        )

        assert len(session.evaluate_calls) == 1  # zoom only
        assert plan.readiness.total_ms == 0

    async def test_extra_wait_overrides_navigation_wait(self, clock, session):
        plan = await prepare_capture(
            session,
            _controller(session),
            NavigationTarget(path="/lovelace/0"),
            CaptureParams(extra_wait_ms=5000, detectors=[]),
            is_first_navigation=True,
        )

        assert plan.wait_ms == 5000

    async def test_navigation_failure_propagates(self, clock, make_session):
        session = make_session(status=401)

        with pytest.raises(NavigationFailure) as exc_info:
            await prepare_capture(
                session,
                _controller(session),
                NavigationTarget(path="/lovelace/0"),
                is_first_navigation=True,
            )

        assert exc_info.value.status == 401
        assert session.evaluate_calls == []
        assert len(session.removed_scripts) == 1

    async def test_sequential_captures_reuse_session(self, clock, session):
        controller = _controller(session)

        await prepare_capture(session, controller, NavigationTarget(path="/lovelace/0"), is_first_navigation=True)
        await prepare_capture(session, controller, NavigationTarget(path="/lovelace/1"))

        assert session.goto_calls == ["http://homeassistant:8123/lovelace/0"]
        assert len(session.added_scripts) == 1
        assert session.removed_scripts == ["hook-1"]

    async def test_readiness_uses_controller_config_by_default(self, clock, session):
        session.visible_indicators = 1  # spinner never clears
        controller = NavigationController(session, {}, EngineConfig(loading_timeout_ms=200))

        plan = await prepare_capture(
            session,
            controller,
            NavigationTarget(path="/lovelace/0"),
            CaptureParams(detectors=["loading_indicators"]),
            is_first_navigation=True,
        )

        assert plan.readiness.per_detector == {"loading_indicators": 200}

    async def test_explicit_config_overrides_controller_config(self, clock, session):
        session.visible_indicators = 1
        controller = NavigationController(session, {}, EngineConfig(loading_timeout_ms=200))

        plan = await prepare_capture(
            session,
            controller,
            NavigationTarget(path="/lovelace/0"),
            CaptureParams(detectors=["loading_indicators"]),
            is_first_navigation=True,
            config=EngineConfig(loading_timeout_ms=400),
        )

        assert plan.readiness.total_ms == 400

    async def test_target_bound_to_log_context(self, clock, session):
        seen: dict = {}
        goto = session.goto

        async def recording_goto(url, timeout_ms=None):
            seen.update(structlog.contextvars.get_contextvars())
            return await goto(url, timeout_ms)

        session.goto = recording_goto

        await prepare_capture(
            session,
            _controller(session),
            NavigationTarget(path="/lovelace/0"),
            CaptureParams(detectors=[]),
            is_first_navigation=True,
        )

        assert seen["target"] == "http://homeassistant:8123/lovelace/0"
        assert "target" not in structlog.contextvars.get_contextvars()
