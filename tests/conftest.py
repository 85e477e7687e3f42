# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

from __future__ import annotations

try:
    import inkshot  # noqa: F401
except ImportError:
    raise ImportError("inkshot is not installed. Run: pip install -e '.[dev]'") from None

from collections.abc import Callable

import pytest

from inkshot.readiness import _timing


class FakeClock:
    """Deterministic replacement for the detectors' clock.

    sleep_ms() advances time instantly and fires callbacks scheduled with at().
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []
        self._scheduled: list[tuple[float, Callable[[], None]]] = []

    def now_ms(self) -> float:
        return self.now

    async def sleep_ms(self, ms: float) -> None:
        self.sleeps.append(ms)
        self.now += ms
        due = [item for item in self._scheduled if item[0] <= self.now]
        self._scheduled = [item for item in self._scheduled if item[0] > self.now]
        for _, callback in sorted(due, key=lambda item: item[0]):
            callback()

    def at(self, ms: float, callback: Callable[[], None]) -> None:
        self._scheduled.append((ms, callback))


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr(_timing, "now_ms", fake.now_ms)
    monkeypatch.setattr(_timing, "sleep_ms", fake.sleep_ms)
    return fake


class FakeResponse:
    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.ok = 200 <= status < 300


class FakeChannel:
    """Stand-in for a CDP session carrying Network.* events."""

    def __init__(self, *, enable_error: Exception | None = None) -> None:
        self.handlers: dict[str, list[Callable]] = {}
        self.sent: list[str] = []
        self.detached = 0
        self.enable_error = enable_error

    def on(self, event: str, handler: Callable) -> None:
        self.handlers.setdefault(event, []).append(handler)

    async def send(self, method: str, params: dict | None = None) -> dict:
        self.sent.append(method)
        if self.enable_error is not None:
            raise self.enable_error
        return {}

    async def detach(self) -> None:
        self.detached += 1

    def emit(self, event: str, request_id: str) -> None:
        for handler in self.handlers.get(event, []):
            handler({"requestId": request_id})


class FakeSession:
    """Records the session primitives navigation and readiness call, in order."""

    def __init__(
        self,
        *,
        url: str = "about:blank",
        status: int | None = 200,
        goto_error: Exception | None = None,
    ) -> None:
        self.url = url
        self.status = status
        self.goto_error = goto_error
        self.events: list[str] = []
        self.goto_calls: list[str] = []
        self.added_scripts: list[str] = []
        self.removed_scripts: list[str] = []
        self.evaluate_calls: list[tuple[str, object]] = []
        self.evaluate_result: object = None
        self.channel = FakeChannel()
        # structural query answers
        self.chain_state = {"found": 3, "complete": True, "loading": False}
        self.content_metrics = {"height": 1024, "contentSize": 5000}
        self.visible_indicators = 0

    async def goto(self, url: str, timeout_ms: int | None = None):
        self.events.append("goto")
        self.goto_calls.append(url)
        if self.goto_error is not None:
            raise self.goto_error
        if self.status is None:
            return None
        self.url = url
        return FakeResponse(self.status)

    async def get_page_url(self) -> str:
        return self.url

    async def evaluate(self, expression: str, arg=None):
        self.events.append("evaluate")
        self.evaluate_calls.append((expression, arg))
        return self.evaluate_result

    async def add_script_on_new_document(self, source: str) -> str:
        self.events.append("add_hook")
        self.added_scripts.append(source)
        return f"hook-{len(self.added_scripts)}"

    async def remove_script_on_new_document(self, identifier: str) -> None:
        self.events.append("remove_hook")
        self.removed_scripts.append(identifier)

    async def open_network_channel(self) -> FakeChannel:
        return self.channel

    async def shadow_chain_state(self, chain) -> dict:
        return self.chain_state

    async def shadow_content_metrics(self, root_selector: str) -> dict:
        return self.content_metrics

    async def count_visible_in_shadow(self, root_selector: str, selectors) -> int:
        return self.visible_indicators


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    return FakeSession
