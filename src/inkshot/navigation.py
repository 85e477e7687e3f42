# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Navigation into the target application.

Strategies:
- First navigation: always a full page load. When the destination is on
  the configured Home Assistant origin, auth tokens are written into
  localStorage by a one-shot before-next-document hook.
- Subsequent navigation: in-app routing (history.replaceState plus a
  synthetic ``location-changed`` event) when the tab is already on the
  configured origin and no explicit URL was given; otherwise a full load
  without auth injection.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from . import AuthStorage, NavigationResult, NavigationTarget
from .config import EngineConfig
from .errors import NavigationFailure
from .origin import resolve_url, same_origin

logger = logging.getLogger(__name__)

_AUTH_INJECT_JS = """(storage) => {
  for (const [key, value] of Object.entries(storage)) {
    localStorage.setItem(key, value);
  }
}"""

# HA's router listens for "location-changed" on window; replace=true keeps
# history from growing with every capture.
_CLIENT_SIDE_NAVIGATE_JS = """(path) => {
  const state = history.state;
  history.replaceState(state && state.root ? {root: true} : null, '', path);
  const event = new Event('location-changed');
  event.detail = {replace: true};
  window.dispatchEvent(event);
}"""


def auth_injection_script(storage: AuthStorage) -> str:
    """Build the self-invoking hook source that writes ``storage`` to localStorage."""
    return f"({_AUTH_INJECT_JS})({json.dumps(dict(storage))});"


class NavigationController:
    """Navigates one browser session; stateless between calls.

    ``session`` must provide goto(), get_page_url(), evaluate(),
    add_script_on_new_document() and remove_script_on_new_document()
    (see :class:`inkshot.browser_session.BrowserSession`).
    """

    def __init__(self, session, auth_storage: AuthStorage, config: EngineConfig | None = None):
        self._session = session
        self._auth_storage = auth_storage
        self._config = config or EngineConfig()

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def resolve(self, target: NavigationTarget) -> str:
        """Destination URL: the explicit URL if given, else path against the base URL."""
        return target.full_url or resolve_url(target.path, self.base_url)

    def should_inject_auth(self, url: str) -> bool:
        return same_origin(url, self.base_url)

    async def call(self, target: NavigationTarget, is_first_navigation: bool = False) -> NavigationResult:
        """Navigate to ``target`` and return the recommended wait.

        Raises:
            NavigationFailure: a full page load failed or returned a non-ok status.
        """
        if is_first_navigation:
            return await self._first_navigation(target)
        return await self._subsequent_navigation(target)

    async def _first_navigation(self, target: NavigationTarget) -> NavigationResult:
        url = self.resolve(target)
        inject = self.should_inject_auth(url)
        logger.info("Navigating to %s (mode=first-load, auth=%s)", url, "yes" if inject else "no")

        async with self._auth_hook(enabled=inject):
            await self._full_load(url)

        wait_ms = self._config.default_wait_ms
        if self._config.cold_start:
            wait_ms += self._config.cold_start_extra_wait_ms
        return NavigationResult(recommended_wait_ms=wait_ms)

    async def _subsequent_navigation(self, target: NavigationTarget) -> NavigationResult:
        current_url = await self._session.get_page_url()
        on_home_origin = same_origin(current_url, self.base_url)

        if target.full_url or not on_home_origin:
            url = self.resolve(target)
            mode = "explicit-url" if target.full_url else "full-reload"
            logger.info("Navigating to %s (mode=%s, auth=no)", url, mode)
            await self._full_load(url)
        else:
            logger.info(
                "Navigating to %s (mode=client-side)",
                resolve_url(target.path, self.base_url),
            )
            await self._session.evaluate(_CLIENT_SIDE_NAVIGATE_JS, target.path)

        return NavigationResult(recommended_wait_ms=self._config.default_wait_ms)

    async def _full_load(self, url: str) -> None:
        try:
            response = await self._session.goto(url, timeout_ms=self._config.navigation_timeout_ms)
        except Exception as exc:
            raise NavigationFailure(0, url, str(exc)) from exc

        if response is None or not response.ok:
            status = response.status if response is not None else 0
            raise NavigationFailure(status, url, "response not ok")

    @asynccontextmanager
    async def _auth_hook(self, *, enabled: bool) -> AsyncIterator[None]:
        """Register the auth hook for the enclosed navigation; always remove it after."""
        if not enabled:
            yield
            return

        identifier = await self._session.add_script_on_new_document(auth_injection_script(self._auth_storage))
        logger.debug("Auth hook registered (%d storage keys)", len(self._auth_storage))
        try:
            yield
        finally:
            try:
                await self._session.remove_script_on_new_document(identifier)
                logger.debug("Auth hook removed")
            except Exception:
                # A dead CDP session takes its hooks with it.
                logger.warning("Auth hook removal failed", exc_info=True)
