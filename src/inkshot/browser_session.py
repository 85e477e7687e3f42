# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright browser session used by the capture engine.

Exposes the primitives navigation and readiness need from one long-lived
tab: full page loads, page-context evaluation, before-next-document script
hooks, CDP network channels and shadow-DOM structural queries.

The session is owned by an external pool; captures run against it one at
a time. Crash detection and restarts are handled by that pool.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from typing import Any

from playwright.async_api import (
    Browser,
    BrowserContext,
    CDPSession,
    Page,
    Playwright,
    Response,
    async_playwright,
)

from .errors import BrowserError

logger = logging.getLogger(__name__)

# TRMNL OG panel in portrait orientation
DEFAULT_VIEWPORT = {"width": 758, "height": 1024}
DEFAULT_LOCALE = "en-US"


@dataclass
class BrowserConfig:
    """Browser launch configuration."""

    headless: bool = True
    locale: str = DEFAULT_LOCALE
    viewport_width: int = DEFAULT_VIEWPORT["width"]
    viewport_height: int = DEFAULT_VIEWPORT["height"]
    timeout_ms: int = 30000
    wait_until: str = "load"


def chromium_launch_args(config: BrowserConfig) -> list[str]:
    """Return Chromium launch arguments for headless dashboard rendering."""
    return [
        f"--lang={config.locale}",
        "--disable-extensions",
        "--disable-dev-shm-usage",
        "--disable-background-networking",
        "--disable-sync",
        "--disable-gpu",
        "--no-first-run",
        "--disable-breakpad",
        "--no-pings",
        "--disable-component-update",
        "--noerrdialogs",
        "--hide-scrollbars",
        "--mute-audio",
    ]


class BrowserSession:
    """Manages one Playwright page and the CDP access the engine needs."""

    def __init__(self, config: BrowserConfig | None = None):
        self.config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._cdp_session: CDPSession | None = None
        self._owns_browser: bool = True  # False when created via start_from_pool()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise BrowserError("Browser session not started. Use async with or call start().")
        return self._page

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise BrowserError("Browser session not started.")
        return self._context

    async def _create_context(self, browser: Browser) -> None:
        """Create BrowserContext + Page on given browser."""
        self._context = await browser.new_context(
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            locale=self.config.locale,
            service_workers="block",
            accept_downloads=False,
        )
        self._page = await self._context.new_page()

    async def start(self) -> None:
        """Launch browser and create initial page."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=chromium_launch_args(self.config),
        )
        await self._create_context(self._browser)
        logger.info("Browser session started (headless=%s)", self.config.headless)

    async def start_from_pool(self, browser: Browser) -> None:
        """Start session using a shared browser (pool mode).

        The browser is owned by the pool: stop() will only close the
        context, not the browser or playwright instance.
        """
        self._owns_browser = False
        self._browser = browser
        await self._create_context(browser)
        logger.info("Browser session started from pool (headless=%s)", self.config.headless)

    async def stop(self) -> None:
        """Close browser and clean up. Safe to call on a crashed browser."""
        if self._cdp_session:
            with suppress(Exception):
                await self._cdp_session.detach()
            self._cdp_session = None

        if self._context:
            with suppress(Exception):
                await self._context.close()
            self._context = None
        self._page = None

        if self._owns_browser:
            if self._browser:
                with suppress(Exception):
                    await self._browser.close()
                self._browser = None
            if self._playwright:
                with suppress(Exception):
                    await self._playwright.stop()
                self._playwright = None
        else:
            self._browser = None

        logger.info("Browser session stopped (owned_browser=%s)", self._owns_browser)

    async def __aenter__(self) -> BrowserSession:
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()

    # ── Navigation primitives ──────────────────────────────────────

    async def goto(self, url: str, timeout_ms: int | None = None) -> Response | None:
        """Top-level navigation. Transport failures raise Playwright errors."""
        timeout = timeout_ms if timeout_ms is not None else self.config.timeout_ms
        return await self.page.goto(url, wait_until=self.config.wait_until, timeout=timeout)

    async def get_page_url(self) -> str:
        """Get the current document URL."""
        return self.page.url

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Evaluate a JS function in the page context with a single argument."""
        return await self.page.evaluate(expression, arg)

    async def get_cdp_session(self) -> CDPSession:
        """Get or create the long-lived CDP session for the current page."""
        if self._cdp_session is None:
            self._cdp_session = await self.context.new_cdp_session(self.page)
            await self._cdp_session.send("Page.enable")
        return self._cdp_session

    async def add_script_on_new_document(self, source: str) -> str:
        """Register a script that runs before any page script on every new document.

        Returns the hook identifier needed by remove_script_on_new_document().
        """
        cdp = await self.get_cdp_session()
        result = await cdp.send("Page.addScriptToEvaluateOnNewDocument", {"source": source})
        return result["identifier"]

    async def remove_script_on_new_document(self, identifier: str) -> None:
        cdp = await self.get_cdp_session()
        await cdp.send("Page.removeScriptToEvaluateOnNewDocument", {"identifier": identifier})

    async def open_network_channel(self) -> CDPSession:
        """Open a dedicated CDP session for network instrumentation.

        The caller owns the channel and must detach it.
        """
        return await self.context.new_cdp_session(self.page)

    # ── Structural queries (shadow-DOM piercing) ───────────────────

    async def shadow_chain_state(self, chain: Sequence[str]) -> dict:
        """Follow ``chain`` through nested shadow roots.

        Returns ``{"found": int, "complete": bool, "loading": bool}`` where
        ``found`` counts anchors present, ``complete`` requires every anchor
        plus a rendered child panel under the last one, and ``loading``
        reflects the ``_loading`` flag of the last anchor or its panel.
        """
        return await self.page.evaluate(_SHADOW_CHAIN_JS, list(chain))

    async def shadow_content_metrics(self, root_selector: str) -> dict:
        """Return ``{"height": int, "contentSize": int}`` for stability sampling."""
        return await self.page.evaluate(_CONTENT_METRICS_JS, root_selector)

    async def count_visible_in_shadow(self, root_selector: str, selectors: Sequence[str]) -> int:
        """Count visible (computed style) matches of ``selectors`` under the root's shadow trees."""
        return await self.page.evaluate(_VISIBLE_IN_SHADOW_JS, [root_selector, ", ".join(selectors)])


# ── Structural query JS (static, parameterized via evaluate arg) ──

_SHADOW_CHAIN_JS = """(chain) => {
  let root = document;
  let el = null;
  let found = 0;
  for (const selector of chain) {
    el = root ? root.querySelector(selector) : null;
    if (!el) break;
    found++;
    root = el.shadowRoot;
  }
  if (found < chain.length) return {found: found, complete: false, loading: true};
  const panel = el.children[0];
  const loading = !!el._loading || (!!panel && '_loading' in panel && !!panel._loading);
  return {found: found, complete: !!panel, loading: loading};
}"""

_CONTENT_METRICS_JS = """(rootSelector) => {
  const host = document.querySelector(rootSelector);
  if (!host) return {height: 0, contentSize: 0};
  return {
    height: document.body ? document.body.scrollHeight : 0,
    contentSize: (host.shadowRoot && host.shadowRoot.innerHTML || '').length,
  };
}"""

_VISIBLE_IN_SHADOW_JS = """([rootSelector, selectors]) => {
  const host = document.querySelector(rootSelector);
  if (!host || !host.shadowRoot) return 0;
  let count = 0;
  const walk = (root) => {
    for (const el of root.querySelectorAll(selectors)) {
      const style = window.getComputedStyle(el);
      if (style.display !== 'none' && style.visibility !== 'hidden') count++;
    }
    for (const el of root.querySelectorAll('*')) {
      if (el.shadowRoot) walk(el.shadowRoot);
    }
  };
  walk(host.shadowRoot);
  return count;
}"""


@asynccontextmanager
async def create_session(
    config: BrowserConfig | None = None,
) -> AsyncGenerator[BrowserSession, None]:
    """Context manager to create and manage a browser session."""
    session = BrowserSession(config)
    await session.start()
    try:
        yield session
    finally:
        await session.stop()
