# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Post-navigation page tweaks applied just before capture.

All are best-effort: a missing Home Assistant root or toast is a no-op,
not an error. Evaluation failures (dead page) propagate to the caller.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

_ZOOM_AND_DISMISS_TOAST_JS = """(zoom) => {
  document.body.style.zoom = String(zoom);
  const haEl = document.querySelector('home-assistant');
  if (!haEl || !haEl.shadowRoot) return false;
  const notifyEl = haEl.shadowRoot.querySelector('notification-manager');
  if (!notifyEl || !notifyEl.shadowRoot) return false;
  const actionEl = notifyEl.shadowRoot.querySelector('ha-toast *[slot=action]');
  if (!actionEl) return false;
  actionEl.click();
  return true;
}"""

_SET_LANGUAGE_JS = """(lang) => {
  const haEl = document.querySelector('home-assistant');
  if (haEl && typeof haEl._selectLanguage === 'function') {
    haEl._selectLanguage(lang, false);
  }
}"""

_SET_THEME_JS = """({theme, dark}) => {
  const haEl = document.querySelector('home-assistant');
  if (haEl) {
    haEl.dispatchEvent(new CustomEvent('settheme', {detail: {theme, dark}}));
  }
}"""


async def zoom_and_dismiss_toasts(session, zoom: float = 1.0) -> bool:
    """Set page zoom and click the action of a visible HA toast.

    Returns True if a toast was dismissed.
    """
    dismissed = bool(await session.evaluate(_ZOOM_AND_DISMISS_TOAST_JS, zoom))
    if dismissed:
        logger.debug("Dismissed notification toast")
    return dismissed


async def set_language(session, lang: str | None = None) -> None:
    await session.evaluate(_SET_LANGUAGE_JS, lang or DEFAULT_LANGUAGE)


async def set_theme(session, theme: str | None = None, dark: bool = False) -> None:
    await session.evaluate(_SET_THEME_JS, {"theme": theme or "", "dark": dark})
