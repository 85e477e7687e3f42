# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Inkshot: navigation and page-readiness engine for e-ink dashboard capture.

Decides how to reach a Home Assistant dashboard (or any other page) in a
long-lived browser tab and how long to wait before the screenshot:
- navigation: full page load vs. in-app routing, with one-shot auth injection
- readiness: independent best-effort probes (DOM, stability, network, spinners)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

# Storage key -> token value, written into localStorage before page scripts run.
AuthStorage = Mapping[str, str]


@dataclass(frozen=True, slots=True)
class NavigationTarget:
    """Where a capture should navigate.

    ``full_url`` set means an opaque external destination; ``path`` is ignored.
    """

    path: str
    full_url: str | None = None
    is_ha_mode: bool = True


@dataclass(frozen=True, slots=True)
class NavigationResult:
    """Outcome of a successful navigation."""

    recommended_wait_ms: int


__all__ = ["AuthStorage", "NavigationResult", "NavigationTarget"]
