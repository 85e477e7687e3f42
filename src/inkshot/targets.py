# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Single place that turns schedule settings into a NavigationTarget."""

from __future__ import annotations

from . import NavigationTarget

DEFAULT_DASHBOARD_PATH = "/lovelace/0"


def resolve_target(
    *,
    ha_mode: bool = True,
    dashboard_path: str | None = None,
    target_url: str | None = None,
) -> NavigationTarget:
    """HA mode navigates a dashboard path; generic mode an explicit URL."""
    if ha_mode:
        return NavigationTarget(path=dashboard_path or DEFAULT_DASHBOARD_PATH, full_url=None, is_ha_mode=True)
    return NavigationTarget(path="/", full_url=target_url or None, is_ha_mode=False)
