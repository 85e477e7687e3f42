# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Engine configuration.

Defaults mirror the add-on's timing constants. ``load_config()`` applies
``INKSHOT_*`` environment overrides; malformed numbers are ignored.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from contextlib import suppress
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://homeassistant:8123"
DEFAULT_WAIT_MS = 750
COLD_START_EXTRA_WAIT_MS = 2500

_TRUTHY = ("1", "true", "yes")


@dataclass(frozen=True)
class EngineConfig:
    """Timing and origin settings for one capture engine instance."""

    base_url: str = DEFAULT_BASE_URL
    default_wait_ms: int = DEFAULT_WAIT_MS
    cold_start_extra_wait_ms: int = COLD_START_EXTRA_WAIT_MS
    cold_start: bool = False  # process just started (add-on boot); first paint is slower
    navigation_timeout_ms: int = 30000

    dom_ready_timeout_ms: int = 3000
    dom_ready_poll_ms: int = 100
    stability_timeout_ms: int = 5000
    stability_required_checks: int = 3
    network_idle_timeout_ms: int = 10000
    network_quiet_ms: int = 500
    loading_timeout_ms: int = 10000
    poll_interval_ms: int = 100


# env var -> EngineConfig field (integers)
_INT_ENV = {
    "INKSHOT_DEFAULT_WAIT_MS": "default_wait_ms",
    "INKSHOT_COLD_START_EXTRA_WAIT_MS": "cold_start_extra_wait_ms",
    "INKSHOT_NAVIGATION_TIMEOUT_MS": "navigation_timeout_ms",
    "INKSHOT_STABILITY_TIMEOUT_MS": "stability_timeout_ms",
    "INKSHOT_NETWORK_IDLE_TIMEOUT_MS": "network_idle_timeout_ms",
    "INKSHOT_NETWORK_QUIET_MS": "network_quiet_ms",
    "INKSHOT_LOADING_TIMEOUT_MS": "loading_timeout_ms",
}


def load_config(environ: Mapping[str, str] | None = None, **overrides) -> EngineConfig:
    """Build an EngineConfig from the environment plus explicit overrides.

    Explicit keyword overrides win over environment values.
    """
    env = os.environ if environ is None else environ
    values: dict = {}

    base_url = env.get("INKSHOT_BASE_URL", "").strip()
    if base_url:
        values["base_url"] = base_url.rstrip("/")

    for var, field_name in _INT_ENV.items():
        raw = env.get(var, "").strip()
        if not raw:
            continue
        with suppress(ValueError):
            parsed = int(raw)
            if parsed >= 0:
                values[field_name] = parsed
                continue
        logger.warning("Ignoring invalid %s=%r", var, raw)

    env_cold = env.get("INKSHOT_COLD_START", "").strip().lower()
    # SUPERVISOR_TOKEN is only set when running as a Home Assistant add-on.
    values["cold_start"] = env_cold in _TRUTHY or bool(env.get("SUPERVISOR_TOKEN"))

    values.update(overrides)
    return dataclasses.replace(EngineConfig(), **values)
