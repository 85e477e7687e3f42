# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""URL origin helpers for the auth-injection and routing decisions."""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit

_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_origin(url: str) -> str | None:
    """Return ``scheme://host[:port]`` with default ports dropped.

    ``http://homeassistant:80/x`` and ``http://homeassistant`` both give
    ``http://homeassistant``. Returns None for URLs without a network
    location (``about:blank``, relative paths) or with an invalid port.
    """
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if not scheme or not host:
        return None
    if ":" in host:
        host = f"[{host}]"  # IPv6 literal
    if port is None or _DEFAULT_PORTS.get(scheme) == port:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def same_origin(url: str, other: str) -> bool:
    """True when both URLs have the same normalized origin."""
    origin = normalize_origin(url)
    return origin is not None and origin == normalize_origin(other)


def resolve_url(path: str, base_url: str) -> str:
    """Resolve a dashboard path against the configured base URL."""
    return urljoin(base_url, path)
