# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Inkshot exception hierarchy.

All Inkshot-specific errors inherit from InkshotError, allowing callers
to catch the base class for any engine failure or specific subclasses
for targeted handling.

Detector degradation is deliberately absent here: detectors log and
return their elapsed time instead of raising.
"""

from __future__ import annotations


class InkshotError(Exception):
    """Base exception for all Inkshot errors."""


class BrowserError(InkshotError):
    """Browser session launch or usage failure."""


class NavigationFailure(InkshotError):
    """A full page load could not reach or load its destination.

    ``status`` is 0 when no response was received (DNS, connection reset,
    navigation timeout), otherwise the HTTP status of the non-ok response.
    """

    def __init__(self, status: int, url: str, message: str = "") -> None:
        self.status = status
        self.url = url
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(f"Cannot open page {url} (status {status}){detail}")
