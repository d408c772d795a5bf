"""Scheduler module for background polling."""
from __future__ import annotations

from .presence import PresencePoller

__all__ = [
    "PresencePoller",
]
