"""Top-level package for the emlak back-office client core."""
from __future__ import annotations

__version__ = "1.0.0"

__all__ = [
    "core",
    "domain",
    "scheduler",
    "services",
]
