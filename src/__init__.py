"""Top-level package for the toll-free migration tool."""
from __future__ import annotations

__version__ = "1.0.0"

__all__ = [
    "cli",
    "compliance",
    "core",
    "migration",
    "telephony",
]
