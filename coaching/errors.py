"""Error types raised by the coaching core."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when an instant, timezone, row or config value is structurally invalid."""
