"""Exception types shared by the almanac engine."""

from __future__ import annotations

__all__ = ["OutOfRangeError", "UnsupportedFeatureError"]


class OutOfRangeError(ValueError):
    """Raised when a numeric argument lies outside its supported range."""


class UnsupportedFeatureError(RuntimeError):
    """Raised when a calculator does not provide a requested capability."""
