"""Persistent stores used by implgen."""

from .unit_cache import CachedUnit, UnitCache

__all__ = ["CachedUnit", "UnitCache"]
