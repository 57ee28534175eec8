"""Cache module for KV-Mirror."""

from .entry import CacheEntry, Snapshot
from .observers import ObserverRegistry
from .unit import CacheUnit

__all__ = ["CacheEntry", "CacheUnit", "ObserverRegistry", "Snapshot"]
