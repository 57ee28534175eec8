"""
KV-Mirror: In-Memory Mirror of an Async Key-Value Store

A local cache of named collections layered over an asynchronous
key-value backend. Every mutation is persisted, read back, and
published to subscribers as a full snapshot of the cache.
"""

from .cache import CacheEntry, CacheUnit

__version__ = "1.0.0"

__all__ = ["CacheEntry", "CacheUnit"]
