"""
In-Memory Backend Module

A dict-backed backend for tests and local development.
"""

import asyncio
from typing import Any, Dict, Mapping, Optional

from .base import Backend


class MemoryBackend(Backend):
    """
    In-process key-value backend.

    Every call yields to the event loop at least once (optionally after a
    fixed ``latency``), so callers observe the same suspension points a
    remote backend would introduce.

    Attributes:
        latency: Seconds each get/set call waits before completing
    """

    def __init__(self, initial: Optional[Mapping[str, str]] = None, latency: float = 0.0):
        """
        Initialize the backend.

        Args:
            initial: Optional raw key/value pairs to start with
            latency: Delay in seconds applied to every get/set
        """
        self.latency = latency
        self._store: Dict[str, str] = dict(initial or {})
        self._reads = 0
        self._writes = 0

    async def get(self, key: str) -> Optional[str]:
        """
        Retrieve the raw value for a given key.

        Args:
            key: The key to look up

        Returns:
            The stored text, or None if the key was never set
        """
        await asyncio.sleep(self.latency)
        self._reads += 1
        return self._store.get(key)

    async def set(self, key: str, value: str) -> None:
        """
        Insert or overwrite a key.

        Args:
            key: The key to store
            value: The raw text to associate with the key
        """
        await asyncio.sleep(self.latency)
        self._writes += 1
        self._store[key] = value

    def peek(self, key: str) -> Optional[str]:
        """Return the stored value without yielding or counting a read."""
        return self._store.get(key)

    def size(self) -> int:
        """Get the current number of keys in the backend."""
        return len(self._store)

    def clear(self) -> None:
        """Remove all keys from the backend."""
        self._store.clear()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the backend.

        Returns:
            Dictionary containing:
            - total_keys: Keys currently stored
            - reads: Number of completed get() calls
            - writes: Number of completed set() calls
            - latency: Configured per-call delay
        """
        return {
            "total_keys": len(self._store),
            "reads": self._reads,
            "writes": self._writes,
            "latency": self.latency,
        }
