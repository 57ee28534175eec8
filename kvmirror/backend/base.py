"""Backend interface definitions."""

from abc import ABC, abstractmethod
from typing import Optional


class Backend(ABC):
    """
    Async key-value backend mirrored by a CacheUnit.

    Values are opaque text. A backend reports a missing key as None and
    signals failures by raising; the cache unit wraps anything raised
    into BackendReadError / BackendWriteError.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the raw value for key, or None when key does not exist."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store the raw value for key; returns once the write is acknowledged."""

    async def close(self) -> None:
        """Release backend resources."""
        return None
