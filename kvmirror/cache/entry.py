"""Cache entries and snapshots."""

import copy
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class CacheEntry:
    """
    Pairs a collection name with its currently-known parsed content.

    Attributes:
        storage_key: The collection name, also the backend key
        content: Parsed collection content, or None if nothing is stored
    """
    storage_key: str
    content: Any = None


Snapshot = Dict[str, CacheEntry]


def copy_entry(entry: CacheEntry) -> CacheEntry:
    """Return a copy of ``entry`` whose content shares no state with it."""
    return CacheEntry(storage_key=entry.storage_key, content=copy.deepcopy(entry.content))


def copy_snapshot(entries: Snapshot) -> Snapshot:
    """Return a detached copy of every entry, preserving key order."""
    return {name: copy_entry(entry) for name, entry in entries.items()}
