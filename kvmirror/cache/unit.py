"""
Cache Unit Module

This module implements the in-memory mirror of a set of named collections
stored in an asynchronous key-value backend.

Lifecycle of one collection:
    Unloaded -> Loading -> Loaded                      (bootstrap, once)
    Loaded -> Persisting -> Reconciled -> Loaded       (every mutation)

A failed persist or read-back leaves the collection at its last reconciled
content. Every successful mutation publishes the full snapshot.
"""

import asyncio
import copy
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Set

from ..backend.base import Backend
from ..errors import (
    BackendError,
    BackendReadError,
    BackendWriteError,
    DecodeError,
    EncodeError,
    PreconditionError,
)
from . import codec
from .entry import CacheEntry, Snapshot, copy_snapshot
from .observers import Observer, ObserverRegistry

logger = logging.getLogger(__name__)


class CacheUnit:
    """
    Read-after-write consistent cache over an async key-value backend.

    The set of collection names is fixed at construction. Construction
    must happen inside a running event loop: it immediately schedules one
    backend read per name, concurrently. When the last of them settles,
    ``initialized`` flips to True and ``ready`` resolves with the snapshot.

    Mutations (save/update/delete) are fire-and-forget. Each schedules a
    task that persists the new content, reads it back from the backend,
    stores the read-back value, and publishes the full snapshot to every
    subscriber. Tasks for the same collection run one at a time, in call
    order; tasks for different collections interleave freely.

    Values handed out (``get_item``, snapshots) are deep copies, so
    callers cannot alter the cache by mutating them.

    Usage:
        unit = CacheUnit(["prefs", "history"], on_change, backend)
        snapshot = await unit.wait_ready()
        unit.save_item("prefs", [{"id": 0, "val": "x"}])

    Attributes:
        ready: Future resolved once with the snapshot after bootstrap
        load_errors: Bootstrap read failures by collection name
    """

    def __init__(
            self,
            names: Iterable[str],
            notify: Optional[Observer],
            backend: Backend,
    ):
        """
        Initialize the unit and start the bootstrap.

        Args:
            names: Ordered, unique collection names
            notify: Callback receiving the snapshot after every mutation
                (may be None; more can be added with subscribe())
            backend: The key-value backend to mirror

        Raises:
            ValueError: If names contain duplicates
            RuntimeError: If no event loop is running
        """
        self._names: List[str] = list(names)
        if len(set(self._names)) != len(self._names):
            raise ValueError("Collection names must be unique")

        self._loop = asyncio.get_running_loop()
        self._backend = backend
        self._entries: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {name: asyncio.Lock() for name in self._names}
        self._tasks: Set[asyncio.Task] = set()

        self._observers = ObserverRegistry()
        if notify is not None:
            self._observers.subscribe(notify)

        self._initialized = False
        self._pending_load_count = len(self._names)
        self.load_errors: Dict[str, BackendReadError] = {}
        self.ready: asyncio.Future = self._loop.create_future()

        if not self._names:
            self._finish_bootstrap()
        for name in self._names:
            self._spawn(self._load(name))

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def names(self) -> List[str]:
        """Declared collection names, in declaration order."""
        return list(self._names)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def pending_load_count(self) -> int:
        return self._pending_load_count

    # ------------------------------------------------------------------ #
    # Bootstrap
    # ------------------------------------------------------------------ #

    async def wait_ready(self) -> Snapshot:
        """Wait for the bootstrap to finish and return its snapshot."""
        return await asyncio.shield(self.ready)

    async def _load(self, name: str) -> None:
        async with self._locks[name]:
            try:
                content = await self._read(name)
            except BackendReadError as exc:
                logger.error("Initial load of %r failed, starting empty: %s", name, exc)
                self.load_errors[name] = exc
                content = None
            self._entries[name] = CacheEntry(storage_key=name, content=content)

        self._pending_load_count -= 1
        logger.debug("Loaded %r (%d pending)", name, self._pending_load_count)
        if self._pending_load_count == 0:
            self._finish_bootstrap()

    def _finish_bootstrap(self) -> None:
        self._initialized = True
        if not self.ready.done():
            self.ready.set_result(self.snapshot())
        logger.info("Cache initialized with %d collections", len(self._names))

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_item(self, name: str) -> Any:
        """
        Return the cached content of collection ``name``.

        Serves from memory only. Returns None before the bootstrap has
        finished, for undeclared names, and for collections with nothing
        stored.
        """
        if not self._initialized:
            return None
        entry = self._entries.get(name)
        if entry is None:
            return None
        return copy.deepcopy(entry.content)

    def snapshot(self) -> Snapshot:
        """Return a detached copy of every loaded entry, in declaration order."""
        return copy_snapshot({name: self._entries[name] for name in self._names if name in self._entries})

    # ------------------------------------------------------------------ #
    # Subscribers
    # ------------------------------------------------------------------ #

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register another snapshot observer; returns its unsubscribe function."""
        return self._observers.subscribe(observer)

    def unsubscribe(self, observer: Observer) -> bool:
        return self._observers.unsubscribe(observer)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def save_item(self, name: str, item: Any) -> Optional[asyncio.Task]:
        """
        Replace the whole content of collection ``name`` with ``item``.

        The payload is serialized immediately, so later changes to ``item``
        by the caller are not persisted.

        Returns:
            The scheduled task, or None if ``name`` is not declared or
            ``item`` is not JSON-serializable
        """
        if name not in self._locks:
            logger.debug("save_item: %r is not a declared collection, skipping", name)
            return None
        try:
            raw = codec.encode(item)
        except EncodeError as exc:
            logger.error("save_item: cannot serialize content for %r: %s", name, exc)
            return None
        return self._spawn(self._save(name, raw))

    def update_item(self, name: str, item: Mapping) -> Optional[asyncio.Task]:
        """
        Replace the element at position ``item["id"]`` with ``item``.

        A silent no-op when the collection has no list content or the id is
        missing, not an integer, or out of range. Preconditions are checked
        against the content current when the task runs.

        Returns:
            The scheduled task, or None if ``name`` is not declared
        """
        if name not in self._locks:
            logger.debug("update_item: %r is not a declared collection, skipping", name)
            return None
        return self._spawn(self._update(name, copy.deepcopy(item)))

    def delete_item(self, name: str, item: Any) -> Optional[asyncio.Task]:
        """
        Remove the first element of collection ``name`` equal to ``item``.

        A missing collection or a missing match is logged as a recoverable
        failure and otherwise has no effect.

        Returns:
            The scheduled task, or None if ``name`` is not declared
        """
        if name not in self._locks:
            logger.debug("delete_item: %r is not a declared collection, skipping", name)
            return None
        return self._spawn(self._delete(name, copy.deepcopy(item)))

    async def join(self) -> None:
        """Wait until every scheduled load and mutation has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _save(self, name: str, raw: str) -> None:
        async with self._locks[name]:
            try:
                await self._persist(name, raw)
            except BackendError as exc:
                logger.error("Save of %r failed: %s", name, exc)
                return
        logger.debug("Saved collection %r", name)

    async def _update(self, name: str, item: Mapping) -> None:
        async with self._locks[name]:
            items = self._list_content(name)
            index = _item_id(item)
            if items is None or index is None or not 0 <= index < len(items):
                logger.debug("update_item: no element with id %r in %r, skipping",
                             item.get("id") if isinstance(item, Mapping) else None, name)
                return

            items[index] = item
            try:
                await self._persist(name, codec.encode(items))
            except (EncodeError, BackendError) as exc:
                logger.error("Update of %r failed: %s", name, exc)
                return
        logger.debug("Updated element %d of %r", index, name)

    async def _delete(self, name: str, item: Any) -> None:
        async with self._locks[name]:
            try:
                items = self._list_content(name)
                if items is None:
                    raise PreconditionError(f"collection {name!r} has no content")

                position = _position_of(items, item)
                if not 0 <= position < len(items):
                    raise PreconditionError(f"no matching element in {name!r}")

                del items[position]
                await self._persist(name, codec.encode(items))
            except PreconditionError as exc:
                logger.warning("Delete item failed: %s", exc)
                return
            except (EncodeError, BackendError) as exc:
                logger.error("Delete item failed: %s", exc)
                return
        logger.debug("Deleted element %d of %r", position, name)

    # ------------------------------------------------------------------ #
    # Synchronization
    # ------------------------------------------------------------------ #

    async def _persist(self, name: str, raw: str) -> None:
        """
        Write ``raw`` under ``name``, read it back, store, and publish.

        Publishing waits for the bootstrap, so every notification carries
        all declared collections.

        Raises:
            BackendWriteError: The write failed; nothing was read back
            BackendReadError: The read-back failed; the cache is unchanged
        """
        await self._write(name, raw)
        content = await self._read(name)
        self._entries[name] = CacheEntry(storage_key=name, content=content)
        if not self.ready.done():
            await asyncio.shield(self.ready)
        self._observers.publish(self.snapshot())

    async def _read(self, name: str) -> Any:
        try:
            raw = await self._backend.get(name)
        except BackendReadError:
            raise
        except Exception as exc:
            raise BackendReadError(name, str(exc)) from exc
        try:
            return codec.decode(raw)
        except DecodeError as exc:
            raise BackendReadError(name, f"undecodable content: {exc}") from exc

    async def _write(self, name: str, raw: str) -> None:
        try:
            await self._backend.set(name, raw)
        except BackendWriteError:
            raise
        except Exception as exc:
            raise BackendWriteError(name, str(exc)) from exc

    def _list_content(self, name: str) -> Optional[list]:
        """Return a private copy of the collection's list content, if any."""
        entry = self._entries.get(name)
        if entry is None or not isinstance(entry.content, list):
            return None
        return copy.deepcopy(entry.content)

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def __repr__(self) -> str:
        return (
            f"CacheUnit(names={self._names!r}, initialized={self._initialized}, "
            f"pending={len(self._tasks)})"
        )


def _item_id(item: Any) -> Optional[int]:
    """
    Return the integer ``id`` of ``item``, or None if it has none.

    Integral floats (``1.0``) count as integers; booleans do not.
    """
    if not isinstance(item, Mapping):
        return None
    ident = item.get("id")
    if isinstance(ident, bool):
        return None
    if isinstance(ident, float) and ident.is_integer():
        return int(ident)
    if not isinstance(ident, int):
        return None
    return ident


def _position_of(items: List[Any], item: Any) -> int:
    """Index of the first element JSON-equal to ``item``, or -1."""
    for position, candidate in enumerate(items):
        if codec.equal(candidate, item):
            return position
    return -1
