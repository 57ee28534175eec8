"""Snapshot subscribers."""

import logging
from typing import Callable, List

from .entry import Snapshot, copy_snapshot

logger = logging.getLogger(__name__)

Observer = Callable[[Snapshot], None]


class ObserverRegistry:
    """
    Ordered set of callbacks that receive every published snapshot.

    Callbacks run synchronously in registration order, each with its own
    copy of the snapshot. A callback that raises is logged and skipped;
    the remaining callbacks still run.
    """

    def __init__(self):
        self._observers: List[Observer] = []

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Register ``observer`` and return a function that unregisters it.

        Subscribing the same callable twice has no additional effect.
        """
        if observer not in self._observers:
            self._observers.append(observer)

        def unsubscribe() -> None:
            self.unsubscribe(observer)

        return unsubscribe

    def unsubscribe(self, observer: Observer) -> bool:
        """Remove ``observer``; return False if it was not registered."""
        try:
            self._observers.remove(observer)
        except ValueError:
            return False
        return True

    def publish(self, snapshot: Snapshot) -> None:
        """Deliver ``snapshot`` to every registered observer."""
        for observer in list(self._observers):
            try:
                observer(copy_snapshot(snapshot))
            except Exception:
                logger.exception("Observer %r failed while handling snapshot", observer)

    def __len__(self) -> int:
        return len(self._observers)
