"""
Keep-only-latest hand-off onto a single-worker executor.
"""
import logging
import threading
from collections import deque
from concurrent.futures import Executor, Future
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LatestOnly(Generic[T]):
    """
    Feeds items to a handler on an executor, newest item wins.

    At most one drain task is queued at a time. Items offered while that task
    is waiting replace each other, so the handler sees the most recent value
    and never a backlog. An item the handler is already working on is never
    interrupted.

    `offer` may be called from any thread. The slot, the scheduled flag and
    the drop counter are only touched under one lock shared with the drain
    task; the handler itself runs outside it.
    """

    def __init__(self, executor: Executor, handler: Callable[[T], None]):
        self._executor = executor
        self._handler = handler
        self._lock = threading.Lock()
        self._slot: deque = deque(maxlen=1)
        self._scheduled = False
        self.dropped = 0

    def offer(self, item: T) -> Optional[Future]:
        """
        Queue an item, replacing any item still waiting.

        Returns:
            Future of the drain task if one was scheduled, None if an already
            scheduled drain will pick the item up
        """
        with self._lock:
            if self._slot:
                self.dropped += 1
            self._slot.append(item)
            if self._scheduled:
                return None
            self._scheduled = True
        return self._executor.submit(self._drain)

    def _drain(self) -> None:
        with self._lock:
            # a later offer either lands before this or schedules the next drain
            self._scheduled = False
            if not self._slot:
                return
            item = self._slot.popleft()
        try:
            self._handler(item)
        except Exception:
            logger.exception("❌ Handler failed for latest item")
