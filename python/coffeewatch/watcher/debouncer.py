"""
Event debouncing for the save watcher.

Editors often write a file several times per save (truncate, write, touch).
DebounceQueue collects those writes and flushes one event per path.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

from coffeewatch.watcher.types import WatchEvent

logger = logging.getLogger(__name__)

FlushCallback = Callable[[list[tuple[WatchEvent, str]]], Union[None, Awaitable[None]]]


class DebounceQueue:
    """
    Queue that collects rapid file changes and batches them.

    Example:
    --------
    a.coffee modified at t=0ms
    a.coffee modified at t=30ms    } Collect these
    a.coffee modified at t=60ms    }
    -> Flush at t=260ms with a single SAVED event
    """

    def __init__(
        self,
        debounce_delay: float = 0.2,
        flush_callback: Optional[FlushCallback] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """
        Initialize debounce queue.

        Args:
        -----
        debounce_delay: Seconds to wait after the last event before flushing
        flush_callback: Called with the batch of (event, path) tuples
        loop: Event loop the flush runs on (defaults to the running loop)

        Raises:
        -------
        ValueError: If debounce_delay is not in (0, 10]
        """
        if debounce_delay <= 0 or debounce_delay > 10:
            raise ValueError("debounce_delay must be between 0 and 10 seconds")

        self._debounce_delay = debounce_delay
        self._flush_callback = flush_callback

        if loop:
            self._loop = loop
        else:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                self._loop = asyncio.new_event_loop()

        # path -> event; later events for the same path replace earlier ones
        self._queue: dict[str, WatchEvent] = {}
        self._timer_handle: Optional[asyncio.TimerHandle] = None
        self._flush_tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._queue)

    def add(self, event_type: WatchEvent, file_path: str) -> None:
        """
        Add an event and restart the debounce timer.

        Must be called on the queue's event loop.
        """
        self._queue.pop(file_path, None)
        self._queue[file_path] = event_type

        if self._timer_handle:
            self._timer_handle.cancel()

        self._timer_handle = self._loop.call_later(self._debounce_delay, self._schedule_flush)

    def _schedule_flush(self) -> None:
        task = self._loop.create_task(self.flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_tasks.discard)

    async def flush(self) -> None:
        """
        Hand all pending events to the flush callback.

        Exceptions from the callback are logged, not raised.
        """
        if self._timer_handle:
            self._timer_handle.cancel()
            self._timer_handle = None

        events = [(event_type, path) for path, event_type in self._queue.items()]
        self._queue.clear()

        if not events or not self._flush_callback:
            return

        try:
            result = self._flush_callback(events)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"Error in flush callback: {e}", exc_info=True)
