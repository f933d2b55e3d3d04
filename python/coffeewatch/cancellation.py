"""Process-wide shutdown signal passed explicitly through event dispatch."""

import threading


class ShutdownToken:
    """
    One-way shutdown flag.

    Once cancelled it stays cancelled. New save events are not dispatched
    after cancellation, and compiles already running skip their output writes.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()
