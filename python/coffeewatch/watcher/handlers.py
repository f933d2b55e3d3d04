"""
Watchdog event handler.

Receives raw watchdog events on the observer thread and forwards them to the
SaveWatcher on its event loop.
"""

import asyncio
from typing import TYPE_CHECKING

from watchdog.events import (
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)

from coffeewatch.paths import normalize_path
from coffeewatch.watcher.types import WatchEvent

if TYPE_CHECKING:
    from coffeewatch.watcher.core import SaveWatcher


class SaveEventHandler(FileSystemEventHandler):
    """
    Turns file writes into SAVED or CONFIG_CHANGED events.

    Directory events and deletions are ignored: a deleted source has nothing
    to compile. A move counts as a save of its destination.
    """

    def __init__(self, watcher: "SaveWatcher") -> None:
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        if isinstance(event, FileMovedEvent):
            path = event.dest_path
        elif isinstance(event, (FileCreatedEvent, FileModifiedEvent)):
            path = event.src_path
        else:
            return

        if isinstance(path, bytes):
            path = path.decode()
        path = normalize_path(path)

        if self.watcher.is_config_file(path):
            event_type = WatchEvent.CONFIG_CHANGED
        else:
            event_type = WatchEvent.SAVED

        asyncio.run_coroutine_threadsafe(
            self.watcher.handle_event(event_type, path), self.watcher.loop
        )
