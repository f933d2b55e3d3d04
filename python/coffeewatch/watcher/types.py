"""
Save watcher type definitions.

- WatchEvent enum: what a file system change means to the registry
- SaveWatcherProtocol: interface of a save-event source
"""

from enum import Enum
from typing import Protocol


class WatchEvent(Enum):
    """File system changes the save watcher reports."""

    SAVED = "saved"  # Source file written (created, modified or moved in)
    CONFIG_CHANGED = "config_changed"  # A workspace settings.json changed


class SaveWatcherProtocol(Protocol):
    """
    Protocol for a source of "document saved" events.

    Expected Behavior:
    ------------------
    1. Watch every workspace root recursively
    2. Debounce rapid writes to the same file into one event
    3. Report settings.json changes as CONFIG_CHANGED, other files as SAVED
    4. Never let a failing dispatch stop the watcher
    """

    async def start(self) -> None:
        """
        Start watching.

        Error Conditions:
        -----------------
        - Raises RuntimeError if already started
        - Raises FileNotFoundError if a root does not exist
        """
        ...

    async def stop(self) -> None:
        """Stop watching and flush pending events. Safe to call when not running."""
        ...

    def is_running(self) -> bool:
        ...

    async def handle_event(self, event_type: WatchEvent, file_path: str) -> None:
        """Queue an event from the observer thread (internal callback)."""
        ...
