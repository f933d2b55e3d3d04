"""
File system save watcher.

Stands in for an editor's "document saved" notifications when coffeewatch
runs as a standalone process: a watchdog Observer watches every workspace
root, writes are debounced, and the resulting events are dispatched to the
WorkspaceRegistry.
"""

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from coffeewatch.config import ConfigSource
from coffeewatch.paths import normalize_path
from coffeewatch.watcher.debouncer import DebounceQueue
from coffeewatch.watcher.types import WatchEvent

if TYPE_CHECKING:
    from coffeewatch.registry import WorkspaceRegistry

logger = logging.getLogger(__name__)


class SaveWatcher:
    """
    Watches workspace roots and feeds save events to a registry.

    Example Usage:
    --------------
    >>> watcher = SaveWatcher(registry, roots=["/projects/site"])
    >>> await watcher.start()
    >>> # ... saves are compiled in the background ...
    >>> await watcher.stop()

    Constructor Args:
    -----------------
    registry: Registry that receives the dispatched events
    roots: Workspace root directories to watch recursively
    debounce_delay: Seconds of quiet before a path's writes are dispatched

    Raises:
    -------
    FileNotFoundError: If a root does not exist
    ValueError: If a root is not a directory
    """

    def __init__(
        self,
        registry: "WorkspaceRegistry",
        roots: Iterable[str],
        debounce_delay: float = 0.2,
    ) -> None:
        self._roots: list[str] = []
        for root in roots:
            root_path = Path(root)
            if not root_path.exists():
                raise FileNotFoundError(f"Workspace path does not exist: {root}")
            if not root_path.is_dir():
                raise ValueError(f"Workspace path is not a directory: {root}")
            self._roots.append(normalize_path(root))

        self.registry = registry
        self._debounce_delay = debounce_delay
        self._config_sources = [ConfigSource(root) for root in self._roots]

        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._observer = None
        self._debounce_queue: Optional[DebounceQueue] = None

    @property
    def roots(self) -> list[str]:
        return list(self._roots)

    def is_config_file(self, path: str) -> bool:
        """Check whether ``path`` is the settings file of a watched root."""
        return any(source.is_config_file(path) for source in self._config_sources)

    async def start(self) -> None:
        """
        Start the watchdog observer.

        Raises:
        -------
        RuntimeError: If already running
        """
        from watchdog.observers import Observer

        from coffeewatch.watcher.handlers import SaveEventHandler

        if self.is_running():
            raise RuntimeError("SaveWatcher is already running")

        self.loop = asyncio.get_running_loop()
        self._debounce_queue = DebounceQueue(
            debounce_delay=self._debounce_delay,
            flush_callback=self._on_flush,
            loop=self.loop,
        )

        handler = SaveEventHandler(watcher=self)
        self._observer = Observer()
        for root in self._roots:
            self._observer.schedule(handler, root, recursive=True)
        self._observer.start()

        logger.info(f"Watching {len(self._roots)} workspace root(s) for saves")

    async def handle_event(self, event_type: WatchEvent, file_path: str) -> None:
        """Queue an event for debounced dispatch."""
        if self._debounce_queue is not None:
            self._debounce_queue.add(event_type, file_path)

    async def _on_flush(self, events: list[tuple[WatchEvent, str]]) -> None:
        """
        Dispatch a debounced batch.

        Settings changes are applied first so the saves in the same batch
        compile with the new configuration. Saves run concurrently.
        """
        config_changes = [path for event_type, path in events if event_type is WatchEvent.CONFIG_CHANGED]
        saves = [path for event_type, path in events if event_type is WatchEvent.SAVED]

        for path in config_changes:
            logger.info(f"Settings changed: {path}")
            await self.registry.dispatch_config_change(path)

        if saves:
            logger.debug(f"Dispatching {len(saves)} saved file(s)")
            await asyncio.gather(*(self.registry.dispatch_save(path) for path in saves))

    async def stop(self) -> None:
        """Stop the observer and flush pending events."""
        if self._observer is not None:
            logger.info("Stopping save watcher")
            observer = self._observer
            self._observer = None
            observer.stop()
            await asyncio.to_thread(observer.join)

        if self._debounce_queue is not None:
            await self._debounce_queue.flush()
            self._debounce_queue = None

    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()
