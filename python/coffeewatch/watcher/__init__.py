"""
File system save watcher for running coffeewatch outside an editor.

Typical usage:
--------------
    from coffeewatch.registry import WorkspaceRegistry
    from coffeewatch.watcher import SaveWatcher

    registry = WorkspaceRegistry(compiler=compiler, notifier=notifier)
    await registry.add_workspace("/projects/site")

    watcher = SaveWatcher(registry, roots=["/projects/site"])
    await watcher.start()
    # ... saves are compiled as they happen ...
    await watcher.stop()

BEHAVIOR SUMMARY
================

1. EVENTS:
   - File created / modified -> SAVED
   - File moved -> SAVED for the destination
   - File deleted, directory events -> ignored
   - <root>/.vscode/settings.json written -> CONFIG_CHANGED

2. DEBOUNCING:
   - Writes to the same path within the debounce window -> one event
   - Settings changes in a batch are applied before its saves

3. ERRORS:
   - Root missing -> FileNotFoundError on __init__
   - Root is a file -> ValueError on __init__
   - start() twice -> RuntimeError
   - stop() before start() -> no-op
   - Dispatch failure -> logged, watching continues

Compiled output (*.js, *.js.map) also produces events; they are dispatched
like any other write and skipped by the workspace's include rules.
"""

from coffeewatch.watcher.core import SaveWatcher
from coffeewatch.watcher.debouncer import DebounceQueue
from coffeewatch.watcher.handlers import SaveEventHandler
from coffeewatch.watcher.types import SaveWatcherProtocol, WatchEvent

__all__ = [
    "WatchEvent",
    "SaveWatcher",
    "SaveWatcherProtocol",
    "DebounceQueue",
    "SaveEventHandler",
]
