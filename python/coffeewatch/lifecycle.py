"""
coffeewatch lifecycle - activation, watching and deactivation.

Handles:
1. Registering every workspace root (first configuration load included)
2. Running the save watcher until a stop is requested
3. Deactivation: shutdown token, watcher stop, workspace disposal

compile_files() runs the same dispatch path once for a fixed set of files,
without watching.
"""

import asyncio
import logging
import signal
from typing import Iterable, Optional

from coffeewatch.compiler import CompilerProtocol
from coffeewatch.notifications import NotifierProtocol
from coffeewatch.pipeline import CompileOutcome
from coffeewatch.registry import WorkspaceRegistry
from coffeewatch.watcher import SaveWatcher

logger = logging.getLogger(__name__)


async def activate(
    roots: Iterable[str],
    compiler: CompilerProtocol,
    notifier: NotifierProtocol,
) -> WorkspaceRegistry:
    """Create a registry and add every root to it."""
    registry = WorkspaceRegistry(compiler=compiler, notifier=notifier)
    for root in roots:
        await registry.add_workspace(root)
    return registry


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handler support
            pass


async def watch(
    roots: list[str],
    compiler: CompilerProtocol,
    notifier: NotifierProtocol,
    debounce_delay: float = 0.2,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """
    Compile on save until ``stop_event`` is set (or SIGINT/SIGTERM arrives).

    Args:
        roots: Workspace root directories
        compiler: Compiler for all workspaces
        notifier: Error channel for all workspaces
        debounce_delay: Seconds of quiet before a write is compiled
        stop_event: Set to stop watching; installs signal handlers if omitted

    Raises:
        FileNotFoundError: If a root does not exist
        ValueError: If a root is not a directory
    """
    if stop_event is None:
        stop_event = asyncio.Event()
        _install_signal_handlers(stop_event)

    registry = await activate(roots, compiler, notifier)
    watcher = None
    try:
        watcher = SaveWatcher(registry, roots=roots, debounce_delay=debounce_delay)
        await watcher.start()
        await stop_event.wait()
    finally:
        await deactivate(registry, watcher)


async def deactivate(registry: WorkspaceRegistry, watcher: Optional[SaveWatcher] = None) -> None:
    """Stop dispatching new saves, stop the watcher and dispose workspaces."""
    if registry.token.is_cancelled:
        return

    registry.token.cancel()
    if watcher is not None:
        await watcher.stop()
    await registry.shutdown()
    logger.info("coffeewatch deactivated")


async def compile_files(
    roots: list[str],
    files: list[str],
    compiler: CompilerProtocol,
    notifier: NotifierProtocol,
) -> dict[str, Optional[CompileOutcome]]:
    """
    Dispatch a save event for each file once, then deactivate.

    Returns:
        Mapping of file path to its outcome (None if no workspace owns it)
    """
    registry = await activate(roots, compiler, notifier)
    try:
        outcomes = {}
        for path in files:
            outcomes[path] = await registry.dispatch_save(path)
        return outcomes
    finally:
        await deactivate(registry)
