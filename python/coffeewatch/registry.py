"""
Registry of watched workspaces.

The registry owns every Workspace it creates: callers add and remove
workspaces by root path and deliver events through dispatch_save and
dispatch_config_change, but never keep Workspace objects of their own.

The collection is copy-on-write. Add and remove build a new tuple under a lock
and swap it in; dispatch iterates whatever tuple was current when it started.
"""

import asyncio
import logging
from typing import Callable, Optional

from coffeewatch.cancellation import ShutdownToken
from coffeewatch.compiler import CompilerProtocol
from coffeewatch.config_store import RELOAD_RETRY_DELAY
from coffeewatch.notifications import NotifierProtocol
from coffeewatch.paths import normalize_path
from coffeewatch.pipeline import CompileOutcome
from coffeewatch.workspace import Workspace

logger = logging.getLogger(__name__)


class WorkspaceRegistry:
    """
    Tracks active workspaces and routes events to them.

    Example Usage:
    --------------
    >>> registry = WorkspaceRegistry(compiler=CoffeeCompiler(), notifier=LoggingNotifier())
    >>> await registry.add_workspace("/projects/site")
    >>> await registry.dispatch_save("/projects/site/src/app.coffee")
    >>> await registry.shutdown()

    Args:
        compiler: Compiler shared by all workspaces
        notifier: Error channel shared by all workspaces
        token: Shutdown token (a new one is created if omitted)
        workspace_factory: Builds a Workspace for a root path (for tests)
        reload_retry_delay: Seconds before a deferred config reload is retried
    """

    def __init__(
        self,
        compiler: CompilerProtocol,
        notifier: NotifierProtocol,
        token: Optional[ShutdownToken] = None,
        workspace_factory: Optional[Callable[[str], Workspace]] = None,
        reload_retry_delay: float = RELOAD_RETRY_DELAY,
    ) -> None:
        self.compiler = compiler
        self.notifier = notifier
        self.token = token or ShutdownToken()
        self._workspace_factory = workspace_factory or self._create_workspace
        self._reload_retry_delay = reload_retry_delay

        self._workspaces: tuple[Workspace, ...] = ()
        self._lock = asyncio.Lock()

    def _create_workspace(self, root_path: str) -> Workspace:
        return Workspace(
            root_path,
            compiler=self.compiler,
            notifier=self.notifier,
            reload_retry_delay=self._reload_retry_delay,
        )

    @property
    def workspaces(self) -> tuple[Workspace, ...]:
        """Snapshot of the active workspaces, in the order they were added."""
        return self._workspaces

    def __len__(self) -> int:
        return len(self._workspaces)

    def get_workspace(self, root_path: str) -> Optional[Workspace]:
        """Workspace registered for exactly this root, if any."""
        root_path = normalize_path(root_path)
        for workspace in self._workspaces:
            if workspace.root_path == root_path:
                return workspace
        return None

    def find_workspace(self, path: str) -> Optional[Workspace]:
        """First workspace whose root contains ``path``."""
        for workspace in self._workspaces:
            if workspace.is_path_of(path):
                return workspace
        return None

    async def add_workspace(self, root_path: str) -> Optional[Workspace]:
        """
        Create, initialize and register a workspace.

        The workspace receives save events only after its first
        configuration load has finished.

        Args:
            root_path: Workspace root directory

        Returns:
            The new Workspace, or None if the root is already registered
            or the registry is shutting down
        """
        if self.token.is_cancelled:
            return None

        root_path = normalize_path(root_path)
        async with self._lock:
            if self.get_workspace(root_path) is not None:
                logger.warning(f"Workspace '{root_path}' already registered")
                return None

            workspace = self._workspace_factory(root_path)
            await workspace.initialize()

            if self.token.is_cancelled:
                workspace.dispose()
                return None

            self._workspaces = self._workspaces + (workspace,)

        logger.info(f"Added workspace '{workspace.name}' at {workspace.root_path}")
        return workspace

    async def remove_workspace(self, root_path: str) -> bool:
        """
        Unregister and dispose a workspace.

        Args:
            root_path: Root directory the workspace was added with

        Returns:
            True if a workspace was removed, False if none was registered
        """
        root_path = normalize_path(root_path)
        async with self._lock:
            workspace = self.get_workspace(root_path)
            if workspace is None:
                logger.warning(f"Workspace '{root_path}' not found")
                return False

            self._workspaces = tuple(w for w in self._workspaces if w is not workspace)

        workspace.dispose()
        logger.info(f"Removed workspace '{workspace.name}'")
        return True

    async def dispatch_save(self, path: str) -> Optional[CompileOutcome]:
        """
        Deliver a "file saved" event to the workspace that contains it.

        Never raises: errors from the workspace are logged and dropped so
        later events are still delivered.

        Args:
            path: Absolute path of the saved file

        Returns:
            The compile outcome, or None if no workspace handled the file
        """
        if self.token.is_cancelled:
            return None

        for workspace in self._workspaces:
            try:
                if workspace.is_path_of(path):
                    return await workspace.on_did_save(path, self.token)
            except Exception as e:
                logger.error(
                    f"[{workspace.name}] Error handling save of {path}: {e}",
                    exc_info=True,
                )
                return None

        logger.debug(f"No workspace contains {path}")
        return None

    async def dispatch_config_change(self, path: Optional[str] = None) -> None:
        """
        Deliver a configuration-change notification.

        Args:
            path: Changed settings file; None reloads every workspace
        """
        if self.token.is_cancelled:
            return

        for workspace in self._workspaces:
            if path is not None and not workspace.is_path_of(path):
                continue
            try:
                await workspace.on_did_change_configuration()
            except Exception as e:
                logger.error(
                    f"[{workspace.name}] Error reloading configuration: {e}",
                    exc_info=True,
                )

    async def shutdown(self) -> None:
        """Stop dispatching and dispose every workspace."""
        self.token.cancel()

        async with self._lock:
            workspaces = self._workspaces
            self._workspaces = ()

        for workspace in workspaces:
            try:
                workspace.dispose()
            except Exception as e:
                logger.error(f"Error disposing workspace '{workspace.name}': {e}")

        logger.info(f"Shut down {len(workspaces)} workspace(s)")
