"""
A single watched workspace: one root directory with its own configuration.

Lifecycle:

    UNINITIALIZED --initialize()--> INITIALIZED --dispose()--> DISPOSING --> DISPOSED

A workspace only compiles in the INITIALIZED state. Once disposal starts,
compiles in flight stop before writing any output.
"""

import logging
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional

from coffeewatch.cancellation import ShutdownToken
from coffeewatch.compiler import CompilerProtocol
from coffeewatch.config import CompileConfig, ConfigSource
from coffeewatch.config_store import RELOAD_RETRY_DELAY, ConfigStore
from coffeewatch.notifications import NotifierProtocol
from coffeewatch.paths import is_path_of, normalize_path, to_full_path, to_relative_path
from coffeewatch.pipeline import CompileOutcome, CompilePipeline

logger = logging.getLogger(__name__)


class WorkspaceState(Enum):
    """Lifecycle state of a Workspace."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    DISPOSING = "disposing"
    DISPOSED = "disposed"


class Workspace:
    """
    Compile-on-save state for one workspace root.

    Args:
        root_path: Workspace root directory
        compiler: Compiler used for saved files
        notifier: Channel for compile errors
        config_source: Settings reader (defaults to the root's settings.json)
        reload_retry_delay: Seconds before a deferred config reload is retried

    Raises:
        ValueError: If root_path is empty
    """

    def __init__(
        self,
        root_path: str,
        compiler: CompilerProtocol,
        notifier: NotifierProtocol,
        config_source: Optional[ConfigSource] = None,
        reload_retry_delay: float = RELOAD_RETRY_DELAY,
    ) -> None:
        if not root_path or not str(root_path).strip():
            raise ValueError("Workspace root path must not be empty")

        self.root_path = normalize_path(root_path)
        self.name = PurePosixPath(self.root_path).name or self.root_path
        self.config_store = ConfigStore(
            config_source or ConfigSource(self.root_path),
            retry_delay=reload_retry_delay,
        )
        self.pipeline = CompilePipeline(compiler, notifier)
        self._state = WorkspaceState.UNINITIALIZED

    def __repr__(self) -> str:
        return f"Workspace({self.root_path!r}, state={self._state.value})"

    @property
    def state(self) -> WorkspaceState:
        return self._state

    @property
    def is_in_finalize_state(self) -> bool:
        """True once disposal has started."""
        return self._state in (WorkspaceState.DISPOSING, WorkspaceState.DISPOSED)

    async def initialize(self) -> None:
        """Load the configuration for the first time."""
        if self._state is not WorkspaceState.UNINITIALIZED:
            return

        await self.config_store.reload()
        if self.is_in_finalize_state:
            return

        self._state = WorkspaceState.INITIALIZED
        config = self.current_config()
        logger.info(
            f"[{self.name}] Initialized at {self.root_path} "
            f"(active={config.is_active if config else 'unknown'})"
        )

    def current_config(self) -> Optional[CompileConfig]:
        return self.config_store.current_config()

    def is_path_of(self, path: str) -> bool:
        return is_path_of(self.root_path, path)

    def to_relative_path(self, path: str) -> Optional[str]:
        return to_relative_path(self.root_path, path)

    def to_full_path(self, path: str) -> Optional[str]:
        """Full normalized path of ``path`` if it lies inside this workspace."""
        relative_path = self.to_relative_path(path)
        if relative_path is None:
            return None
        return to_full_path(self.root_path, relative_path)

    async def on_did_change_configuration(self) -> None:
        if self.is_in_finalize_state:
            return
        await self.config_store.reload()

    async def on_did_save(
        self, path: str, token: Optional[ShutdownToken] = None
    ) -> CompileOutcome:
        """Handle a saved file; compiles it if the configuration selects it."""
        if self._state is not WorkspaceState.INITIALIZED:
            return CompileOutcome.SKIPPED
        return await self.pipeline.run(self, path, token)

    def dispose(self) -> None:
        """Stop compiling and release the configuration."""
        if self.is_in_finalize_state:
            return

        self._state = WorkspaceState.DISPOSING
        try:
            self.config_store.close()
        finally:
            self._state = WorkspaceState.DISPOSED
            logger.info(f"[{self.name}] Disposed")
