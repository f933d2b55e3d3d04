"""
Per-workspace configuration holder with a serialized reload.

Reloads never overlap. A reload requested while another one is loading is
not dropped: it is deferred by RELOAD_RETRY_DELAY seconds and then re-enters
the same guard. At most one deferred reload is kept, because a reload always
fetches the complete current settings, so one extra pass covers any number of
requests that arrived while loading:

    IDLE --reload()--> LOADING --done--> IDLE
                          |
                   reload() while LOADING
                          v
                 retry pending (depth 1) --delay--> reload()
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from coffeewatch.config import CompileConfig, ConfigSource
from coffeewatch.exceptions import ConfigLoadError

logger = logging.getLogger(__name__)

# Seconds before a deferred reload re-enters the guard
RELOAD_RETRY_DELAY = 1.0


class ReloadState(Enum):
    """Reload state of a ConfigStore."""

    IDLE = "idle"
    LOADING = "loading"


class ConfigStore:
    """
    Holds the active CompileConfig snapshot of one workspace.

    Args:
        source: Where the configuration is read from
        retry_delay: Seconds before a deferred reload is retried
    """

    def __init__(self, source: ConfigSource, retry_delay: float = RELOAD_RETRY_DELAY) -> None:
        if retry_delay <= 0:
            raise ValueError("retry_delay must be positive")

        self.source = source
        self._retry_delay = retry_delay

        self._config: Optional[CompileConfig] = None
        self._state = ReloadState.IDLE
        self._closed = False

        # Deferred reload (at most one)
        self._retry_handle: Optional[asyncio.TimerHandle] = None
        self._retry_tasks: set[asyncio.Task] = set()

        # Number of loads actually executed (successful or not)
        self.load_count = 0

    @property
    def state(self) -> ReloadState:
        return self._state

    @property
    def has_pending_reload(self) -> bool:
        """True while a deferred reload is waiting for its retry delay."""
        return self._retry_handle is not None

    def current_config(self) -> Optional[CompileConfig]:
        """Last successfully loaded snapshot, or None before the first load."""
        return self._config

    async def reload(self) -> None:
        """
        Fetch the configuration and replace the stored snapshot.

        If a reload is already loading, this one is deferred instead of run.
        A failed load keeps the previous snapshot and is only logged.
        """
        if self._closed:
            return

        if self._state is ReloadState.LOADING:
            self._schedule_retry()
            return

        self._state = ReloadState.LOADING
        try:
            config = await asyncio.to_thread(self.source.load)
        except ConfigLoadError as e:
            logger.warning(f"Keeping previous configuration: {e}")
        except Exception as e:
            logger.error(
                f"Unexpected error loading configuration from {self.source.path}: {e}",
                exc_info=True,
            )
        else:
            if not self._closed:
                self._config = config
                logger.debug(f"Loaded configuration from {self.source.path}")
        finally:
            self.load_count += 1
            self._state = ReloadState.IDLE

    def _schedule_retry(self) -> None:
        """Defer a reload; coalesces with an already pending one."""
        if self._retry_handle is not None:
            return

        loop = asyncio.get_running_loop()
        self._retry_handle = loop.call_later(self._retry_delay, self._run_retry)
        logger.debug(f"Reload in progress, retrying in {self._retry_delay}s")

    def _run_retry(self) -> None:
        self._retry_handle = None
        if self._closed:
            return

        task = asyncio.ensure_future(self.reload())
        self._retry_tasks.add(task)
        task.add_done_callback(self._retry_tasks.discard)

    def close(self) -> None:
        """Cancel any deferred reload and drop the snapshot."""
        self._closed = True
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
        for task in list(self._retry_tasks):
            task.cancel()
        self._retry_tasks.clear()
        self._config = None
