"""
Tests for ConfigStore reload serialization and failure recovery.

These tests focus on:
1. Snapshot replacement on reload
2. Keeping the previous snapshot when loading fails
3. Coalescing reloads requested while one is loading
"""

import asyncio
import threading
import time

import pytest

from coffeewatch.config import CompileConfig, ConfigSource
from coffeewatch.config_store import ConfigStore, ReloadState
from coffeewatch.exceptions import ConfigLoadError


class ScriptedSource(ConfigSource):
    """ConfigSource returning (or raising) scripted results, optionally slowly."""

    def __init__(self, results, delay: float = 0.0) -> None:
        super().__init__("/ws")
        self._results = list(results)
        self._delay = delay
        self._lock = threading.Lock()
        self.calls = 0

    def load(self) -> CompileConfig:
        with self._lock:
            self.calls += 1
            result = self._results[min(self.calls, len(self._results)) - 1]
        if self._delay:
            time.sleep(self._delay)
        if isinstance(result, Exception):
            raise result
        return result


def test_current_config_is_none_before_first_load():
    store = ConfigStore(ScriptedSource([CompileConfig()]))
    assert store.current_config() is None
    assert store.state is ReloadState.IDLE


def test_retry_delay_must_be_positive():
    with pytest.raises(ValueError):
        ConfigStore(ScriptedSource([CompileConfig()]), retry_delay=0)


@pytest.mark.asyncio
async def test_reload_replaces_snapshot():
    first = CompileConfig(bare=True)
    second = CompileConfig(bare=False, files=("src/**",))
    store = ConfigStore(ScriptedSource([first, second]))

    await store.reload()
    assert store.current_config() is first

    await store.reload()
    assert store.current_config() is second


@pytest.mark.asyncio
async def test_failed_reload_keeps_previous_snapshot():
    good = CompileConfig(header=True)
    store = ConfigStore(ScriptedSource([good, ConfigLoadError("Invalid JSON")]))

    await store.reload()
    await store.reload()

    assert store.current_config() is good
    assert store.state is ReloadState.IDLE


@pytest.mark.asyncio
async def test_unexpected_error_does_not_escape_reload():
    store = ConfigStore(ScriptedSource([RuntimeError("host exploded")]))

    await store.reload()

    assert store.current_config() is None
    assert store.load_count == 1


@pytest.mark.asyncio
async def test_concurrent_reloads_coalesce_into_one_deferred_reload():
    """Test: Two requests during a load give exactly one extra load, never zero."""
    source = ScriptedSource([CompileConfig(bare=True), CompileConfig(bare=False)], delay=0.2)
    store = ConfigStore(source, retry_delay=0.05)

    first = asyncio.create_task(store.reload())
    await asyncio.sleep(0.05)
    assert store.state is ReloadState.LOADING

    await store.reload()
    await store.reload()
    assert store.has_pending_reload

    await first
    assert source.calls == 1

    # Deferred reload re-enters the guard and runs once the first has finished
    await asyncio.sleep(0.6)

    assert source.calls == 2
    assert not store.has_pending_reload
    assert store.current_config() == CompileConfig(bare=False)


@pytest.mark.asyncio
async def test_close_cancels_deferred_reload():
    source = ScriptedSource([CompileConfig()], delay=0.1)
    store = ConfigStore(source, retry_delay=0.05)

    first = asyncio.create_task(store.reload())
    await asyncio.sleep(0.02)
    await store.reload()
    assert store.has_pending_reload

    store.close()
    await first
    await asyncio.sleep(0.2)

    assert source.calls == 1
    assert store.current_config() is None


@pytest.mark.asyncio
async def test_reload_after_close_is_a_no_op():
    source = ScriptedSource([CompileConfig()])
    store = ConfigStore(source)
    store.close()

    await store.reload()

    assert source.calls == 0
