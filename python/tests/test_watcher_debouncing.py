"""
Tests for DebounceQueue batching and event deduplication.

These tests focus on:
1. Collapsing rapid writes to one path into a single event
2. Batching events for several paths
3. Flush semantics (empty queue, callback failures)
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from coffeewatch.watcher import DebounceQueue, WatchEvent


# ============================================================================
# DEBOUNCING TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_rapid_writes_flush_once():
    """Test: Ten writes to the same file → one SAVED event."""
    callback = AsyncMock()
    queue = DebounceQueue(debounce_delay=0.1, flush_callback=callback)

    for _ in range(10):
        queue.add(WatchEvent.SAVED, "/ws/a.coffee")
        await asyncio.sleep(0.01)

    await asyncio.sleep(0.3)

    callback.assert_called_once_with([(WatchEvent.SAVED, "/ws/a.coffee")])


@pytest.mark.asyncio
async def test_events_for_several_files_are_batched():
    callback = AsyncMock()
    queue = DebounceQueue(debounce_delay=0.1, flush_callback=callback)

    queue.add(WatchEvent.SAVED, "/ws/a.coffee")
    queue.add(WatchEvent.SAVED, "/ws/b.coffee")
    queue.add(WatchEvent.CONFIG_CHANGED, "/ws/.vscode/settings.json")

    await asyncio.sleep(0.3)

    callback.assert_called_once()
    events = callback.call_args[0][0]
    assert len(events) == 3
    assert (WatchEvent.CONFIG_CHANGED, "/ws/.vscode/settings.json") in events


@pytest.mark.asyncio
async def test_last_event_for_a_path_wins():
    callback = AsyncMock()
    queue = DebounceQueue(debounce_delay=0.1, flush_callback=callback)

    queue.add(WatchEvent.SAVED, "/ws/a.coffee")
    queue.add(WatchEvent.CONFIG_CHANGED, "/ws/a.coffee")

    await asyncio.sleep(0.3)

    callback.assert_called_once_with([(WatchEvent.CONFIG_CHANGED, "/ws/a.coffee")])


@pytest.mark.asyncio
async def test_nothing_is_flushed_before_the_delay():
    callback = AsyncMock()
    queue = DebounceQueue(debounce_delay=0.5, flush_callback=callback)

    queue.add(WatchEvent.SAVED, "/ws/a.coffee")
    await asyncio.sleep(0.1)

    callback.assert_not_called()
    assert len(queue) == 1

    await queue.flush()
    callback.assert_called_once()


@pytest.mark.asyncio
async def test_sync_callback_is_supported():
    callback = Mock()
    queue = DebounceQueue(debounce_delay=0.1, flush_callback=callback)

    queue.add(WatchEvent.SAVED, "/ws/a.coffee")
    await queue.flush()

    callback.assert_called_once_with([(WatchEvent.SAVED, "/ws/a.coffee")])


# ============================================================================
# DEBOUNCE QUEUE UNIT TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_debounce_queue_init():
    """Test: DebounceQueue initializes with valid delay."""
    queue = DebounceQueue(debounce_delay=0.5)
    assert len(queue) == 0


def test_debounce_queue_init_invalid_delay():
    """Test: DebounceQueue raises ValueError for invalid delay."""
    with pytest.raises(ValueError):
        DebounceQueue(debounce_delay=0.0)

    with pytest.raises(ValueError):
        DebounceQueue(debounce_delay=-1.0)

    with pytest.raises(ValueError):
        DebounceQueue(debounce_delay=11.0)


@pytest.mark.asyncio
async def test_debounce_queue_flush_empty_queue():
    """Test: Flushing an empty DebounceQueue does not call the callback."""
    callback = AsyncMock()
    queue = DebounceQueue(debounce_delay=0.1, flush_callback=callback)

    await queue.flush()

    callback.assert_not_called()


@pytest.mark.asyncio
async def test_callback_errors_are_not_raised():
    """Test: A failing flush callback does not break later flushes."""
    callback = AsyncMock(side_effect=[RuntimeError("dispatch failed"), None])
    queue = DebounceQueue(debounce_delay=0.1, flush_callback=callback)

    queue.add(WatchEvent.SAVED, "/ws/a.coffee")
    await queue.flush()

    queue.add(WatchEvent.SAVED, "/ws/b.coffee")
    await queue.flush()

    assert callback.call_count == 2
    assert callback.call_args[0][0] == [(WatchEvent.SAVED, "/ws/b.coffee")]
    assert len(queue) == 0
