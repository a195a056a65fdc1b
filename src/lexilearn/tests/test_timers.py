"""Tests for the asyncio timers."""
import asyncio

import pytest

from lexilearn.services.timers import OneShotTimer, RepeatingTimer


@pytest.mark.asyncio
async def test_repeating_timer_ticks_until_stopped() -> None:
    ticks = []
    timer = RepeatingTimer(lambda: ticks.append(1), interval=0.01)

    timer.start()
    assert timer.running
    await asyncio.sleep(0.055)
    timer.stop()
    count = len(ticks)
    await asyncio.sleep(0.03)

    assert not timer.running
    assert count >= 2
    assert len(ticks) == count


@pytest.mark.asyncio
async def test_repeating_timer_awaits_coroutine_callbacks() -> None:
    ticks = []

    async def tick() -> None:
        ticks.append(1)

    timer = RepeatingTimer(tick, interval=0.01)
    timer.start()
    await asyncio.sleep(0.035)
    timer.stop()

    assert ticks


@pytest.mark.asyncio
async def test_one_shot_timer_fires_once() -> None:
    calls = []
    timer = OneShotTimer()

    timer.schedule(0.01, lambda: calls.append("reset"))
    await asyncio.sleep(0.05)

    assert calls == ["reset"]
    assert timer.task is None


@pytest.mark.asyncio
async def test_one_shot_timer_cancel_and_reschedule() -> None:
    """Test that rescheduling replaces the pending callback."""
    calls = []
    timer = OneShotTimer()

    timer.schedule(0.01, lambda: calls.append("first"))
    timer.schedule(0.01, lambda: calls.append("second"))
    await asyncio.sleep(0.05)
    timer.schedule(0.01, lambda: calls.append("third"))
    timer.cancel()
    await asyncio.sleep(0.03)

    assert calls == ["second"]


if __name__ == "__main__":
    pytest.main([__file__])
