"""
Unit tests for keyed debounce timers
"""
import asyncio

import pytest

from heritage_console.core.debounce import DebounceScheduler


@pytest.mark.asyncio
async def test_rearming_coalesces_to_one_call():
    fired = []
    scheduler = DebounceScheduler(0.02)

    for text in ("C", "Cl", "Clock"):
        async def callback(text=text):
            fired.append(text)
        scheduler.arm("event_name", callback)

    await scheduler.wait_idle()
    assert fired == ["Clock"]


@pytest.mark.asyncio
async def test_keys_are_independent():
    fired = []
    scheduler = DebounceScheduler(0.01)

    async def name():
        fired.append("name")

    async def city():
        fired.append("city")

    scheduler.arm("name", name)
    scheduler.arm("city", city)
    assert set(scheduler.armed_keys()) == {"name", "city"}

    await scheduler.wait_idle()
    assert sorted(fired) == ["city", "name"]
    assert not scheduler.is_armed("name")


@pytest.mark.asyncio
async def test_cancel_prevents_callback():
    fired = []
    scheduler = DebounceScheduler(0.01)

    async def callback():
        fired.append(True)

    scheduler.arm("k", callback)
    assert scheduler.cancel("k")
    await asyncio.sleep(0.03)
    assert fired == []
    assert not scheduler.cancel("k")


@pytest.mark.asyncio
async def test_context_exit_disarms_timers():
    fired = []

    async def callback():
        fired.append(True)

    async with DebounceScheduler(0.01) as scheduler:
        scheduler.arm("k", callback)

    await asyncio.sleep(0.03)
    assert fired == []
    assert scheduler.arm("k", callback) is None


@pytest.mark.asyncio
async def test_failing_callback_is_logged_not_raised(caplog):
    scheduler = DebounceScheduler(0.0)

    async def callback():
        raise RuntimeError("boom")

    scheduler.arm("k", callback)
    await scheduler.wait_idle()
    assert any("Debounced callback failed" in r.getMessage() for r in caplog.records)
