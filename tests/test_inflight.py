# tests/test_inflight.py
import asyncio
import pytest

from bridge.inflight import InflightRegistry


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_run():
    reg = InflightRegistry()
    gate = asyncio.Event()
    runs = []

    async def work():
        runs.append(1)
        await gate.wait()
        return "done"

    waiters = [asyncio.create_task(reg.run_deduplicated("u1", work)) for _ in range(10)]
    await asyncio.sleep(0)
    assert reg.in_flight("u1")
    assert len(reg) == 1

    gate.set()
    assert await asyncio.gather(*waiters) == ["done"] * 10
    assert runs == [1]
    assert not reg.in_flight("u1")


@pytest.mark.asyncio
async def test_keys_are_independent():
    reg = InflightRegistry()
    seen = []

    async def work(key):
        seen.append(key)
        await asyncio.sleep(0)
        return key

    out = await asyncio.gather(
        reg.run_deduplicated("a", lambda: work("a")),
        reg.run_deduplicated("b", lambda: work("b")),
    )
    assert out == ["a", "b"]
    assert sorted(seen) == ["a", "b"]
    assert len(reg) == 0


@pytest.mark.asyncio
async def test_failure_propagates_and_clears_entry():
    reg = InflightRegistry()
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("first run fails")
        return "ok"

    with pytest.raises(RuntimeError):
        await reg.run_deduplicated("u1", flaky)
    assert not reg.in_flight("u1")

    assert await reg.run_deduplicated("u1", flaky) == "ok"
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_cancelled_waiter_leaves_run_alive():
    reg = InflightRegistry()
    gate = asyncio.Event()

    async def work():
        await gate.wait()
        return 42

    first = asyncio.create_task(reg.run_deduplicated("u1", work))
    second = asyncio.create_task(reg.run_deduplicated("u1", work))
    await asyncio.sleep(0)

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first
    assert reg.in_flight("u1")

    gate.set()
    assert await second == 42
    assert len(reg) == 0
