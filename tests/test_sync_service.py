# tests/test_sync_service.py
import asyncio
import pytest

from bridge.enums import SwapStatus
from bridge.fixers import FixerDeps, FixerPipeline
from bridge.inflight import InflightRegistry
from bridge.models import SwapPatch
from bridge.services.phases import EXPIRED_PHASE, FAILED_PHASE, PENDING_PHASE, PhaseRunner
from bridge.services.sync_service import BridgeSyncService
from conftest import (
    FakeBtcIndexer, FakeEvmIndexer, FakeStatusSource, FakeSwapStore, btc_tx, evm_lockup, make_swap,
)

USER = "0xuser"
CLAIM_LEAF = "c0ffee"
REFUND_LEAF = "deadbeef"


def pipeline(btc=None, evm=None, fixers=None):
    deps = FixerDeps(btc_indexer=btc or FakeBtcIndexer(), evm_indexer=evm or FakeEvmIndexer())
    return FixerPipeline(deps, fixers)


def service(store, status=None, fixers=None, **kw):
    return BridgeSyncService(store, status or FakeStatusSource(), fixers or pipeline(), **kw)


class SlowStatusSource(FakeStatusSource):
    """Blocks in get_current_status until released."""

    def __init__(self, statuses=None):
        super().__init__(statuses)
        self.release = asyncio.Event()

    async def get_current_status(self, ids):
        self.calls.append(list(ids))
        await self.release.wait()
        return {}


@pytest.mark.asyncio
async def test_concurrent_syncs_for_one_user_share_a_run():
    store = FakeSwapStore([make_swap("p1")])
    status = SlowStatusSource()
    svc = service(store, status)

    calls = [asyncio.create_task(svc.sync(USER)) for _ in range(5)]
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert svc.inflight.in_flight(USER)

    status.release.set()
    await asyncio.gather(*calls)

    assert len(status.calls) == 1
    assert len(svc.inflight) == 0


@pytest.mark.asyncio
async def test_different_users_run_independently():
    store = FakeSwapStore([make_swap("a1", user_id="0xa"), make_swap("b1", user_id="0xb")])
    status = FakeStatusSource({"a1": "transaction.mempool", "b1": "transaction.mempool"})
    svc = service(store, status)

    await asyncio.gather(svc.sync("0xa"), svc.sync("0xb"))

    assert sorted(c[0] for c in status.calls) == ["a1", "b1"]
    assert store.rows["a1"].status == "transaction.mempool"
    assert store.rows["b1"].status == "transaction.mempool"


@pytest.mark.asyncio
async def test_sync_runs_again_after_completion():
    store = FakeSwapStore([make_swap("p1")])
    status = FakeStatusSource()
    svc = service(store, status)

    await svc.sync(USER)
    await svc.sync(USER)

    assert len(status.calls) == 2


@pytest.mark.asyncio
async def test_status_change_is_written_once():
    store = FakeSwapStore([make_swap("p1")])
    svc = service(store, FakeStatusSource({"p1": "transaction.server.mempool"}))

    await svc.sync(USER)

    assert len(store.writes) == 1
    (delta,) = store.writes[0]
    assert delta.id == "p1" and delta.status == "transaction.server.mempool"


@pytest.mark.asyncio
async def test_unchanged_swaps_cause_no_writes():
    store = FakeSwapStore([make_swap("p1"), make_swap("p2", status="transaction.mempool")])
    svc = service(store, FakeStatusSource({"p1": "swap.created", "p2": "transaction.mempool"}))

    await svc.sync(USER)

    assert store.writes == []


@pytest.mark.asyncio
async def test_swaps_outside_any_phase_are_untouched():
    done = make_swap("d1", status=SwapStatus.TRANSACTION_CLAIMED.value)
    mine = make_swap("p1")
    other = make_swap("x1", user_id="0xother")
    store = FakeSwapStore([done, mine, other])
    status = FakeStatusSource({"d1": "swap.expired", "x1": "swap.expired"})
    svc = service(store, status)

    await svc.sync(USER)

    assert status.calls == [["p1"]]
    assert store.rows["d1"] is done
    assert store.rows["x1"] is other
    assert store.writes == []


@pytest.mark.asyncio
async def test_missing_status_report_leaves_swap_as_is():
    store = FakeSwapStore([make_swap("p1"), make_swap("p2")])
    svc = service(store, FakeStatusSource({"p2": "transaction.mempool"}))

    await svc.sync(USER)

    assert [d.id for d in store.writes[0]] == ["p2"]
    assert store.rows["p1"].status == "swap.created"


@pytest.mark.asyncio
async def test_submarine_and_reverse_expired_swaps_are_not_fixed():
    calls = []

    async def recording_fixer(swap, deps):
        calls.append(swap.id)
        return SwapPatch(status=SwapStatus.USER_ABANDONED.value)

    store = FakeSwapStore([
        make_swap("s1", type="submarine", status="swap.expired"),
        make_swap("r1", type="reverse", status="swap.expired"),
        make_swap("c1", type="chain", status="swap.expired"),
    ])
    svc = service(store, fixers=pipeline(fixers=[recording_fixer]))

    await svc.sync(USER)

    assert calls == ["c1"]
    assert store.rows["s1"].status == "swap.expired"
    assert store.rows["r1"].status == "swap.expired"
    assert store.rows["c1"].status == SwapStatus.USER_ABANDONED.value


@pytest.mark.asyncio
async def test_failed_write_is_logged_and_registry_cleared():
    store = FakeSwapStore([make_swap("p1")])
    store.fail_writes = True
    status = FakeStatusSource({"p1": "transaction.mempool"})
    svc = service(store, status)

    await svc.sync(USER)  # must not raise

    assert len(svc.inflight) == 0
    assert store.rows["p1"].status == "swap.created"

    store.fail_writes = False
    await svc.sync(USER)
    assert len(status.calls) == 2
    assert store.rows["p1"].status == "transaction.mempool"


@pytest.mark.asyncio
async def test_failure_aborts_remaining_phases():
    store = FakeSwapStore([make_swap("p1"), make_swap("e1", status="swap.expired")])
    store.fail_writes = True
    seen = []

    async def recording_fixer(swap, deps):
        seen.append(swap.id)
        return None

    svc = service(store, FakeStatusSource({"p1": "transaction.mempool"}),
                  fixers=pipeline(fixers=[recording_fixer]))
    await svc.sync(USER)

    assert seen == ["p1"]
    assert [q[1] for q in store.queries] == [PENDING_PHASE.predicate]


@pytest.mark.asyncio
async def test_waiter_cancellation_does_not_cancel_shared_run():
    store = FakeSwapStore([make_swap("p1")])
    status = SlowStatusSource()
    svc = service(store, status, registry=InflightRegistry())

    first = asyncio.create_task(svc.sync(USER))
    second = asyncio.create_task(svc.sync(USER))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first

    status.release.set()
    await second
    assert len(status.calls) == 1
    assert len(svc.inflight) == 0


@pytest.mark.asyncio
async def test_mixed_phases_write_only_changed_rows():
    """
    Two pending swaps (one moved on the server, one unchanged) plus one
    lockup-failed swap whose BTC was refunded by the user.
    """
    failed = make_swap(
        "f1",
        status=SwapStatus.TRANSACTION_LOCKUP_FAILED.value,
        lockup_details={"lockupAddress": "bc1qlock", "swapTree": {"refundLeaf": {"output": REFUND_LEAF}}},
    )
    store = FakeSwapStore([make_swap("p1"), make_swap("p2"), failed])
    btc = FakeBtcIndexer({"bc1qlock": [btc_tx("refundtx", witness=["sig", REFUND_LEAF])]})
    svc = service(store, FakeStatusSource({"p1": "transaction.mempool", "p2": "swap.created"}),
                  fixers=pipeline(btc=btc))

    await svc.sync(USER)

    written = [d for batch in store.writes for d in batch]
    assert sorted(d.id for d in written) == ["f1", "p1"]
    assert store.rows["p1"].status == "transaction.mempool"
    assert store.rows["f1"].status == SwapStatus.USER_REFUNDED.value
    assert store.rows["f1"].refund_tx == "refundtx"
    assert store.rows["p2"].status == "swap.created"


@pytest.mark.asyncio
async def test_fixer_runs_on_refreshed_status():
    """Status service says claim.pending, the claim is already on chain."""
    swap = make_swap(
        "p1",
        asset_send="cBTC",
        asset_receive="BTC",
        status="transaction.server.confirmed",
        claim_details={"lockupAddress": "bc1qsrv", "swapTree": {"claimLeaf": {"output": CLAIM_LEAF}}},
    )
    store = FakeSwapStore([swap])
    btc = FakeBtcIndexer({"bc1qsrv": [btc_tx("claimtx", witness=["sig", CLAIM_LEAF])]})
    svc = service(store, FakeStatusSource({"p1": "transaction.claim.pending"}), fixers=pipeline(btc=btc))

    await svc.sync(USER)

    (delta,) = store.writes[0]
    assert delta.status == SwapStatus.USER_CLAIMED.value
    assert delta.claim_tx == "claimtx"


@pytest.mark.asyncio
async def test_phase_runner_returns_written_count():
    store = FakeSwapStore([make_swap("e1", status="swap.expired", asset_send="cBTC", asset_receive="BTC")])
    evm = FakeEvmIndexer({("bb" * 32, 4114): [evm_lockup(refunded=True, refundTxHash="0xrefund")]})
    runner = PhaseRunner(store, FakeStatusSource(), pipeline(evm=evm))

    assert await runner.run(FAILED_PHASE, USER) == 0
    assert await runner.run(EXPIRED_PHASE, USER) == 1
    assert store.rows["e1"].refund_tx == "0xrefund"


@pytest.mark.asyncio
async def test_mixed_case_user_ids_share_a_run():
    store = FakeSwapStore([make_swap("p1")])
    status = SlowStatusSource()
    svc = service(store, status)

    calls = [asyncio.create_task(svc.sync(u)) for u in ("0xUSER", "0xuser", "0xUser")]
    await asyncio.sleep(0)
    assert len(svc.inflight) == 1

    status.release.set()
    await asyncio.gather(*calls)
    assert len(status.calls) == 1
    assert store.queries[0][0] == USER
