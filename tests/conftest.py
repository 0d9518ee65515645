# tests/conftest.py
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio

from infra.http_client import HttpClient
from bridge.models import Swap, SwapDelta, SwapPredicate
from bridge.schemas import BitcoinTransaction, EvmLockup, SwapStatusReport
from bridge.services.endpoints import Endpoints
from bridge.stores.swap_store import SwapStore


@pytest.fixture
def test_cfg():
    return {
        "bridge": {"status_chunk_size": 64},
        "endpoints": {
            "lds_swap": "https://lds.test/v1/swap",
            "btc_indexer": "https://esplora.test/api",
            "evm_indexer": "https://lds.test/v1/claim",
        },
        "timeouts": {"rest_ms": 2000},
        "retries": {"rest_max_attempts": 3, "backoff_ms": 1},
    }


@pytest.fixture
def endpoints():
    return Endpoints(
        lds_swap="https://lds.test/v1/swap",
        btc_indexer="https://esplora.test/api",
        evm_indexer="https://lds.test/v1/claim",
    )


@pytest_asyncio.fixture
async def http_client(test_cfg):
    """HttpClient as an async context manager, session closed after the test."""
    async with HttpClient(test_cfg) as client:
        yield client


@pytest_asyncio.fixture
async def swap_store(tmp_path):
    store = SwapStore.from_url(f"sqlite+aiosqlite:///{tmp_path / 'swaps.db'}")
    await store.init_schema()
    yield store
    await store.close()


def make_swap(swap_id: str, **overrides) -> Swap:
    fields = dict(
        id=swap_id,
        user_id="0xuser",
        type="chain",
        version=3,
        status="swap.created",
        asset_send="BTC",
        asset_receive="cBTC",
        send_amount=100_000,
        receive_amount=99_000,
        date=1_700_000_000_000,
        preimage="aa" * 32,
        preimage_hash="bb" * 32,
        preimage_seed="cc" * 32,
        key_index=7,
        claim_address="0xclaim",
    )
    fields.update(overrides)
    return Swap(**fields)


def btc_tx(txid: str, *, witness: Sequence[str] = (), pays_to: Optional[str] = None,
           spends: Tuple[str, int] = ("00" * 32, 0)) -> BitcoinTransaction:
    return BitcoinTransaction.model_validate({
        "txid": txid,
        "vin": [{"txid": spends[0], "vout": spends[1], "witness": list(witness)}],
        "vout": [{"scriptpubkey": "5120ab", "scriptpubkey_address": pays_to, "value": 100_000}] if pays_to else [],
        "status": {"confirmed": True, "block_height": 850_000},
    })


def evm_lockup(chain_id: int = 4114, **overrides) -> EvmLockup:
    data = {
        "id": f"{chain_id}:{'bb' * 32}",
        "preimageHash": "bb" * 32,
        "chainId": chain_id,
        "amount": "1000",
        "claimed": False,
        "refunded": False,
    }
    data.update(overrides)
    return EvmLockup.model_validate(data)


class FakeBtcIndexer:
    def __init__(self, txs_by_address: Optional[Dict[str, List[BitcoinTransaction]]] = None):
        self.txs_by_address = txs_by_address or {}
        self.calls: List[str] = []

    async def get_transactions_by_address(self, address):
        self.calls.append(address)
        return list(self.txs_by_address.get(address, []))


class FakeEvmIndexer:
    def __init__(self, lockups=None, bridge_lockups=None):
        self.lockups: Dict[Tuple[str, int], List[EvmLockup]] = lockups or {}
        self.bridge_lockups: Dict[str, Tuple[Optional[EvmLockup], Optional[EvmLockup]]] = bridge_lockups or {}
        self.calls: List[tuple] = []

    async def get_lockup(self, preimage_hash, chain_id):
        self.calls.append(("get_lockup", preimage_hash, chain_id))
        return list(self.lockups.get((preimage_hash, chain_id), []))

    async def get_evm_bridge_lockups(self, preimage_hash, origin_chain_id, destination_chain_id):
        self.calls.append(("get_evm_bridge_lockups", preimage_hash, origin_chain_id, destination_chain_id))
        return self.bridge_lockups.get(preimage_hash, (None, None))


class FakeStatusSource:
    def __init__(self, statuses: Optional[Dict[str, str]] = None):
        self.statuses = statuses or {}
        self.calls: List[List[str]] = []

    async def get_current_status(self, ids):
        self.calls.append(list(ids))
        return {i: SwapStatusReport(status=self.statuses[i]) for i in ids if i in self.statuses}


class FakeSwapStore:
    """In-memory SwapStore with the same query / update_many contract."""

    def __init__(self, swaps: Sequence[Swap] = ()):
        self.rows: Dict[str, Swap] = {s.id: s for s in swaps}
        self.queries: List[Tuple[str, SwapPredicate]] = []
        self.writes: List[List[SwapDelta]] = []
        self.fail_writes = False

    async def query(self, user_id, predicate=None):
        self.queries.append((user_id, predicate))
        return [s for s in self.rows.values()
                if s.user_id == user_id and (predicate is None or predicate.matches(s))]

    async def count(self, user_id, predicate=None):
        return len(await self.query(user_id, predicate))

    async def update_many(self, deltas):
        if self.fail_writes:
            raise RuntimeError("connection lost")
        self.writes.append(list(deltas))
        for d in deltas:
            self.rows[d.id] = replace(self.rows[d.id], status=d.status, claim_tx=d.claim_tx, refund_tx=d.refund_tx)
        return len(deltas)
