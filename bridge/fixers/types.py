# bridge/fixers/types.py
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from bridge.assets import CHAIN_ID_CITREA_MAINNET
from bridge.enums import SwapStatus
from bridge.models import Swap, SwapPatch
from bridge.services.btc_indexer import BtcIndexer
from bridge.services.evm_indexer import EvmIndexer


@dataclass
class FixerDeps:
    btc_indexer: BtcIndexer
    evm_indexer: EvmIndexer
    citrea_chain_id: int = CHAIN_ID_CITREA_MAINNET


# returns None when the swap needs no correction
SwapFixer = Callable[[Swap, FixerDeps], Awaitable[Optional[SwapPatch]]]


def detail(blob: Any, *path: str) -> Any:
    """Walk a nested claim/lockup detail blob; None if any step is missing."""
    cur = blob
    for key in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def patch(status: SwapStatus, *, claim_tx: Optional[str] = None, refund_tx: Optional[str] = None) -> SwapPatch:
    return SwapPatch(status=status.value, claim_tx=claim_tx, refund_tx=refund_tx)
