# bridge/fixers/lockup_failed.py
from typing import Optional

from bridge.assets import BridgeAsset
from bridge.enums import SwapStatus, SwapType
from bridge.fixers.types import FixerDeps, detail, patch
from bridge.models import Swap, SwapPatch
from bridge.schemas import find_leaf_spend, unspent_outputs_to


async def fix_transaction_lockup_failed_swap(swap: Swap, deps: FixerDeps) -> Optional[SwapPatch]:
    """
    BTC -> cBTC chain swap whose BTC lockup was rejected (wrong amount, late).
    Coins sitting unspent at the lockup address can only go back to the user.
    """
    if not (
        swap.status == SwapStatus.TRANSACTION_LOCKUP_FAILED.value
        and swap.type == SwapType.CHAIN.value
        and swap.asset_send == BridgeAsset.BTC.value
        and swap.asset_receive == BridgeAsset.CBTC.value
    ):
        return None

    lockup_address = detail(swap.lockup_details, "lockupAddress") or swap.lockup_address
    if not lockup_address:
        return None

    txs = await deps.btc_indexer.get_transactions_by_address(lockup_address)
    if not txs:
        return patch(SwapStatus.USER_ABANDONED)

    refund_leaf = detail(swap.lockup_details, "swapTree", "refundLeaf", "output")
    spend = find_leaf_spend(txs, refund_leaf) if refund_leaf else None
    if spend:
        return patch(SwapStatus.USER_REFUNDED, refund_tx=spend.txid)

    # spent through a path we cannot attribute (e.g. cooperative key-path refund): leave as is
    if unspent_outputs_to(txs, lockup_address):
        return patch(SwapStatus.USER_REFUNDABLE)
    return None
