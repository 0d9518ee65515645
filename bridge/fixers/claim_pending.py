# bridge/fixers/claim_pending.py
# swaps the status service still reports as transaction.claim.pending
from typing import Optional

from bridge.assets import BridgeAsset, chain_id_for, is_evm_asset
from bridge.enums import SwapStatus, SwapType
from bridge.fixers.types import FixerDeps, detail, patch
from bridge.models import Swap, SwapPatch
from bridge.schemas import find_leaf_spend

CLAIM_PENDING = SwapStatus.TRANSACTION_CLAIM_PENDING.value


async def fix_cbtc_to_btc_onchain_claim_pending(swap: Swap, deps: FixerDeps) -> Optional[SwapPatch]:
    """cBTC -> BTC: the user's BTC claim may already be on chain."""
    lockup_address = detail(swap.claim_details, "lockupAddress")
    claim_leaf = detail(swap.claim_details, "swapTree", "claimLeaf", "output")
    if (
        swap.asset_send != BridgeAsset.CBTC.value
        or swap.asset_receive != BridgeAsset.BTC.value
        or swap.status != CLAIM_PENDING
        or not lockup_address
        or not detail(swap.claim_details, "swapTree")
    ):
        return None

    txs = await deps.btc_indexer.get_transactions_by_address(lockup_address)
    if not txs:
        return patch(SwapStatus.USER_ABANDONED)

    spend = find_leaf_spend(txs, claim_leaf) if claim_leaf else None
    if spend:
        return patch(SwapStatus.USER_CLAIMED, claim_tx=spend.txid)
    return None


async def fix_evm_claim_pending(swap: Swap, deps: FixerDeps) -> Optional[SwapPatch]:
    """EVM -> EVM chain swap: destination lockup already claimed."""
    if (
        swap.status != CLAIM_PENDING
        or swap.type != SwapType.CHAIN.value
        or BridgeAsset.BTC.value in (swap.asset_send, swap.asset_receive)
        or not is_evm_asset(swap.asset_receive)
    ):
        return None

    destination_chain = chain_id_for(swap.asset_receive)
    if destination_chain is None:
        return None

    lockups = await deps.evm_indexer.get_lockup(swap.preimage_hash, destination_chain)
    lockup = lockups[0] if lockups else None
    if lockup and lockup.claimed:
        return patch(SwapStatus.USER_CLAIMED, claim_tx=lockup.claim_tx_hash)
    return None


async def fix_submarine_swap_stuck_on_claim_pending(swap: Swap, deps: FixerDeps) -> Optional[SwapPatch]:
    """
    cBTC -> BTC submarine: the lightning invoice is paid before the server
    claims, so from the user's side the swap is done.
    """
    if (
        swap.status == CLAIM_PENDING
        and swap.type == SwapType.SUBMARINE.value
        and swap.asset_send == BridgeAsset.CBTC.value
        and swap.asset_receive == BridgeAsset.BTC.value
    ):
        return patch(SwapStatus.USER_CLAIMED)
    return None
