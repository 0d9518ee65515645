# bridge/fixers/expired.py
# chain swaps the status service gave up on (swap.expired); funds may still have moved on chain
from typing import Optional

from bridge.assets import BridgeAsset, chain_id_for, is_evm_asset
from bridge.enums import SwapStatus, SwapType
from bridge.fixers.types import FixerDeps, detail, patch
from bridge.models import Swap, SwapPatch
from bridge.schemas import find_leaf_spend

EXPIRED = SwapStatus.SWAP_EXPIRED.value
CHAIN = SwapType.CHAIN.value


async def fix_onchain_btc_expired_swap(swap: Swap, deps: FixerDeps) -> Optional[SwapPatch]:
    """cBTC -> BTC: user locked cBTC on Citrea, server locked BTC on chain."""
    if not (
        swap.type == CHAIN
        and swap.asset_send == BridgeAsset.CBTC.value
        and swap.asset_receive == BridgeAsset.BTC.value
        and swap.status == EXPIRED
    ):
        return None

    lockups = await deps.evm_indexer.get_lockup(swap.preimage_hash, deps.citrea_chain_id)
    lockup = lockups[0] if lockups else None
    if lockup is None:
        return patch(SwapStatus.USER_ABANDONED)
    if lockup.refunded:
        return patch(SwapStatus.USER_REFUNDED, refund_tx=lockup.refund_tx_hash)

    claim_leaf = detail(swap.claim_details, "swapTree", "claimLeaf", "output")
    lockup_address = detail(swap.claim_details, "lockupAddress")
    if claim_leaf and lockup_address:
        txs = await deps.btc_indexer.get_transactions_by_address(lockup_address)
        spend = find_leaf_spend(txs, claim_leaf)
        if spend:
            return patch(SwapStatus.USER_CLAIMED, claim_tx=spend.txid)
    return None


async def fix_btc_onchain_lockup_expired_swap(swap: Swap, deps: FixerDeps) -> Optional[SwapPatch]:
    """BTC -> cBTC: user locked BTC on chain, server locked cBTC on Citrea."""
    swap_tree = detail(swap.lockup_details, "swapTree")
    if not (
        swap.status == EXPIRED
        and swap.type == CHAIN
        and swap.asset_send == BridgeAsset.BTC.value
        and swap.asset_receive == BridgeAsset.CBTC.value
        and swap_tree
    ):
        return None

    refund_leaf = detail(swap_tree, "refundLeaf", "output")
    lockup_address = detail(swap.lockup_details, "lockupAddress") or swap.lockup_address
    if not lockup_address:
        return None

    txs = await deps.btc_indexer.get_transactions_by_address(lockup_address)
    if not txs:
        return patch(SwapStatus.USER_ABANDONED)

    spend = find_leaf_spend(txs, refund_leaf) if refund_leaf else None
    if spend:
        return patch(SwapStatus.USER_REFUNDED, refund_tx=spend.txid)

    if swap.preimage_hash:
        lockups = await deps.evm_indexer.get_lockup(swap.preimage_hash, deps.citrea_chain_id)
        lockup = lockups[0] if lockups else None
        if lockup and lockup.claimed:
            return patch(SwapStatus.USER_CLAIMED, claim_tx=lockup.claim_tx_hash)
    return None


async def fix_erc20_expired_swap(swap: Swap, deps: FixerDeps) -> Optional[SwapPatch]:
    """EVM -> EVM: both legs are HTLC lockups visible in the EVM indexer."""
    if not (
        swap.status == EXPIRED
        and swap.type == CHAIN
        and is_evm_asset(swap.asset_send)
        and is_evm_asset(swap.asset_receive)
        and swap.lockup_details
        and swap.claim_details
    ):
        return None

    origin_chain = chain_id_for(swap.asset_send)
    destination_chain = chain_id_for(swap.asset_receive)
    origin, destination = await deps.evm_indexer.get_evm_bridge_lockups(
        swap.preimage_hash, origin_chain, destination_chain
    )

    if origin is None:
        return patch(SwapStatus.USER_ABANDONED)
    if origin.refunded:
        return patch(SwapStatus.USER_REFUNDED, refund_tx=origin.refund_tx_hash)
    if destination is not None and destination.claimed:
        return patch(SwapStatus.USER_CLAIMED, claim_tx=destination.claim_tx_hash)

    # server never locked (or already took its side back): user can refund
    if not origin.claimed and (destination is None or destination.refunded):
        return patch(SwapStatus.USER_REFUNDABLE)
    return None
