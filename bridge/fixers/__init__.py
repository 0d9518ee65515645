# bridge/fixers/__init__.py
from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from bridge.fixers.claim_pending import (
    fix_cbtc_to_btc_onchain_claim_pending,
    fix_evm_claim_pending,
    fix_submarine_swap_stuck_on_claim_pending,
)
from bridge.fixers.expired import (
    fix_btc_onchain_lockup_expired_swap,
    fix_erc20_expired_swap,
    fix_onchain_btc_expired_swap,
)
from bridge.fixers.lockup_failed import fix_transaction_lockup_failed_swap
from bridge.fixers.types import FixerDeps, SwapFixer
from bridge.models import Swap

# first fixer that returns a patch wins
DEFAULT_FIXERS: tuple[SwapFixer, ...] = (
    fix_cbtc_to_btc_onchain_claim_pending,   # cBTC -> BTC          | transaction.claim.pending
    fix_onchain_btc_expired_swap,            # cBTC -> BTC (chain)  | swap.expired
    fix_transaction_lockup_failed_swap,      # BTC -> cBTC (chain)  | transaction.lockupFailed
    fix_btc_onchain_lockup_expired_swap,     # BTC -> cBTC (chain)  | swap.expired
    fix_erc20_expired_swap,                  # EVM -> EVM (chain)   | swap.expired
    fix_evm_claim_pending,                   # EVM -> EVM (chain)   | transaction.claim.pending
    fix_submarine_swap_stuck_on_claim_pending,  # cBTC -> BTC (submarine) | transaction.claim.pending
)


class FixerPipeline:
    """
    Reconciles stored statuses against on-chain ground truth.
    fix() keeps length and order; swaps without a patch come back as given.
    """

    def __init__(self, deps: FixerDeps, fixers: Optional[Sequence[SwapFixer]] = None) -> None:
        self._deps = deps
        self._fixers = tuple(fixers) if fixers is not None else DEFAULT_FIXERS

    async def fix(self, swaps: Sequence[Swap]) -> List[Swap]:
        return list(await asyncio.gather(*(self._fix_one(s) for s in swaps)))

    async def _fix_one(self, swap: Swap) -> Swap:
        for fixer in self._fixers:
            p = await fixer(swap, self._deps)
            if p is not None and not p.is_empty():
                return p.apply(swap)
        return swap


def build_fixer_pipeline(btc_indexer, evm_indexer, *, citrea_chain_id: Optional[int] = None) -> FixerPipeline:
    deps = FixerDeps(btc_indexer=btc_indexer, evm_indexer=evm_indexer)
    if citrea_chain_id is not None:
        deps.citrea_chain_id = citrea_chain_id
    return FixerPipeline(deps)


__all__ = ["DEFAULT_FIXERS", "FixerDeps", "FixerPipeline", "SwapFixer", "build_fixer_pipeline"]
