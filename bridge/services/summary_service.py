# bridge/services/summary_service.py
from bridge.enums import SWAP_STATUS_PENDING, SWAP_STATUS_SUCCESS, SwapStatus
from bridge.models import SwapPredicate, SwapSummary, normalize_user_id

_PENDING = SwapPredicate(statuses=SWAP_STATUS_PENDING)
_EXPIRED = SwapPredicate(statuses=frozenset({SwapStatus.SWAP_EXPIRED.value}))
_SUCCESS = SwapPredicate(statuses=SWAP_STATUS_SUCCESS)
_REFUNDABLE = SwapPredicate(statuses=frozenset({SwapStatus.USER_REFUNDABLE.value}))


class SummaryService:
    """Per-user swap counters, read after a best-effort status sync."""

    def __init__(self, store, sync_service) -> None:
        self._store = store
        self._sync = sync_service

    async def summary(self, user_id: str) -> SwapSummary:
        user_id = normalize_user_id(user_id)
        await self._sync.sync(user_id)
        return SwapSummary(
            total_swaps=await self._store.count(user_id),
            total_success_swaps=await self._store.count(user_id, _SUCCESS),
            total_pending_swaps=await self._store.count(user_id, _PENDING),
            total_expired_swaps=await self._store.count(user_id, _EXPIRED),
            refundable_swaps=await self._store.count(user_id, _REFUNDABLE),
        )
