# bridge/services/phases.py
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, List, Sequence

from bridge.enums import SWAP_STATUS_PENDING, SwapStatus, SwapType
from bridge.models import Swap, SwapPredicate, diff_swaps
from bridge.schemas import SwapStatusReport
from utils.logger import logger


@dataclass(frozen=True)
class Phase:
    name: str
    predicate: SwapPredicate
    refresh_status: bool = False     # ask the status service before running fixers


PENDING_PHASE = Phase(
    "pending",
    SwapPredicate(statuses=SWAP_STATUS_PENDING),
    refresh_status=True,
)
# reverse / submarine swaps expire server-side only, nothing to recover on chain
EXPIRED_PHASE = Phase(
    "expired",
    SwapPredicate(
        statuses=frozenset({SwapStatus.SWAP_EXPIRED.value}),
        exclude_types=frozenset({SwapType.REVERSE.value, SwapType.SUBMARINE.value}),
    ),
)
FAILED_PHASE = Phase(
    "failed",
    SwapPredicate(statuses=frozenset({SwapStatus.TRANSACTION_LOCKUP_FAILED.value})),
)

PHASES: tuple[Phase, ...] = (PENDING_PHASE, EXPIRED_PHASE, FAILED_PHASE)


def apply_status_reports(swaps: Sequence[Swap], reports: Dict[str, SwapStatusReport]) -> List[Swap]:
    """Provisional copies for swaps whose reported status differs; others pass through."""
    out: List[Swap] = []
    for swap in swaps:
        report = reports.get(swap.id)
        if report is not None and report.status and report.status != swap.status:
            out.append(replace(swap, status=report.status))
        else:
            out.append(swap)
    return out


class PhaseRunner:
    """query -> (status refresh) -> fixers -> diff -> one transactional write."""

    def __init__(self, store, status_source, fixer_pipeline, logger_=None) -> None:
        self._store = store
        self._status = status_source
        self._fixers = fixer_pipeline
        self._log = logger_ or logger.bind(component="PhaseRunner")

    async def run(self, phase: Phase, user_id: str) -> int:
        candidates = await self._store.query(user_id, phase.predicate)
        if not candidates:
            return 0

        working: List[Swap] = list(candidates)
        if phase.refresh_status:
            reports = await self._status.get_current_status([s.id for s in candidates])
            working = apply_status_reports(candidates, reports)

        resolved = await self._fixers.fix(working)
        deltas = diff_swaps(candidates, resolved)
        if not deltas:
            self._log.debug(f"phase={phase.name} user={user_id} candidates={len(candidates)} no changes")
            return 0

        written = await self._store.update_many(deltas)
        self._log.info(
            f"phase={phase.name} user={user_id} candidates={len(candidates)} updated={written} "
            f"changes={[(d.id, d.status) for d in deltas]}"
        )
        return written
