# bridge/services/sync_service.py
from __future__ import annotations
from typing import Optional, Sequence

from bridge.config import BridgeSettings
from bridge.fixers import build_fixer_pipeline
from bridge.inflight import InflightRegistry
from bridge.models import normalize_user_id
from bridge.services.btc_indexer import EsploraBtcIndexer
from bridge.services.endpoints import Endpoints
from bridge.services.evm_indexer import GraphqlEvmIndexer
from bridge.services.phases import PHASES, Phase, PhaseRunner
from bridge.services.status_source import LdsStatusSource
from bridge.stores.swap_store import SwapStore
from utils.logger import logger


class BridgeSyncService:
    """
    Best-effort refresh of a user's bridge swaps ahead of user-facing reads.

    - Phases run pending -> expired -> failed; the first failure aborts the rest.
    - Concurrent sync() calls for one user share a single run.
    - sync() never raises: failures are logged and the next call starts over.
    """

    def __init__(self,
                 store,
                 status_source,
                 fixer_pipeline,
                 *,
                 phases: Sequence[Phase] = PHASES,
                 registry: Optional[InflightRegistry] = None,
                 logger_=None,
                 ) -> None:
        self._log = logger_ or logger.bind(component="BridgeSyncService")
        self._runner = PhaseRunner(store, status_source, fixer_pipeline, logger_=self._log)
        self._phases = tuple(phases)
        self._inflight = registry or InflightRegistry()

    @property
    def inflight(self) -> InflightRegistry:
        return self._inflight

    async def sync(self, user_id: str) -> None:
        user_id = normalize_user_id(user_id)
        await self._inflight.run_deduplicated(user_id, lambda: self._sync_all_phases(user_id))

    async def _sync_all_phases(self, user_id: str) -> None:
        phase_name = None
        try:
            for phase in self._phases:
                phase_name = phase.name
                await self._runner.run(phase, user_id)
        except Exception as e:
            self._log.opt(exception=e).error(
                f"Failed to sync bridge swap statuses user={user_id} phase={phase_name}: {e}"
            )


def build_sync_service(settings: BridgeSettings, endpoints: Endpoints, http, store: SwapStore) -> BridgeSyncService:
    """Wire the production collaborators around one shared HTTP client."""
    status_source = LdsStatusSource(http, endpoints, chunk_size=settings.status_chunk_size)
    pipeline = build_fixer_pipeline(
        EsploraBtcIndexer(http, endpoints),
        GraphqlEvmIndexer(http, endpoints),
        citrea_chain_id=settings.citrea_chain_id,
    )
    return BridgeSyncService(store, status_source, pipeline)
