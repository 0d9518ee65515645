# bridge/services/status_source.py
from __future__ import annotations
import asyncio
from typing import Dict, List, Protocol, Sequence

from pydantic import ValidationError

from bridge.errors import StatusSourceError
from bridge.schemas import SwapStatusReport
from bridge.services.endpoints import Endpoints
from infra.http_client import HttpError
from utils.logger import logger


class StatusSource(Protocol):
    async def get_current_status(self, ids: Sequence[str]) -> Dict[str, SwapStatusReport]: ...


def _chunks(ids: Sequence[str], size: int) -> List[List[str]]:
    return [list(ids[i:i + size]) for i in range(0, len(ids), size)]


class LdsStatusSource:
    """
    Batched status lookups against the swap-status service.
    Best-effort: a failing chunk is logged and simply contributes no reports,
    which callers treat as "no update" for those ids.
    """

    def __init__(self, http_client, endpoints: Endpoints, *, chunk_size: int = 64, logger_=None) -> None:
        self._http = http_client
        self._ep = endpoints
        self._chunk_size = chunk_size
        self._log = logger_ or logger.bind(component="LdsStatusSource")

    async def get_current_status(self, ids: Sequence[str]) -> Dict[str, SwapStatusReport]:
        if not ids:
            return {}
        results = await asyncio.gather(
            *(self._fetch_chunk(chunk) for chunk in _chunks(ids, self._chunk_size))
        )
        merged: Dict[str, SwapStatusReport] = {}
        for part in results:
            merged.update(part)
        return merged

    async def _fetch_chunk(self, ids: List[str]) -> Dict[str, SwapStatusReport]:
        try:
            if len(ids) == 1:
                url = self._ep.lds_swap + self._ep.swap_by_id.format(id=ids[0])
                data = await self._http.get_json(url)
                return {ids[0]: SwapStatusReport.model_validate(data)}

            url = self._ep.lds_swap + self._ep.swap_status_batch
            data = await self._http.get_json(url, params=[("ids", i) for i in ids])
            if not isinstance(data, dict):
                raise StatusSourceError("unexpected status payload", type=type(data).__name__)
            wanted = set(ids)
            return {
                swap_id: SwapStatusReport.model_validate(report)
                for swap_id, report in data.items()
                if swap_id in wanted and isinstance(report, dict) and report.get("status")
            }
        except (HttpError, StatusSourceError) as e:
            self._log.warning(f"Failed to fetch swap status ids={ids}: {e}")
            return {}
        except ValidationError as e:
            self._log.error(f"Malformed swap status payload ids={ids}: {e}")
            return {}
