# bridge/services/btc_indexer.py
from typing import List, Protocol

from pydantic import ValidationError

from bridge.errors import IndexerError
from bridge.schemas import BitcoinTransaction
from bridge.services.endpoints import Endpoints
from infra.http_client import HttpError
from utils.logger import logger


class BtcIndexer(Protocol):
    async def get_transactions_by_address(self, address: str) -> List[BitcoinTransaction]: ...


class EsploraBtcIndexer:
    """Esplora-compatible Bitcoin indexer (blockstream.info / mempool.space)."""

    def __init__(self, http_client, endpoints: Endpoints, logger_=None) -> None:
        self._http = http_client
        self._ep = endpoints
        self._log = logger_ or logger.bind(component="BtcIndexer")

    async def get_transactions_by_address(self, address: str) -> List[BitcoinTransaction]:
        url = self._ep.btc_indexer + self._ep.address_txs.format(address=address)
        try:
            data = await self._http.get_json(url)
        except HttpError as e:
            self._log.error(f"Failed to get transactions by address {address}: {e}")
            raise IndexerError("btc indexer request failed", address=address, status=e.status) from e
        if not isinstance(data, list):
            raise IndexerError("unexpected address txs payload", address=address)
        try:
            return [BitcoinTransaction.model_validate(tx) for tx in data]
        except ValidationError as e:
            raise IndexerError(f"malformed transaction payload: {e}", address=address) from e

    async def fetch_block_tip_height(self) -> int:
        url = self._ep.btc_indexer + self._ep.tip_height
        try:
            text = await self._http.get_text(url)
            return int(text.strip())
        except HttpError as e:
            raise IndexerError("btc tip height request failed", status=e.status) from e
        except ValueError as e:
            raise IndexerError(f"unexpected tip height: {e}") from e
