# bridge/services/evm_indexer.py
from typing import Any, Dict, List, Optional, Protocol, Tuple

from pydantic import ValidationError

from bridge.errors import IndexerError
from bridge.schemas import EvmLockup
from bridge.services.endpoints import Endpoints
from infra.http_client import HttpError
from utils.logger import logger

LOCKUP_FRAGMENT = """
  id
  preimageHash
  chainId
  amount
  claimAddress
  refundAddress
  timelock
  tokenAddress
  swapType
  claimed
  refunded
  claimTxHash
  refundTxHash
  lockupTxHash
  preimage
"""

GET_LOCKUP_QUERY = f"""query GetLockup($preimageHash: String = "", $chainId: Int = 0) {{
  lockupss(where: {{ preimageHash: $preimageHash, chainId: $chainId }}) {{
    items {{ {LOCKUP_FRAGMENT} }}
  }}
}}"""

BRIDGE_LOCKUPS_QUERY = f"""query EvmBridgeLockups($originLockup: String = "", $destinationLockup: String = "") {{
  originLockup: lockups(id: $originLockup) {{ {LOCKUP_FRAGMENT} }}
  destinationLockup: lockups(id: $destinationLockup) {{ {LOCKUP_FRAGMENT} }}
}}"""


class EvmIndexer(Protocol):
    async def get_lockup(self, preimage_hash: str, chain_id: int) -> List[EvmLockup]: ...

    async def get_evm_bridge_lockups(
        self, preimage_hash: str, origin_chain_id: int, destination_chain_id: int
    ) -> Tuple[Optional[EvmLockup], Optional[EvmLockup]]: ...


class GraphqlEvmIndexer:
    """
    Lockup indexer for the EVM HTLC contracts, queried over GraphQL.
    Lockup ids are "{chainId}:{preimageHash}".
    """

    def __init__(self, http_client, endpoints: Endpoints, logger_=None) -> None:
        self._http = http_client
        self._ep = endpoints
        self._log = logger_ or logger.bind(component="EvmIndexer")

    async def query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        try:
            payload = await self._http.post_json(self._ep.evm_indexer, {"query": query, "variables": variables})
        except HttpError as e:
            self._log.warning(f"Failed to query EvmBridgeIndexer: {e}")
            raise IndexerError("evm indexer request failed", status=e.status) from e
        if not isinstance(payload, dict):
            raise IndexerError("unexpected evm indexer payload")
        if payload.get("errors") and not payload.get("data"):
            raise IndexerError(f"evm indexer errors: {payload['errors']}")
        # the gateway answers either with a plain GraphQL envelope or already unwrapped
        data = payload.get("data", payload)
        return data if isinstance(data, dict) else {}

    async def get_lockup(self, preimage_hash: str, chain_id: int) -> List[EvmLockup]:
        data = await self.query(GET_LOCKUP_QUERY, {"preimageHash": preimage_hash, "chainId": chain_id})
        items = ((data.get("lockupss") or {}).get("items")) or []
        return [self._parse(item) for item in items]

    async def get_evm_bridge_lockups(
        self, preimage_hash: str, origin_chain_id: int, destination_chain_id: int
    ) -> Tuple[Optional[EvmLockup], Optional[EvmLockup]]:
        data = await self.query(
            BRIDGE_LOCKUPS_QUERY,
            {
                "originLockup": f"{origin_chain_id}:{preimage_hash}",
                "destinationLockup": f"{destination_chain_id}:{preimage_hash}",
            },
        )
        origin = data.get("originLockup")
        destination = data.get("destinationLockup")
        return (
            self._parse(origin) if origin else None,
            self._parse(destination) if destination else None,
        )

    @staticmethod
    def _parse(item: Dict[str, Any]) -> EvmLockup:
        try:
            return EvmLockup.model_validate(item)
        except ValidationError as e:
            raise IndexerError(f"malformed lockup payload: {e}") from e
