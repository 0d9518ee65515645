# bridge/services/endpoints.py
from dataclasses import dataclass
from typing import Any, Mapping

@dataclass
class Endpoints:
    # base URLs
    lds_swap: str = "https://lightning.space/v1/swap"
    btc_indexer: str = "https://blockstream.info/api"
    evm_indexer: str = "https://lightning.space/v1/claim"

    # swap-status service paths
    swap_by_id: str = "/v2/swap/{id}"
    swap_status_batch: str = "/v2/swap/status"

    # esplora paths
    address_txs: str = "/address/{address}/txs"
    tip_height: str = "/blocks/tip/height"


def make_endpoints_from_cfg(cfg: Mapping[str, Any]) -> Endpoints:
    ep_cfg = cfg.get("endpoints", {}) or {}
    defaults = Endpoints()
    try:
        return Endpoints(
            lds_swap=str(ep_cfg.get("lds_swap") or defaults.lds_swap).rstrip("/"),
            btc_indexer=str(ep_cfg.get("btc_indexer") or defaults.btc_indexer).rstrip("/"),
            evm_indexer=str(ep_cfg.get("evm_indexer") or defaults.evm_indexer).rstrip("/"),
        )
    except (TypeError, AttributeError) as e:
        raise ValueError(f"Invalid endpoints cfg: {e}") from e
