# bridge/config.py
from dataclasses import dataclass
from typing import Any, Mapping

from bridge.assets import CHAIN_ID_CITREA_MAINNET

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///bridge_swaps.db"

@dataclass
class BridgeSettings:
    """Bridge sync runtime configuration."""
    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False

    status_chunk_size: int = 64                   # ids per status-service request
    citrea_chain_id: int = CHAIN_ID_CITREA_MAINNET


def make_settings_from_cfg(cfg: Mapping[str, Any]) -> BridgeSettings:
    bridge_cfg = cfg.get("bridge", {}) or {}
    chunk = int(bridge_cfg.get("status_chunk_size", 64))
    if chunk <= 0:
        raise ValueError(f"bridge.status_chunk_size must be positive, got {chunk}")
    return BridgeSettings(
        database_url=bridge_cfg.get("database_url") or DEFAULT_DATABASE_URL,
        database_echo=bool(bridge_cfg.get("database_echo", False)),
        status_chunk_size=chunk,
        citrea_chain_id=int(bridge_cfg.get("citrea_chain_id") or CHAIN_ID_CITREA_MAINNET),
    )
