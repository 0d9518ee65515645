# bridge/assets.py
from enum import Enum
from typing import Dict, Optional

CHAIN_ID_MAINNET = 1
CHAIN_ID_POLYGON = 137
CHAIN_ID_CITREA_MAINNET = 4114

class BridgeAsset(str, Enum):
    BTC = "BTC"
    CBTC = "cBTC"
    JUSD_CITREA = "JUSD_CITREA"
    USDT_POLYGON = "USDT_POLYGON"
    USDT_ETH = "USDT_ETH"
    USDC_ETH = "USDC_ETH"
    WBTC_ETH = "WBTC_ETH"
    WBTC_CITREA = "WBTC_CITREA"
    WBTCE_CITREA = "WBTCe_CITREA"


ERC20_ASSETS = frozenset({
    BridgeAsset.JUSD_CITREA.value,
    BridgeAsset.USDT_POLYGON.value,
    BridgeAsset.USDT_ETH.value,
    BridgeAsset.USDC_ETH.value,
    BridgeAsset.WBTC_ETH.value,
    BridgeAsset.WBTC_CITREA.value,
    BridgeAsset.WBTCE_CITREA.value,
})

EVM_ASSETS = ERC20_ASSETS | {BridgeAsset.CBTC.value}

ASSET_CHAIN_IDS: Dict[str, int] = {
    BridgeAsset.CBTC.value: CHAIN_ID_CITREA_MAINNET,
    BridgeAsset.JUSD_CITREA.value: CHAIN_ID_CITREA_MAINNET,
    BridgeAsset.USDT_POLYGON.value: CHAIN_ID_POLYGON,
    BridgeAsset.USDT_ETH.value: CHAIN_ID_MAINNET,
    BridgeAsset.USDC_ETH.value: CHAIN_ID_MAINNET,
    BridgeAsset.WBTC_ETH.value: CHAIN_ID_MAINNET,
    BridgeAsset.WBTC_CITREA.value: CHAIN_ID_CITREA_MAINNET,
    BridgeAsset.WBTCE_CITREA.value: CHAIN_ID_CITREA_MAINNET,
}

def is_evm_asset(asset: Optional[str]) -> bool:
    return asset in EVM_ASSETS

def chain_id_for(asset: str) -> Optional[int]:
    return ASSET_CHAIN_IDS.get(asset)
