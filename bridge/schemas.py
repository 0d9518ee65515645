# bridge/schemas.py
# payloads returned by the external status service and indexers
from typing import Optional, List, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator


class SwapStatusReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: str
    failure_reason: Optional[str] = Field(default=None, alias="failureReason")


class BitcoinTxStatus(BaseModel):
    confirmed: bool = False
    block_height: Optional[int] = None
    block_hash: Optional[str] = None
    block_time: Optional[int] = None


class BitcoinTxInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    txid: str
    vout: int
    witness: Optional[List[str]] = None
    is_coinbase: bool = False
    sequence: Optional[int] = None


class BitcoinTxOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    scriptpubkey: str
    scriptpubkey_address: Optional[str] = None
    value: int


class BitcoinTransaction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    txid: str
    vin: List[BitcoinTxInput] = []
    vout: List[BitcoinTxOutput] = []
    fee: Optional[int] = None
    status: BitcoinTxStatus = BitcoinTxStatus()

    def spends_leaf(self, leaf_output: str) -> bool:
        """True if any input witness carries the given taproot leaf script."""
        return any(leaf_output in (i.witness or []) for i in self.vin)


def find_leaf_spend(txs: List[BitcoinTransaction], leaf_output: str) -> Optional[BitcoinTransaction]:
    return next((tx for tx in txs if tx.spends_leaf(leaf_output)), None)


def unspent_outputs_to(txs: List[BitcoinTransaction], address: str) -> List[Tuple[str, int]]:
    """Outpoints paying `address` that no input among `txs` spends."""
    spent = {(i.txid, i.vout) for tx in txs for i in tx.vin}
    return [
        (tx.txid, n)
        for tx in txs
        for n, out in enumerate(tx.vout)
        if out.scriptpubkey_address == address and (tx.txid, n) not in spent
    ]


class EvmLockup(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    preimage_hash: str = Field(alias="preimageHash")
    chain_id: int = Field(alias="chainId")
    amount: Optional[str] = None
    claim_address: Optional[str] = Field(default=None, alias="claimAddress")
    refund_address: Optional[str] = Field(default=None, alias="refundAddress")
    timelock: Optional[int] = None
    token_address: Optional[str] = Field(default=None, alias="tokenAddress")
    swap_type: Optional[str] = Field(default=None, alias="swapType")
    claimed: bool = False
    refunded: bool = False
    claim_tx_hash: Optional[str] = Field(default=None, alias="claimTxHash")
    refund_tx_hash: Optional[str] = Field(default=None, alias="refundTxHash")
    lockup_tx_hash: Optional[str] = Field(default=None, alias="lockupTxHash")
    preimage: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_str(cls, v):
        # uint256 amounts may arrive as JSON numbers
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v
