# bridge/serialize.py
"""
Swap <-> JSON-safe dict codec.

Big integer fields travel as decimal strings so they survive JSON consumers that
only have doubles. Decoding accepts ints or digit strings and refuses floats.
"""
from typing import Any, Dict, Mapping, Optional

from bridge.errors import SwapDecodeError
from bridge.enums import SwapType
from bridge.models import Swap, normalize_user_id

# python field -> wire field
_WIRE_NAMES: Dict[str, str] = {
    "id": "id",
    "user_id": "userId",
    "type": "type",
    "version": "version",
    "status": "status",
    "asset_send": "assetSend",
    "asset_receive": "assetReceive",
    "send_amount": "sendAmount",
    "receive_amount": "receiveAmount",
    "date": "date",
    "preimage": "preimage",
    "preimage_hash": "preimageHash",
    "preimage_seed": "preimageSeed",
    "key_index": "keyIndex",
    "claim_private_key_index": "claimPrivateKeyIndex",
    "refund_private_key_index": "refundPrivateKeyIndex",
    "claim_address": "claimAddress",
    "address": "address",
    "refund_address": "refundAddress",
    "lockup_address": "lockupAddress",
    "claim_tx": "claimTx",
    "refund_tx": "refundTx",
    "lockup_tx": "lockupTx",
    "invoice": "invoice",
    "accept_zero_conf": "acceptZeroConf",
    "expected_amount": "expectedAmount",
    "onchain_amount": "onchainAmount",
    "timeout_block_height": "timeoutBlockHeight",
    "claim_details": "claimDetails",
    "lockup_details": "lockupDetails",
    "referral_id": "referralId",
    "chain_id": "chainId",
}

_BIG_INT_FIELDS = ("send_amount", "receive_amount", "date", "expected_amount", "onchain_amount")
_REQUIRED = (
    "id", "user_id", "type", "version", "status", "asset_send", "asset_receive",
    "send_amount", "receive_amount", "date", "preimage", "preimage_hash",
    "preimage_seed", "key_index", "claim_address",
)


def _big_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or isinstance(value, float):
        raise SwapDecodeError("amount must be an integer or a digit string", field=name, value=value)
    if isinstance(value, int):
        n = value
    elif isinstance(value, str) and value.strip().isdigit():
        n = int(value.strip())
    else:
        raise SwapDecodeError("amount must be an integer or a digit string", field=name, value=value)
    if n < 0:
        raise SwapDecodeError("amount must be non-negative", field=name, value=value)
    return n


def swap_to_dict(swap: Swap) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for attr, wire in _WIRE_NAMES.items():
        value = getattr(swap, attr)
        if attr in _BIG_INT_FIELDS and value is not None:
            value = str(value)
        out[wire] = value
    return out


def swap_from_dict(data: Mapping[str, Any]) -> Swap:
    missing = [_WIRE_NAMES[a] for a in _REQUIRED if data.get(_WIRE_NAMES[a]) is None]
    if missing:
        raise SwapDecodeError("missing required fields", fields=",".join(missing))

    kwargs: Dict[str, Any] = {}
    for attr, wire in _WIRE_NAMES.items():
        value: Optional[Any] = data.get(wire)
        if value is not None and attr in _BIG_INT_FIELDS:
            value = _big_int(wire, value)
        kwargs[attr] = value

    try:
        kwargs["type"] = SwapType(kwargs["type"]).value
    except ValueError as e:
        raise SwapDecodeError("unknown swap type", value=kwargs["type"]) from e

    kwargs["user_id"] = normalize_user_id(kwargs["user_id"])
    return Swap(**kwargs)
