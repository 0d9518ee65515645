# bridge/models.py
from dataclasses import dataclass, field, replace
from typing import Optional, Any, Dict, FrozenSet, List, Sequence


@dataclass(frozen=True)
class Swap:
    id: str
    user_id: str
    type: str                       # SwapType value
    version: int
    status: str                     # SwapStatus value, or whatever the status service reported
    asset_send: str
    asset_receive: str
    send_amount: int                # smallest unit, exact
    receive_amount: int
    date: int                       # creation time (ms)
    preimage: str
    preimage_hash: str
    preimage_seed: str
    key_index: int
    claim_address: str
    claim_private_key_index: Optional[int] = None
    refund_private_key_index: Optional[int] = None
    address: Optional[str] = None
    refund_address: Optional[str] = None
    lockup_address: Optional[str] = None
    claim_tx: Optional[str] = None
    refund_tx: Optional[str] = None
    lockup_tx: Optional[str] = None
    invoice: Optional[str] = None
    accept_zero_conf: Optional[bool] = None
    expected_amount: Optional[int] = None
    onchain_amount: Optional[int] = None
    timeout_block_height: Optional[int] = None
    claim_details: Optional[Dict[str, Any]] = field(default=None, compare=False)
    lockup_details: Optional[Dict[str, Any]] = field(default=None, compare=False)
    referral_id: Optional[str] = None
    chain_id: Optional[int] = None


def normalize_user_id(user_id: str) -> str:
    """User ids are EVM addresses; stored and matched lower-case."""
    return str(user_id).lower()


# only these fields are ever written back by the sync
TRACKED_FIELDS = ("status", "claim_tx", "refund_tx")


@dataclass(frozen=True)
class SwapPatch:
    """Correction proposed by a fixer. None fields are left as they are."""
    status: Optional[str] = None
    claim_tx: Optional[str] = None
    refund_tx: Optional[str] = None

    def is_empty(self) -> bool:
        return self.status is None and self.claim_tx is None and self.refund_tx is None

    def apply(self, swap: Swap) -> Swap:
        changes = {k: getattr(self, k) for k in TRACKED_FIELDS if getattr(self, k) is not None}
        return replace(swap, **changes) if changes else swap


@dataclass(frozen=True)
class SwapDelta:
    id: str
    status: str
    claim_tx: Optional[str]
    refund_tx: Optional[str]

    @classmethod
    def from_swap(cls, swap: Swap) -> "SwapDelta":
        return cls(id=swap.id, status=swap.status, claim_tx=swap.claim_tx, refund_tx=swap.refund_tx)


def tracked_state(swap: Swap) -> tuple:
    return tuple(getattr(swap, k) for k in TRACKED_FIELDS)


def diff_swaps(original: Sequence[Swap], resolved: Sequence[Swap]) -> List[SwapDelta]:
    """
    Pairwise field-level diff over TRACKED_FIELDS.
    Object identity is irrelevant: a rebuilt swap with the same values is not a change.
    """
    if len(original) != len(resolved):
        raise ValueError(f"length mismatch: {len(original)} original vs {len(resolved)} resolved")
    deltas: List[SwapDelta] = []
    for before, after in zip(original, resolved):
        if before.id != after.id:
            raise ValueError(f"order mismatch: {before.id} vs {after.id}")
        if tracked_state(before) != tracked_state(after):
            deltas.append(SwapDelta.from_swap(after))
    return deltas


@dataclass(frozen=True)
class SwapPredicate:
    """Selection over a user's swaps: status in `statuses`, type not in `exclude_types`."""
    statuses: Optional[FrozenSet[str]] = None
    exclude_types: FrozenSet[str] = frozenset()

    def matches(self, swap: Swap) -> bool:
        if self.statuses is not None and swap.status not in self.statuses:
            return False
        return swap.type not in self.exclude_types


@dataclass
class SwapSummary:
    total_swaps: int
    total_success_swaps: int
    total_pending_swaps: int
    total_expired_swaps: int
    refundable_swaps: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalSwaps": self.total_swaps,
            "totalSuccessSwaps": self.total_success_swaps,
            "totalPendingSwaps": self.total_pending_swaps,
            "totalExpiredSwaps": self.total_expired_swaps,
            "refundableSwaps": self.refundable_swaps,
        }
