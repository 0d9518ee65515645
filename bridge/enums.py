# bridge/enums.py
from enum import Enum

class SwapType(str, Enum):
    SUBMARINE = "submarine"
    REVERSE = "reverse"
    CHAIN = "chain"

class SwapStatus(str, Enum):
    # pending
    INVOICE_SET = "invoice.set"
    INVOICE_PENDING = "invoice.pending"
    SWAP_CREATED = "swap.created"
    TRANSACTION_CONFIRMED = "transaction.confirmed"
    TRANSACTION_MEMPOOL = "transaction.mempool"
    TRANSACTION_ZERO_CONF_REJECTED = "transaction.zeroconf.rejected"
    TRANSACTION_CLAIM_PENDING = "transaction.claim.pending"
    TRANSACTION_SERVER_MEMPOOL = "transaction.server.mempool"
    TRANSACTION_SERVER_CONFIRMED = "transaction.server.confirmed"
    # failed
    SWAP_EXPIRED = "swap.expired"
    SWAP_REFUNDED = "swap.refunded"
    SWAP_WAITING_FOR_REFUND = "swap.waitingForRefund"
    INVOICE_EXPIRED = "invoice.expired"
    INVOICE_FAILED_TO_PAY = "invoice.failedToPay"
    TRANSACTION_FAILED = "transaction.failed"
    TRANSACTION_LOCKUP_FAILED = "transaction.lockupFailed"
    TRANSACTION_REFUNDED = "transaction.refunded"
    # success
    INVOICE_SETTLED = "invoice.settled"
    TRANSACTION_CLAIMED = "transaction.claimed"
    # local, never reported by the status service
    USER_REFUNDED = "local.userRefunded"
    USER_CLAIMED = "local.userClaimed"
    USER_ABANDONED = "local.userAbandoned"
    USER_CLAIMABLE = "local.userClaimable"
    USER_REFUNDABLE = "local.userRefundable"


SWAP_STATUS_PENDING = frozenset({
    SwapStatus.INVOICE_SET.value,
    SwapStatus.INVOICE_PENDING.value,
    SwapStatus.SWAP_CREATED.value,
    SwapStatus.TRANSACTION_CONFIRMED.value,
    SwapStatus.TRANSACTION_MEMPOOL.value,
    SwapStatus.TRANSACTION_ZERO_CONF_REJECTED.value,
    SwapStatus.TRANSACTION_CLAIM_PENDING.value,
    SwapStatus.TRANSACTION_SERVER_MEMPOOL.value,
    SwapStatus.TRANSACTION_SERVER_CONFIRMED.value,
})

SWAP_STATUS_SUCCESS = frozenset({
    SwapStatus.INVOICE_SETTLED.value,
    SwapStatus.TRANSACTION_CLAIMED.value,
    SwapStatus.USER_CLAIMED.value,
})
