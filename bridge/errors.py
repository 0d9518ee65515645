# bridge/errors.py
class BridgeError(Exception):
    """Base bridge sync error."""
    def __init__(self, msg: str = "", **ctx):
        super().__init__(msg)
        self.msg = msg
        self.ctx = ctx

    def __str__(self):
        base = self.msg or self.__class__.__name__
        if self.ctx:
            details = ", ".join(f"{k}={v}" for k, v in self.ctx.items())
            return f"{base} [{details}]"
        return base

class StatusSourceError(BridgeError):
    """Swap-status service returned an unusable response."""

class IndexerError(BridgeError):
    """BTC or EVM indexer unreachable or returned an unusable payload."""

class PersistenceError(BridgeError):
    """Swap store write failed; the transaction was rolled back."""

class SwapDecodeError(BridgeError, ValueError):
    """Swap record could not be decoded from its wire form."""
