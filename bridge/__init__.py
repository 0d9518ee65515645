# bridge/__init__.py
"""
Bridge swap status reconciliation package.

Provides:
- Swap domain enums, models and the wire codec
- SwapStore over SQLAlchemy (async)
- Adapters for the swap-status service and the BTC / EVM indexers
- Status fixers, sync phases and the per-user deduplicated sync service
"""
