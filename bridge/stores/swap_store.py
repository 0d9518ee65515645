# bridge/stores/swap_store.py
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from bridge.errors import PersistenceError
from bridge.models import Swap, SwapDelta, SwapPredicate, normalize_user_id
from bridge.stores.schema import Base, BridgeSwapRow, SWAP_COLUMNS
from utils.logger import logger


def _to_swap(row: BridgeSwapRow) -> Swap:
    return Swap(**{name: getattr(row, name) for name in SWAP_COLUMNS})

def _to_row(swap: Swap) -> BridgeSwapRow:
    row = BridgeSwapRow(**{name: getattr(swap, name) for name in SWAP_COLUMNS})
    row.user_id = normalize_user_id(swap.user_id)
    return row

def _where(user_id: str, predicate: Optional[SwapPredicate]) -> list:
    clauses = [BridgeSwapRow.user_id == normalize_user_id(user_id)]
    if predicate is None:
        return clauses
    if predicate.statuses is not None:
        clauses.append(BridgeSwapRow.status.in_(sorted(predicate.statuses)))
    if predicate.exclude_types:
        clauses.append(BridgeSwapRow.type.not_in(sorted(predicate.exclude_types)))
    return clauses


class SwapStore:
    """
    Persisted bridge swaps. Reads by (user, predicate); writes only
    status / claim_tx / refund_tx, all rows of one call in one transaction.
    """

    def __init__(self, engine: AsyncEngine, logger_=None) -> None:
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        self._log = logger_ or logger.bind(component="SwapStore")

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False) -> "SwapStore":
        return cls(create_async_engine(url, echo=echo))

    async def init_schema(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self._engine.dispose()

    async def query(self, user_id: str, predicate: Optional[SwapPredicate] = None) -> List[Swap]:
        stmt = (
            select(BridgeSwapRow)
            .where(*_where(user_id, predicate))
            .order_by(BridgeSwapRow.date.desc(), BridgeSwapRow.id)
        )
        async with self._sessions() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_to_swap(r) for r in rows]

    async def count(self, user_id: str, predicate: Optional[SwapPredicate] = None) -> int:
        stmt = select(func.count()).select_from(BridgeSwapRow).where(*_where(user_id, predicate))
        async with self._sessions() as session:
            return int((await session.execute(stmt)).scalar_one())

    async def get(self, swap_id: str) -> Optional[Swap]:
        async with self._sessions() as session:
            row = await session.get(BridgeSwapRow, swap_id)
        return _to_swap(row) if row is not None else None

    async def insert(self, swaps: Iterable[Swap]) -> None:
        """Seed rows; creation belongs to the swap initiation flow."""
        try:
            async with self._sessions() as session:
                async with session.begin():
                    session.add_all([_to_row(s) for s in swaps])
        except SQLAlchemyError as e:
            raise PersistenceError(f"insert failed: {e}") from e

    async def update_many(self, deltas: Sequence[SwapDelta]) -> int:
        """
        Apply all deltas atomically. A delta whose id matches no row aborts the
        whole transaction with PersistenceError.
        """
        if not deltas:
            return 0
        try:
            async with self._sessions() as session:
                async with session.begin():
                    for d in deltas:
                        result = await session.execute(
                            update(BridgeSwapRow)
                            .where(BridgeSwapRow.id == d.id)
                            .values(status=d.status, claim_tx=d.claim_tx, refund_tx=d.refund_tx)
                            .execution_options(synchronize_session=False)
                        )
                        if result.rowcount != 1:
                            raise PersistenceError("swap not found", swap_id=d.id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"update failed: {e}") from e

        self._log.debug(f"updated {len(deltas)} swaps: {[d.id for d in deltas]}")
        return len(deltas)
