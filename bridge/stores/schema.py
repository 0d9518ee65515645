# bridge/stores/schema.py
from datetime import datetime
from typing import Optional, Any, Dict

from sqlalchemy import BigInteger, Boolean, DateTime, Index, Integer, JSON, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class BridgeSwapRow(Base):
    __tablename__ = "bridge_swaps"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    asset_send: Mapped[str] = mapped_column(String, nullable=False)
    asset_receive: Mapped[str] = mapped_column(String, nullable=False)
    send_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    receive_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    preimage: Mapped[str] = mapped_column(String, nullable=False)
    preimage_hash: Mapped[str] = mapped_column(String, nullable=False)
    preimage_seed: Mapped[str] = mapped_column(String, nullable=False)
    key_index: Mapped[int] = mapped_column(Integer, nullable=False)
    claim_private_key_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    refund_private_key_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    claim_address: Mapped[str] = mapped_column(String, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    refund_address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    lockup_address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    claim_tx: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    refund_tx: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    lockup_tx: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    invoice: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    accept_zero_conf: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    expected_amount: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    onchain_amount: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    timeout_block_height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    claim_details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    lockup_details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    referral_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    chain_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("bridge_swaps_user_id_idx", "user_id"),
        Index("bridge_swaps_user_id_status_idx", "user_id", "status"),
        Index("bridge_swaps_user_id_date_idx", "user_id", "date"),
        Index("bridge_swaps_status_idx", "status"),
        Index("bridge_swaps_preimage_hash_idx", "preimage_hash"),
    )


# columns shared 1:1 with bridge.models.Swap
SWAP_COLUMNS = tuple(
    c.name for c in BridgeSwapRow.__table__.columns if c.name not in ("created_at", "updated_at")
)
