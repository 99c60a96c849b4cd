from sqlalchemy import Index
from sqlalchemy.orm import Mapped

from .base import Address, Base, BlockNumber, Timestamp, TransactionHash
from .types import PrimaryKeyId, PrimaryKeyInt


class TrackedVaultTable(Base):
    """
    A vault selected for indexing, with the last block whose events have been fully applied.
    """

    __tablename__ = "tracked_vaults"

    id: Mapped[PrimaryKeyInt]
    chain_id: Mapped[int]
    address: Mapped[Address]
    active: Mapped[bool]
    last_update_block: Mapped[int | None]


Index(
    "ix_tracked_vaults_address_chain",
    TrackedVaultTable.address,
    TrackedVaultTable.chain_id,
    unique=True,
)


class ProcessedEventTable(Base):
    """
    One row per event applied to a vault, keyed on (vault, transaction hash, log index). A
    redelivered event finds its row here and is skipped.
    """

    __tablename__ = "processed_events"

    id: Mapped[PrimaryKeyId]
    vault_id: Mapped[Address]
    event_name: Mapped[str]
    tx_hash: Mapped[TransactionHash]
    log_index: Mapped[int]
    block_number: Mapped[BlockNumber]
    timestamp: Mapped[Timestamp]
