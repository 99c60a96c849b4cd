import logging
import os
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

# Point the configuration at a scratch directory before vaultsync creates its config file and
# database on first import
os.environ["VAULTSYNC_CONFIG_DIR"] = tempfile.mkdtemp(prefix="vaultsync-tests-")

import pytest  # noqa: E402
from hexbytes import HexBytes  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from vaultsync.checksum_cache import get_checksum_address  # noqa: E402
from vaultsync.database.models import Base, LendingVaultTable  # noqa: E402
from vaultsync.database.operations import create_session_engine  # noqa: E402
from vaultsync.exceptions import LedgerStoreError  # noqa: E402
from vaultsync.logging import logger  # noqa: E402
from vaultsync.reconciler import VaultReconciler  # noqa: E402
from vaultsync.store import SqlLedgerStore  # noqa: E402

VAULT_ADDRESS = get_checksum_address("0x64Be1630ffD8144EB52896dCD099C805B93328e3")
INVESTOR = get_checksum_address("0x1111111111111111111111111111111111111111")
RECEIVER = get_checksum_address("0x2222222222222222222222222222222222222222")
BORROWER = get_checksum_address("0x3333333333333333333333333333333333333333")
ADMIN = get_checksum_address("0x4444444444444444444444444444444444444444")
MAX_UINT256 = 2**256 - 1


class EventPositions:
    """
    Hands out strictly increasing ledger positions, each in its own transaction.
    """

    def __init__(self, start_block: int = 73_771_073, start_timestamp: int = 1_700_000_000) -> None:
        self.block_number = start_block
        self.block_timestamp = start_timestamp
        self.count = 0

    def __call__(self) -> dict[str, Any]:
        self.count += 1
        self.block_number += 1
        self.block_timestamp += 2
        return {
            "block_number": self.block_number,
            "block_timestamp": self.block_timestamp,
            "transaction_hash": HexBytes(self.count.to_bytes(length=32, byteorder="big")),
            "log_index": self.count % 7,
        }


class FailingVaultUpdateStore(SqlLedgerStore):
    """
    Fails whenever the vault's asset total is written.
    """

    def update(self, row, **values):  # noqa: ANN001, ANN003, ANN201
        if isinstance(row, LendingVaultTable) and "total_assets" in values:
            raise LedgerStoreError(operation="update", table=row.__tablename__, key=row.id)
        return super().update(row, **values)


@pytest.fixture(scope="session", autouse=True)
def _set_vaultsync_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


@contextmanager
def fresh_ledger() -> Generator[tuple[Session, VaultReconciler], None, None]:
    """
    A session bound to a fresh in-memory database holding every vaultsync table, with a reconciler
    for the test vault. Property tests open one per generated example.
    """

    engine = create_session_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    try:
        with Session(engine) as session:
            yield session, VaultReconciler(store=SqlLedgerStore(session), vault=VAULT_ADDRESS)
    finally:
        engine.dispose()


@pytest.fixture
def session() -> Generator[Session, None, None]:
    with fresh_ledger() as (session, _):
        yield session


@pytest.fixture
def store(session: Session) -> SqlLedgerStore:
    return SqlLedgerStore(session)


@pytest.fixture
def reconciler(store: SqlLedgerStore) -> VaultReconciler:
    return VaultReconciler(store=store, vault=VAULT_ADDRESS)


@pytest.fixture
def position() -> EventPositions:
    return EventPositions()
