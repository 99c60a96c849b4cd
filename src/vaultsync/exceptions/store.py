"""
Exceptions raised by ledger store implementations.
"""

from vaultsync.exceptions.base import VaultSyncError


class LedgerStoreError(VaultSyncError):
    """
    Raised when a read or write against the ledger store fails.

    This is fatal for the event being processed. The caller must not advance past the event until
    the operation succeeds on retry.
    """

    def __init__(self, operation: str, table: str, key: str | None = None) -> None:
        self.operation = operation
        self.table = table
        self.key = key
        super().__init__(
            message=f"Ledger store {operation} failed on table {table}"
            + (f" for key {key}" if key is not None else "")
        )
