from vaultsync.exceptions.base import VaultSyncError, VaultSyncTypeError, VaultSyncValueError
from vaultsync.exceptions.decoding import UnknownEventTopic
from vaultsync.exceptions.fetching import LogFetchTimeout
from vaultsync.exceptions.reconciler import ReconciliationError, UnknownEventError
from vaultsync.exceptions.store import LedgerStoreError

from . import database, decoding, fetching, reconciler, store

__all__ = (
    "LedgerStoreError",
    "LogFetchTimeout",
    "ReconciliationError",
    "UnknownEventError",
    "UnknownEventTopic",
    "VaultSyncError",
    "VaultSyncTypeError",
    "VaultSyncValueError",
    "database",
    "decoding",
    "fetching",
    "reconciler",
    "store",
)
