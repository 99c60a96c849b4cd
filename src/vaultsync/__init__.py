from .checksum_cache import get_checksum_address
from .config import settings
from .version import __version__

# isort: split

from .decoding import VaultEventTopic, decode_vault_event
from .logging import logger
from .metrics import share_price, utilization_rate
from .reconciler import VaultReconciler
from .roles import RoleRegistry, get_role_name
from .store import LedgerStore, SqlLedgerStore

__all__ = (
    "LedgerStore",
    "RoleRegistry",
    "SqlLedgerStore",
    "VaultEventTopic",
    "VaultReconciler",
    "__version__",
    "decode_vault_event",
    "get_checksum_address",
    "get_role_name",
    "logger",
    "settings",
    "share_price",
    "utilization_rate",
)
