__all__ = (
    "DEFAULT_ADMIN_ROLE",
    "INITIAL_SHARE_PRICE",
    "ZERO_ADDRESS",
    "ZERO_UTILIZATION_RATE",
)

from eth_typing import ChecksumAddress
from hexbytes import HexBytes

from vaultsync.checksum_cache import get_checksum_address

ZERO_ADDRESS: ChecksumAddress = get_checksum_address("0x0000000000000000000000000000000000000000")

# AccessControl reserves the all-zero role identifier for the default admin role
DEFAULT_ADMIN_ROLE = HexBytes(b"\x00" * 32)

# Display values used while a vault holds no shares or no assets
INITIAL_SHARE_PRICE = "1.0"
ZERO_UTILIZATION_RATE = "0"
