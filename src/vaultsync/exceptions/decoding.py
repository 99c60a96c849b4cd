from hexbytes import HexBytes

from vaultsync.exceptions.base import VaultSyncError


class UnknownEventTopic(VaultSyncError):
    """
    Raised when a log carries a topic that does not belong to the lending vault ABI.
    """

    def __init__(self, topic: HexBytes) -> None:
        self.topic = topic
        super().__init__(message=f"Unknown event topic: {topic.to_0x_hex()}")
