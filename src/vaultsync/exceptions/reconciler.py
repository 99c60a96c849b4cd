from typing import TYPE_CHECKING

from vaultsync.exceptions.base import VaultSyncError

if TYPE_CHECKING:
    from vaultsync.events import VaultEvent


class ReconciliationError(VaultSyncError):
    """
    Raised when an event could not be applied. None of the event's writes are kept.
    """

    def __init__(self, event: "VaultEvent") -> None:
        self.event = event
        super().__init__(
            message=f"Failed to apply {type(event).__name__} at block {event.block_number}, "
            f"tx {event.transaction_hash.to_0x_hex()}, log index {event.log_index}"
        )


class UnknownEventError(VaultSyncError):
    """
    Raised when the reconciler has no handler for an event type.
    """

    def __init__(self, event_type: type) -> None:
        self.event_type = event_type
        super().__init__(message=f"No handler for event type {event_type.__name__}")
