from vaultsync.exceptions.base import VaultSyncError


class LogFetchTimeout(VaultSyncError):
    """
    Raised when a block range could not be fetched within the allowed number of attempts.
    """

    def __init__(self, start_block: int, end_block: int, max_retries: int) -> None:
        self.start_block = start_block
        self.end_block = end_block
        self.max_retries = max_retries
        super().__init__(
            message=f"Timed out fetching logs for blocks {start_block}-{end_block} after "
            f"{max_retries} tries."
        )
