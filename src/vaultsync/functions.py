from collections.abc import Sequence

from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from requests.exceptions import RequestException
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from web3 import Web3
from web3._utils.threads import Timeout
from web3.exceptions import Web3Exception
from web3.types import BlockIdentifier, FilterParams, LogReceipt

from vaultsync.exceptions import LogFetchTimeout, VaultSyncValueError
from vaultsync.logging import logger
from vaultsync.types import BlockNumber


def saturating_sub(minuend: int, subtrahend: int) -> int:
    """
    Subtract, flooring the result at zero.
    """

    return minuend - subtrahend if minuend > subtrahend else 0


def _increase_working_span(working_span: int, percent: int, ceiling: int) -> int:
    return min(ceiling, int(working_span * (100 + percent) / 100))


def _reduce_working_span(working_span: int, percent: int) -> int:
    # Never shrink below a single block
    return max(1, int(working_span * (100 - percent) / 100))


INITIAL_LOG_SPAN = 100

# Public Avalanche C-Chain endpoints reject eth_getLogs requests spanning more blocks than this
DEFAULT_MAX_BLOCKS_PER_REQUEST = 2_000


def fetch_logs_retrying(
    w3: Web3,
    start_block: BlockNumber,
    end_block: BlockNumber,
    *,
    address: Sequence[ChecksumAddress] | None = None,
    topic_signature: Sequence[Sequence[HexBytes] | HexBytes] | None = None,
    max_retries: int = 10,
    max_blocks_per_request: int = DEFAULT_MAX_BLOCKS_PER_REQUEST,
) -> list[LogReceipt]:
    """
    Fetch the logs matching the address and topic filters, inclusive of both ends of the block
    range. Logs are returned in the order the node delivers them.

    Requests begin with a span of 100 blocks. Each failed request shrinks the span by a quarter
    before it is retried, and each successful request widens it by 1% up to
    `max_blocks_per_request`.
    """

    if end_block < start_block:
        msg = "End block cannot be earlier than start block."
        raise ValueError(msg)

    span = INITIAL_LOG_SPAN
    chunk_start = start_block
    chunk_end = min(end_block, chunk_start + span - 1)
    event_logs: list[LogReceipt] = []

    while chunk_start <= end_block:
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(max_retries),
                wait=wait_exponential_jitter(),
                retry=retry_if_exception_type((Timeout, Web3Exception, RequestException)),
            ):
                with attempt:
                    chunk_end = min(end_block, chunk_start + span - 1)
                    try:
                        chunk_logs = w3.eth.get_logs(
                            FilterParams(
                                address=list(address or []),
                                fromBlock=chunk_start,
                                toBlock=chunk_end,
                                topics=list(topic_signature or []),
                            )
                        )
                    except Exception:
                        span = _reduce_working_span(working_span=span, percent=25)
                        logger.debug(
                            f"Attempt {attempt.retry_state.attempt_number} failed for blocks "
                            f"{chunk_start}-{chunk_end}, retrying with a span of {span}"
                        )
                        raise
        except RetryError:
            raise LogFetchTimeout(
                start_block=chunk_start,
                end_block=chunk_end,
                max_retries=max_retries,
            ) from None

        logger.debug(f"Fetched {len(chunk_logs)} logs for blocks {chunk_start}-{chunk_end}")
        event_logs.extend(chunk_logs)
        span = _increase_working_span(
            working_span=span,
            percent=1,
            ceiling=max_blocks_per_request,
        )
        chunk_start = chunk_end + 1

    return event_logs


def get_number_for_block_identifier(identifier: BlockIdentifier | None, w3: Web3) -> BlockNumber:
    """
    Resolve a block identifier to a block number. Tags are looked up on the node, hex strings and
    big-endian bytes are converted locally, and None resolves to the chain tip.
    """

    match identifier:
        case None:
            return w3.eth.get_block_number()
        case int():
            return identifier
        case "latest" | "earliest" | "pending" | "safe" | "finalized":
            block_number = w3.eth.get_block(identifier).get("number")
            if block_number is None:
                raise VaultSyncValueError(message=f"The node has no number for block {identifier}")
            return block_number
        case str():
            try:
                return int(identifier, 16)
            except ValueError:
                pass
        case bytes():
            return int.from_bytes(identifier, byteorder="big")

    raise VaultSyncValueError(message=f"Invalid block identifier {identifier!r}")
