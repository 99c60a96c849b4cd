from typing import Any

import pytest
from hexbytes import HexBytes
from web3.exceptions import Web3Exception

from vaultsync.exceptions import LogFetchTimeout, VaultSyncValueError
from vaultsync.functions import (
    _increase_working_span,
    _reduce_working_span,
    fetch_logs_retrying,
    get_number_for_block_identifier,
    saturating_sub,
)


class FakeEth:
    def __init__(self) -> None:
        self.requested_ranges: list[tuple[int, int]] = []

    def get_logs(self, filter_params: dict[str, Any]) -> list[dict[str, Any]]:
        start, end = filter_params["fromBlock"], filter_params["toBlock"]
        self.requested_ranges.append((start, end))
        return [{"blockNumber": block, "logIndex": 0} for block in range(start, end + 1, 50)]


class FakeWeb3:
    def __init__(self) -> None:
        self.eth = FakeEth()


class UnavailableEth(FakeEth):
    def get_logs(self, filter_params: dict[str, Any]) -> list[dict[str, Any]]:
        self.requested_ranges.append((filter_params["fromBlock"], filter_params["toBlock"]))
        msg = "query timeout exceeded"
        raise Web3Exception(msg)


@pytest.mark.parametrize(
    ("minuend", "subtrahend", "expected"),
    [
        (10, 3, 7),
        (3, 3, 0),
        (3, 10, 0),
        (0, 1, 0),
        (2**256 - 1, 1, 2**256 - 2),
    ],
)
def test_saturating_sub(minuend: int, subtrahend: int, expected: int):
    assert saturating_sub(minuend, subtrahend) == expected


def test_working_span_adjustments():
    assert _reduce_working_span(working_span=100, percent=25) == 75
    assert _reduce_working_span(working_span=1, percent=25) == 1
    assert _increase_working_span(working_span=100, percent=1, ceiling=2_000) == 101
    assert _increase_working_span(working_span=2_000, percent=1, ceiling=2_000) == 2_000


def test_fetch_logs_rejects_inverted_range():
    with pytest.raises(ValueError, match="End block cannot be earlier than start block"):
        fetch_logs_retrying(w3=FakeWeb3(), start_block=10, end_block=9)  # type: ignore[arg-type]


def test_fetch_logs_covers_the_whole_range():
    w3 = FakeWeb3()
    logs = fetch_logs_retrying(
        w3=w3,  # type: ignore[arg-type]
        start_block=1_000,
        end_block=1_349,
        topic_signature=[[HexBytes(b"\x01" * 32)]],
    )

    ranges = w3.eth.requested_ranges
    assert ranges[0][0] == 1_000
    assert ranges[-1][1] == 1_349
    for (_, previous_end), (next_start, _) in zip(ranges, ranges[1:], strict=False):
        assert next_start == previous_end + 1
    assert len(logs) == sum(len(range(start, end + 1, 50)) for start, end in ranges)


def test_get_number_for_block_identifier():
    w3: Any = None
    assert get_number_for_block_identifier(12_345, w3) == 12_345
    assert get_number_for_block_identifier("0x10", w3) == 16
    assert get_number_for_block_identifier(b"\x01\x00", w3) == 256
    with pytest.raises(VaultSyncValueError):
        get_number_for_block_identifier("not a block", w3)


def test_fetch_logs_gives_up_after_max_retries():
    w3 = FakeWeb3()
    w3.eth = UnavailableEth()

    with pytest.raises(LogFetchTimeout) as exc_info:
        fetch_logs_retrying(
            w3=w3,  # type: ignore[arg-type]
            start_block=1_000,
            end_block=5_000,
            max_retries=2,
        )

    assert exc_info.value.start_block == 1_000
    assert exc_info.value.max_retries == 2
    # The span shrinks after each failed attempt
    assert w3.eth.requested_ranges == [(1_000, 1_099), (1_000, 1_074)]
