import pytest

from vaultsync.metrics import share_price, utilization_rate


@pytest.mark.parametrize(
    ("total_assets", "total_supply", "expected"),
    [
        (0, 0, "1.0"),
        (5_000, 0, "1.0"),
        (1_000_000, 1_000_000, "1"),
        (2_000_000, 1_000_000, "2"),
        (1_000_000, 4_000_000, "0.25"),
        (0, 1_000_000, "0"),
    ],
)
def test_share_price(total_assets: int, total_supply: int, expected: str):
    assert share_price(total_assets, total_supply) == expected


@pytest.mark.parametrize(
    ("total_outstanding_loans", "total_assets", "expected"),
    [
        (0, 0, "0"),
        (500, 0, "0"),
        (0, 1_000, "0"),
        (500, 1_000, "50"),
        (1, 8, "12.5"),
        (2_000, 1_000, "200"),
    ],
)
def test_utilization_rate(total_outstanding_loans: int, total_assets: int, expected: str):
    assert utilization_rate(total_outstanding_loans, total_assets) == expected


def test_share_price_keeps_uint256_precision():
    supply = 10**30
    assert share_price(supply + 1, supply) == "1.000000000000000000000000000001"


def test_metrics_never_use_exponent_notation():
    assert share_price(10**40, 1) == "1" + "0" * 40
    assert "E" not in share_price(1, 10**20)
    assert share_price(1, 10**20) == "0.00000000000000000001"
