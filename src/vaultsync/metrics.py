"""
Display metrics derived from a vault's integer totals.

The ledger itself only stores integers. These ratios are recomputed from the current totals after
each mutation and are never adjusted incrementally.
"""

from decimal import Context, Decimal

from vaultsync.constants import INITIAL_SHARE_PRICE, ZERO_UTILIZATION_RATE

# Wide enough to keep every significant digit of a uint128 ratio
DISPLAY_CONTEXT = Context(prec=60)


def _to_display_string(value: Decimal) -> str:
    """
    Render without exponent notation or trailing zeros, e.g. `Decimal("5E+1")` -> "50".
    """

    return format(value.normalize(context=DISPLAY_CONTEXT), "f")


def share_price(total_assets: int, total_supply: int) -> str:
    """
    The value of one share in asset units, as a decimal string. A vault with no shares outstanding
    reports the initial price of "1.0".
    """

    if total_supply == 0:
        return INITIAL_SHARE_PRICE
    return _to_display_string(
        DISPLAY_CONTEXT.divide(Decimal(total_assets), Decimal(total_supply)),
    )


def utilization_rate(total_outstanding_loans: int, total_assets: int) -> str:
    """
    The share of vault assets lent out, as a percentage string. An empty vault reports "0".
    """

    if total_assets == 0:
        return ZERO_UTILIZATION_RATE
    return _to_display_string(
        DISPLAY_CONTEXT.divide(
            DISPLAY_CONTEXT.multiply(Decimal(total_outstanding_loans), Decimal(100)),
            Decimal(total_assets),
        )
    )
