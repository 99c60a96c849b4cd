"""
Deterministic primary keys for vault aggregates and log rows.

Every key is built from the identifiers of its parents, so the same logical entity always resolves
to the same row and a redelivered event resolves to the log row it already created.
"""

from typing import TypeAlias

from hexbytes import HexBytes

KEY_SEPARATOR = "-"

KeyPart: TypeAlias = str | int | HexBytes | None


def _format_part(part: KeyPart) -> str:
    if isinstance(part, HexBytes):
        return part.to_0x_hex()
    return "" if part is None else str(part)


def make_id(*parts: KeyPart) -> str:
    """
    Join the identifier parts into a composite key, skipping `None` and empty parts.
    """

    return KEY_SEPARATOR.join(
        formatted for part in parts if (formatted := _format_part(part))
    )


def make_log_id(entity_key: str, transaction_hash: HexBytes, log_index: int) -> str:
    """
    Key for an immutable log row, unique to one (entity, transaction, log position).
    """

    return make_id(entity_key, transaction_hash, log_index)


def lender_id(vault: str, investor: str) -> str:
    return make_id(vault, investor)


def borrower_id(vault: str, borrower: str) -> str:
    return make_id(vault, borrower)


def deposit_request_id(vault: str, request_id: int) -> str:
    return make_id(vault, request_id)


def withdraw_request_id(vault: str, request_id: int) -> str:
    # Deposit and withdraw request ids share one numeric space on-chain
    return make_id(vault, "withdraw", request_id)


def admin_withdrawal_id(vault: str, transaction_hash: HexBytes, log_index: int) -> str:
    return make_log_id(make_id(vault, "admin"), transaction_hash, log_index)


def loan_id(vault: str, loan_number: int) -> str:
    return make_id(vault, loan_number)


def role_id(vault: str, role_hash: HexBytes) -> str:
    return make_id(vault, role_hash)


def role_member_id(role_key: str, account: str) -> str:
    return make_id(role_key, account)


def role_event_id(
    role_key: str,
    event_type: str,
    transaction_hash: HexBytes,
    log_index: int,
) -> str:
    return make_log_id(make_id(role_key, event_type), transaction_hash, log_index)


def processed_event_id(vault: str, transaction_hash: HexBytes, log_index: int) -> str:
    return make_log_id(vault, transaction_hash, log_index)
