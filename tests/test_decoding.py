from typing import Any

import eth_abi.abi
import pytest
from eth_utils.crypto import keccak
from hexbytes import HexBytes

from tests.conftest import ADMIN, BORROWER, INVESTOR, RECEIVER, VAULT_ADDRESS
from vaultsync.constants import DEFAULT_ADMIN_ROLE, ZERO_ADDRESS
from vaultsync.decoding import VaultEventTopic, decode_vault_event
from vaultsync.events import (
    AdminWithdrawal,
    DepositExecuted,
    DepositRequested,
    KycEnabled,
    LoanIssued,
    LoanPayment,
    RoleAdminChanged,
    RoleGranted,
)
from vaultsync.exceptions import UnknownEventTopic

BLOCK_NUMBER = 73_771_073
BLOCK_TIMESTAMP = 1_731_000_000
TX_HASH = HexBytes("0x" + "ab" * 32)
RELAYER_ROLE = HexBytes(keccak(text="RELAYER_ROLE"))


def _topic(value: int | str, type_: str) -> HexBytes:
    return HexBytes(eth_abi.abi.encode([type_], [value]))


def _make_log(
    topic: VaultEventTopic,
    indexed: list[HexBytes],
    data: bytes = b"",
) -> dict[str, Any]:
    return {
        "address": VAULT_ADDRESS,
        "blockNumber": BLOCK_NUMBER,
        "transactionHash": TX_HASH,
        "logIndex": 12,
        "topics": [topic.value, *indexed],
        "data": HexBytes(data),
    }


@pytest.mark.parametrize(
    ("topic", "expected"),
    [
        (
            VaultEventTopic.ROLE_GRANTED,
            "0x2f8788117e7eff1d82e926ec794901d17c78024a50270940304540a733656f0d",
        ),
        (
            VaultEventTopic.ROLE_REVOKED,
            "0xf6391f5c32d9c69d2a47ea670b442974b53935d1edc7fd64eb21e047a839171b",
        ),
        (
            VaultEventTopic.ROLE_ADMIN_CHANGED,
            "0xbd79b86ffe0ab8e8776151514217cd7cacd52c909f66475c3af44e129f0b00ff",
        ),
    ],
)
def test_access_control_topics(topic: VaultEventTopic, expected: str):
    assert topic.value.to_0x_hex() == expected


def test_topics_are_unique():
    assert len({topic.value for topic in VaultEventTopic}) == len(VaultEventTopic)


def test_decode_deposit_requested():
    log = _make_log(
        VaultEventTopic.DEPOSIT_REQUESTED,
        [_topic(5, "uint256"), _topic(INVESTOR, "address"), _topic(RECEIVER, "address")],
        eth_abi.abi.encode(["uint256"], [10**24]),
    )

    event = decode_vault_event(log, BLOCK_TIMESTAMP)  # type: ignore[arg-type]
    assert event == DepositRequested(
        block_number=BLOCK_NUMBER,
        block_timestamp=BLOCK_TIMESTAMP,
        transaction_hash=TX_HASH,
        log_index=12,
        request_id=5,
        investor=INVESTOR,
        receiver=RECEIVER,
        assets=10**24,
    )


def test_decode_deposit_executed():
    log = _make_log(
        VaultEventTopic.DEPOSIT_EXECUTED,
        [_topic(5, "uint256"), _topic(INVESTOR.lower(), "address")],
        eth_abi.abi.encode(["uint256", "uint256", "bool"], [1_000, 990, True]),
    )

    event = decode_vault_event(log, BLOCK_TIMESTAMP)  # type: ignore[arg-type]
    assert isinstance(event, DepositExecuted)
    assert event.request_id == 5
    assert event.investor == INVESTOR
    assert event.assets_processed == 1_000
    assert event.shares_issued == 990
    assert event.fully_executed is True
    assert event.order_key == (BLOCK_NUMBER, 12)


@pytest.mark.parametrize(
    ("fee_recipient", "expected"),
    [
        (ZERO_ADDRESS, None),
        (ADMIN, ADMIN),
    ],
)
def test_decode_admin_withdrawal(fee_recipient: str, expected: str | None):
    log = _make_log(
        VaultEventTopic.ADMIN_WITHDRAWAL,
        [_topic(INVESTOR, "address"), _topic(RECEIVER, "address")],
        eth_abi.abi.encode(
            ["uint256", "uint256", "uint256", "address"],
            [300, 310, 3, fee_recipient],
        ),
    )

    event = decode_vault_event(log, BLOCK_TIMESTAMP)  # type: ignore[arg-type]
    assert isinstance(event, AdminWithdrawal)
    assert event.shareholder == INVESTOR
    assert event.receiver == RECEIVER
    assert event.shares == 300
    assert event.assets == 310
    assert event.fee_shares == 3
    assert event.fee_recipient == expected


def test_decode_loan_issued():
    log = _make_log(
        VaultEventTopic.LOAN_ISSUED,
        [_topic(7, "uint256"), _topic(BORROWER, "address")],
        eth_abi.abi.encode(
            ["uint256", "uint256", "uint8", "uint8", "uint256"],
            [50_000, 1_250, 1, 2, 1_731_000_123],
        ),
    )

    event = decode_vault_event(log, BLOCK_TIMESTAMP)  # type: ignore[arg-type]
    assert isinstance(event, LoanIssued)
    assert event.loan_id == 7
    assert event.borrower == BORROWER
    assert event.principal == 50_000
    assert event.interest_rate == 1_250
    assert event.interest_type == 1
    assert event.compounding_period == 2
    assert event.timestamp == 1_731_000_123


def test_decode_loan_payment():
    log = _make_log(
        VaultEventTopic.LOAN_PAYMENT,
        [_topic(7, "uint256"), _topic(BORROWER, "address")],
        eth_abi.abi.encode(["uint256"] * 6, [200, 50, 150, 850, 0, 1_731_000_456]),
    )

    event = decode_vault_event(log, BLOCK_TIMESTAMP)  # type: ignore[arg-type]
    assert isinstance(event, LoanPayment)
    assert event.payer == BORROWER
    assert event.total_payment == 200
    assert event.interest_paid == 50
    assert event.principal_paid == 150
    assert event.remaining_principal == 850
    assert event.remaining_interest == 0
    assert event.timestamp == 1_731_000_456


def test_decode_role_granted():
    log = _make_log(
        VaultEventTopic.ROLE_GRANTED,
        [RELAYER_ROLE, _topic(INVESTOR, "address"), _topic(ADMIN, "address")],
    )

    event = decode_vault_event(log, BLOCK_TIMESTAMP)  # type: ignore[arg-type]
    assert isinstance(event, RoleGranted)
    assert event.role == RELAYER_ROLE
    assert event.account == INVESTOR
    assert event.sender == ADMIN


def test_decode_role_admin_changed():
    log = _make_log(
        VaultEventTopic.ROLE_ADMIN_CHANGED,
        [RELAYER_ROLE, DEFAULT_ADMIN_ROLE, HexBytes(keccak(text="ADMIN_ROLE"))],
    )

    event = decode_vault_event(log, BLOCK_TIMESTAMP)  # type: ignore[arg-type]
    assert isinstance(event, RoleAdminChanged)
    assert event.role == RELAYER_ROLE
    assert event.previous_admin_role == DEFAULT_ADMIN_ROLE
    assert event.new_admin_role == HexBytes(keccak(text="ADMIN_ROLE"))


def test_decode_kyc_enabled():
    event = decode_vault_event(
        _make_log(VaultEventTopic.KYC_ENABLED, []),  # type: ignore[arg-type]
        BLOCK_TIMESTAMP,
    )
    assert event == KycEnabled(
        block_number=BLOCK_NUMBER,
        block_timestamp=BLOCK_TIMESTAMP,
        transaction_hash=TX_HASH,
        log_index=12,
    )


def test_decode_unknown_topic():
    log = _make_log(VaultEventTopic.KYC_ENABLED, [])
    log["topics"] = [HexBytes(keccak(text="Transfer(address,address,uint256)"))]

    with pytest.raises(UnknownEventTopic):
        decode_vault_event(log, BLOCK_TIMESTAMP)  # type: ignore[arg-type]
