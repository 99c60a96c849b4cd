"""
Decoding of raw vault logs into typed event records.
"""

from enum import Enum
from typing import Any

import eth_abi.abi
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from hexbytes import HexBytes
from web3.types import LogReceipt

from vaultsync.checksum_cache import get_checksum_address
from vaultsync.constants import ZERO_ADDRESS
from vaultsync.events import (
    AdminWithdrawal,
    DepositExecuted,
    DepositRequested,
    KycDisabled,
    KycEnabled,
    KycRegistrySet,
    LoanDefaulted,
    LoanFullyRepaid,
    LoanIssued,
    LoanPayment,
    LoanWrittenOff,
    RoleAdminChanged,
    RoleGranted,
    RoleRevoked,
    VaultEvent,
    WithdrawExecuted,
    WithdrawRequested,
)
from vaultsync.exceptions import UnknownEventTopic


def _event_topic(signature: str) -> HexBytes:
    return HexBytes(keccak(text=signature))


class VaultEventTopic(Enum):
    DEPOSIT_REQUESTED = _event_topic("DepositRequested(uint256,address,address,uint256)")
    DEPOSIT_EXECUTED = _event_topic("DepositExecuted(uint256,address,uint256,uint256,bool)")
    WITHDRAW_REQUESTED = _event_topic("WithdrawRequested(uint256,address,address,uint256)")
    WITHDRAW_EXECUTED = _event_topic("WithdrawExecuted(uint256,address,uint256,uint256,bool)")
    ADMIN_WITHDRAWAL = _event_topic(
        "AdminWithdrawal(address,address,uint256,uint256,uint256,address)"
    )
    LOAN_ISSUED = _event_topic("LoanIssued(uint256,address,uint256,uint256,uint8,uint8,uint256)")
    LOAN_PAYMENT = _event_topic(
        "LoanPayment(uint256,address,uint256,uint256,uint256,uint256,uint256,uint256)"
    )
    LOAN_FULLY_REPAID = _event_topic("LoanFullyRepaid(uint256,uint256,uint256,uint256)")
    LOAN_DEFAULTED = _event_topic("LoanDefaulted(uint256,uint256,uint256,uint256)")
    LOAN_WRITTEN_OFF = _event_topic("LoanWrittenOff(uint256,uint256,uint256)")
    KYC_REGISTRY_SET = _event_topic("KYCRegistrySet(address,address)")
    KYC_ENABLED = _event_topic("KYCEnabled()")
    KYC_DISABLED = _event_topic("KYCDisabled()")
    ROLE_GRANTED = _event_topic("RoleGranted(bytes32,address,address)")
    ROLE_REVOKED = _event_topic("RoleRevoked(bytes32,address,address)")
    ROLE_ADMIN_CHANGED = _event_topic("RoleAdminChanged(bytes32,bytes32,bytes32)")


def _decode_address(input_: bytes) -> ChecksumAddress:
    """
    Get the checksummed address from the given byte stream.
    """

    (address,) = eth_abi.abi.decode(types=["address"], data=input_)
    return get_checksum_address(address)


def _decode_uint(input_: bytes) -> int:
    (value,) = eth_abi.abi.decode(types=["uint256"], data=input_)
    return value


def _decode_data(log: LogReceipt, types: list[str]) -> tuple[Any, ...]:
    return eth_abi.abi.decode(types=types, data=log["data"])


def decode_vault_event(log: LogReceipt, block_timestamp: int) -> VaultEvent:
    """
    Build the typed event record for a vault log. Indexed parameters are read from the topics and
    the remainder from the log data.
    """

    topics = [HexBytes(topic) for topic in log["topics"]]
    try:
        event_topic = VaultEventTopic(topics[0])
    except ValueError:
        raise UnknownEventTopic(topics[0]) from None

    position = {
        "block_number": log["blockNumber"],
        "block_timestamp": block_timestamp,
        "transaction_hash": HexBytes(log["transactionHash"]),
        "log_index": log["logIndex"],
    }

    match event_topic:
        case VaultEventTopic.DEPOSIT_REQUESTED:
            (assets,) = _decode_data(log, ["uint256"])
            return DepositRequested(
                **position,
                request_id=_decode_uint(topics[1]),
                investor=_decode_address(topics[2]),
                receiver=_decode_address(topics[3]),
                assets=assets,
            )
        case VaultEventTopic.DEPOSIT_EXECUTED:
            assets_processed, shares_issued, fully_executed = _decode_data(
                log, ["uint256", "uint256", "bool"]
            )
            return DepositExecuted(
                **position,
                request_id=_decode_uint(topics[1]),
                investor=_decode_address(topics[2]),
                assets_processed=assets_processed,
                shares_issued=shares_issued,
                fully_executed=fully_executed,
            )
        case VaultEventTopic.WITHDRAW_REQUESTED:
            (shares,) = _decode_data(log, ["uint256"])
            return WithdrawRequested(
                **position,
                request_id=_decode_uint(topics[1]),
                investor=_decode_address(topics[2]),
                receiver=_decode_address(topics[3]),
                shares=shares,
            )
        case VaultEventTopic.WITHDRAW_EXECUTED:
            shares_processed, assets_returned, fully_executed = _decode_data(
                log, ["uint256", "uint256", "bool"]
            )
            return WithdrawExecuted(
                **position,
                request_id=_decode_uint(topics[1]),
                investor=_decode_address(topics[2]),
                shares_processed=shares_processed,
                assets_returned=assets_returned,
                fully_executed=fully_executed,
            )
        case VaultEventTopic.ADMIN_WITHDRAWAL:
            shares, assets, fee_shares, fee_recipient = _decode_data(
                log, ["uint256", "uint256", "uint256", "address"]
            )
            fee_recipient = get_checksum_address(fee_recipient)
            return AdminWithdrawal(
                **position,
                shareholder=_decode_address(topics[1]),
                receiver=_decode_address(topics[2]),
                shares=shares,
                assets=assets,
                fee_shares=fee_shares,
                fee_recipient=None if fee_recipient == ZERO_ADDRESS else fee_recipient,
            )
        case VaultEventTopic.LOAN_ISSUED:
            principal, interest_rate, interest_type, compounding_period, timestamp = (
                _decode_data(log, ["uint256", "uint256", "uint8", "uint8", "uint256"])
            )
            return LoanIssued(
                **position,
                loan_id=_decode_uint(topics[1]),
                borrower=_decode_address(topics[2]),
                principal=principal,
                interest_rate=interest_rate,
                interest_type=interest_type,
                compounding_period=compounding_period,
                timestamp=timestamp,
            )
        case VaultEventTopic.LOAN_PAYMENT:
            (
                total_payment,
                interest_paid,
                principal_paid,
                remaining_principal,
                remaining_interest,
                timestamp,
            ) = _decode_data(log, ["uint256"] * 6)
            return LoanPayment(
                **position,
                loan_id=_decode_uint(topics[1]),
                payer=_decode_address(topics[2]),
                total_payment=total_payment,
                interest_paid=interest_paid,
                principal_paid=principal_paid,
                remaining_principal=remaining_principal,
                remaining_interest=remaining_interest,
                timestamp=timestamp,
            )
        case VaultEventTopic.LOAN_FULLY_REPAID:
            total_principal_paid, total_interest_paid, timestamp = _decode_data(
                log, ["uint256"] * 3
            )
            return LoanFullyRepaid(
                **position,
                loan_id=_decode_uint(topics[1]),
                total_principal_paid=total_principal_paid,
                total_interest_paid=total_interest_paid,
                timestamp=timestamp,
            )
        case VaultEventTopic.LOAN_DEFAULTED:
            outstanding_principal, outstanding_interest, timestamp = _decode_data(
                log, ["uint256"] * 3
            )
            return LoanDefaulted(
                **position,
                loan_id=_decode_uint(topics[1]),
                outstanding_principal=outstanding_principal,
                outstanding_interest=outstanding_interest,
                timestamp=timestamp,
            )
        case VaultEventTopic.LOAN_WRITTEN_OFF:
            amount_written_off, timestamp = _decode_data(log, ["uint256"] * 2)
            return LoanWrittenOff(
                **position,
                loan_id=_decode_uint(topics[1]),
                amount_written_off=amount_written_off,
                timestamp=timestamp,
            )
        case VaultEventTopic.KYC_REGISTRY_SET:
            return KycRegistrySet(
                **position,
                old_registry=_decode_address(topics[1]),
                new_registry=_decode_address(topics[2]),
            )
        case VaultEventTopic.KYC_ENABLED:
            return KycEnabled(**position)
        case VaultEventTopic.KYC_DISABLED:
            return KycDisabled(**position)
        case VaultEventTopic.ROLE_GRANTED:
            return RoleGranted(
                **position,
                role=topics[1],
                account=_decode_address(topics[2]),
                sender=_decode_address(topics[3]),
            )
        case VaultEventTopic.ROLE_REVOKED:
            return RoleRevoked(
                **position,
                role=topics[1],
                account=_decode_address(topics[2]),
                sender=_decode_address(topics[3]),
            )
        case VaultEventTopic.ROLE_ADMIN_CHANGED:
            return RoleAdminChanged(
                **position,
                role=topics[1],
                previous_admin_role=topics[2],
                new_admin_role=topics[3],
            )
