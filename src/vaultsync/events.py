"""Typed event records emitted by a lending vault contract."""

from dataclasses import dataclass
from enum import Enum

from eth_typing import ChecksumAddress
from hexbytes import HexBytes


class RequestStatus(Enum):
    """Lifecycle of a deposit or withdraw request."""

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    COMPLETED = "COMPLETED"


class LoanStatus(Enum):
    """Lifecycle of a loan."""

    ACTIVE = "ACTIVE"
    REPAID = "REPAID"
    DEFAULTED = "DEFAULTED"
    WRITTEN_OFF = "WRITTEN_OFF"


TERMINAL_LOAN_STATUSES = frozenset(
    {
        LoanStatus.REPAID.value,
        LoanStatus.DEFAULTED.value,
        LoanStatus.WRITTEN_OFF.value,
    }
)


class InterestType(Enum):
    SIMPLE = 0
    COMPOUND = 1


class CompoundingPeriod(Enum):
    MONTHLY = 0
    QUARTERLY = 1
    ANNUALLY = 2


class RoleEventType(Enum):
    GRANTED = "GRANTED"
    REVOKED = "REVOKED"
    ADMIN_CHANGED = "ADMIN_CHANGED"


def get_interest_type_name(interest_type: int) -> str:
    return InterestType.SIMPLE.name if interest_type == 0 else InterestType.COMPOUND.name


def get_compounding_period_name(period: int) -> str:
    """
    Map the on-chain compounding period enum to its name. Unknown values fall back to MONTHLY.
    """

    try:
        return CompoundingPeriod(period).name
    except ValueError:
        return CompoundingPeriod.MONTHLY.name


@dataclass(frozen=True, slots=True, kw_only=True)
class VaultEvent:
    """
    Position and timing of a single decoded log. Events are applied in (block_number, log_index)
    order.
    """

    block_number: int
    block_timestamp: int
    transaction_hash: HexBytes
    log_index: int

    @property
    def order_key(self) -> tuple[int, int]:
        return self.block_number, self.log_index


@dataclass(frozen=True, slots=True, kw_only=True)
class DepositRequested(VaultEvent):
    request_id: int
    investor: ChecksumAddress
    receiver: ChecksumAddress
    assets: int


@dataclass(frozen=True, slots=True, kw_only=True)
class DepositExecuted(VaultEvent):
    request_id: int
    investor: ChecksumAddress
    assets_processed: int
    shares_issued: int
    fully_executed: bool


@dataclass(frozen=True, slots=True, kw_only=True)
class WithdrawRequested(VaultEvent):
    request_id: int
    investor: ChecksumAddress
    receiver: ChecksumAddress
    shares: int


@dataclass(frozen=True, slots=True, kw_only=True)
class WithdrawExecuted(VaultEvent):
    request_id: int
    investor: ChecksumAddress
    shares_processed: int
    assets_returned: int
    fully_executed: bool


@dataclass(frozen=True, slots=True, kw_only=True)
class AdminWithdrawal(VaultEvent):
    shareholder: ChecksumAddress
    receiver: ChecksumAddress
    shares: int
    assets: int
    fee_shares: int
    fee_recipient: ChecksumAddress | None


@dataclass(frozen=True, slots=True, kw_only=True)
class LoanIssued(VaultEvent):
    loan_id: int
    borrower: ChecksumAddress
    principal: int
    interest_rate: int  # basis points
    interest_type: int
    compounding_period: int
    timestamp: int


@dataclass(frozen=True, slots=True, kw_only=True)
class LoanPayment(VaultEvent):
    loan_id: int
    payer: ChecksumAddress
    total_payment: int
    interest_paid: int
    principal_paid: int
    remaining_principal: int
    remaining_interest: int
    timestamp: int


@dataclass(frozen=True, slots=True, kw_only=True)
class LoanFullyRepaid(VaultEvent):
    loan_id: int
    total_principal_paid: int
    total_interest_paid: int
    timestamp: int


@dataclass(frozen=True, slots=True, kw_only=True)
class LoanDefaulted(VaultEvent):
    loan_id: int
    outstanding_principal: int
    outstanding_interest: int
    timestamp: int


@dataclass(frozen=True, slots=True, kw_only=True)
class LoanWrittenOff(VaultEvent):
    loan_id: int
    amount_written_off: int
    timestamp: int


@dataclass(frozen=True, slots=True, kw_only=True)
class KycRegistrySet(VaultEvent):
    old_registry: ChecksumAddress
    new_registry: ChecksumAddress


@dataclass(frozen=True, slots=True, kw_only=True)
class KycEnabled(VaultEvent): ...


@dataclass(frozen=True, slots=True, kw_only=True)
class KycDisabled(VaultEvent): ...


@dataclass(frozen=True, slots=True, kw_only=True)
class RoleGranted(VaultEvent):
    role: HexBytes
    account: ChecksumAddress
    sender: ChecksumAddress


@dataclass(frozen=True, slots=True, kw_only=True)
class RoleRevoked(VaultEvent):
    role: HexBytes
    account: ChecksumAddress
    sender: ChecksumAddress


@dataclass(frozen=True, slots=True, kw_only=True)
class RoleAdminChanged(VaultEvent):
    role: HexBytes
    previous_admin_role: HexBytes
    new_admin_role: HexBytes
