from sqlalchemy import Index
from sqlalchemy.orm import Mapped, relationship

from .base import Address, Base, BigInteger, BlockNumber, Timestamp, TransactionHash
from .types import (
    ForeignKeyBorrowerId,
    ForeignKeyLenderId,
    ForeignKeyLoanId,
    ForeignKeyVaultId,
    PrimaryKeyId,
)


class LendingVaultTable(Base):
    __tablename__ = "lending_vaults"

    # The vault address
    id: Mapped[PrimaryKeyId]

    total_assets: Mapped[BigInteger]
    total_supply: Mapped[BigInteger]
    total_unrealized_interest: Mapped[BigInteger]
    total_outstanding_loans: Mapped[BigInteger]
    total_loans_issued: Mapped[int]
    total_interest_earned: Mapped[BigInteger]
    total_defaulted_amount: Mapped[BigInteger]
    total_written_off: Mapped[BigInteger]
    active_loans_count: Mapped[int]
    defaulted_loans_count: Mapped[int]
    repaid_loans_count: Mapped[int]
    total_deposited: Mapped[BigInteger]
    total_withdrawn: Mapped[BigInteger]

    initial_share_price: Mapped[str]
    current_share_price: Mapped[str]
    average_interest_rate: Mapped[str]
    utilization_rate: Mapped[str]

    kyc_enabled: Mapped[bool]
    kyc_registry: Mapped[Address | None]

    created_at: Mapped[Timestamp]
    last_update_at: Mapped[Timestamp]

    # Relationships
    lenders: Mapped[list["LenderTable"]] = relationship(
        "LenderTable",
        back_populates="vault",
    )
    borrowers: Mapped[list["BorrowerTable"]] = relationship(
        "BorrowerTable",
        back_populates="vault",
    )
    loans: Mapped[list["LoanTable"]] = relationship(
        "LoanTable",
        back_populates="vault",
    )


class LenderTable(Base):
    __tablename__ = "lenders"

    id: Mapped[PrimaryKeyId]
    vault_id: Mapped[ForeignKeyVaultId]
    address: Mapped[Address]

    shares: Mapped[BigInteger]
    deposited: Mapped[BigInteger]
    withdrawn: Mapped[BigInteger]
    realized_gains: Mapped[BigInteger]
    unrealized_gains: Mapped[BigInteger]
    total_interest_earned: Mapped[BigInteger]
    current_value: Mapped[BigInteger]

    last_interest_update: Mapped[Timestamp]
    first_deposit_time: Mapped[Timestamp | None]
    last_activity_time: Mapped[Timestamp]
    deposit_count: Mapped[int]
    withdraw_count: Mapped[int]

    # Relationships
    vault: Mapped["LendingVaultTable"] = relationship(
        "LendingVaultTable",
        back_populates="lenders",
    )


Index(
    "ix_lenders_address_vault",
    LenderTable.address,
    LenderTable.vault_id,
    unique=True,
)


class BorrowerTable(Base):
    __tablename__ = "borrowers"

    id: Mapped[PrimaryKeyId]
    vault_id: Mapped[ForeignKeyVaultId]
    address: Mapped[Address]

    total_borrowed: Mapped[BigInteger]
    total_repaid: Mapped[BigInteger]
    total_interest_paid: Mapped[BigInteger]
    total_principal_paid: Mapped[BigInteger]
    current_outstanding: Mapped[BigInteger]
    current_interest_accrued: Mapped[BigInteger]

    total_loans_count: Mapped[int]
    active_loans_count: Mapped[int]
    repaid_loans_count: Mapped[int]
    defaulted_loans_count: Mapped[int]

    average_interest_rate: Mapped[str]
    on_time_payment_rate: Mapped[str]
    default_rate: Mapped[str]

    kyc_verified: Mapped[bool]
    kyc_expiration: Mapped[Timestamp | None]
    first_loan_time: Mapped[Timestamp | None]
    last_activity_time: Mapped[Timestamp]

    # Relationships
    vault: Mapped["LendingVaultTable"] = relationship(
        "LendingVaultTable",
        back_populates="borrowers",
    )
    loans: Mapped[list["LoanTable"]] = relationship(
        "LoanTable",
        back_populates="borrower",
    )


Index(
    "ix_borrowers_address_vault",
    BorrowerTable.address,
    BorrowerTable.vault_id,
    unique=True,
)


class DepositRequestTable(Base):
    __tablename__ = "deposit_requests"

    id: Mapped[PrimaryKeyId]
    vault_id: Mapped[ForeignKeyVaultId]
    lender_id: Mapped[ForeignKeyLenderId]
    request_id: Mapped[BigInteger]
    receiver: Mapped[Address]

    assets_requested: Mapped[BigInteger]
    assets_processed: Mapped[BigInteger]
    shares_issued: Mapped[BigInteger]
    status: Mapped[str]
    fully_executed: Mapped[bool]

    request_time: Mapped[Timestamp]
    last_execute_time: Mapped[Timestamp | None]
    execution_share_price: Mapped[str | None]


class DepositExecutionTable(Base):
    """
    Immutable record of one (possibly partial) fill of a deposit request.
    """

    __tablename__ = "deposit_executions"

    id: Mapped[PrimaryKeyId]
    # Not a foreign key: an execution may be observed without its request
    request_id: Mapped[str]
    vault_id: Mapped[ForeignKeyVaultId]

    assets_processed: Mapped[BigInteger]
    shares_issued: Mapped[BigInteger]
    fully_executed: Mapped[bool]

    tx_hash: Mapped[TransactionHash]
    block_number: Mapped[BlockNumber]
    timestamp: Mapped[Timestamp]


class WithdrawRequestTable(Base):
    __tablename__ = "withdraw_requests"

    id: Mapped[PrimaryKeyId]
    vault_id: Mapped[ForeignKeyVaultId]
    lender_id: Mapped[ForeignKeyLenderId]
    request_id: Mapped[BigInteger]
    receiver: Mapped[Address]

    shares_requested: Mapped[BigInteger]
    shares_processed: Mapped[BigInteger]
    assets_returned: Mapped[BigInteger]
    status: Mapped[str]
    fully_executed: Mapped[bool]

    request_time: Mapped[Timestamp]
    last_execute_time: Mapped[Timestamp | None]
    execution_share_price: Mapped[str | None]


class WithdrawExecutionTable(Base):
    """
    Immutable record of one (possibly partial) fill of a withdraw request.
    """

    __tablename__ = "withdraw_executions"

    id: Mapped[PrimaryKeyId]
    request_id: Mapped[str]
    vault_id: Mapped[ForeignKeyVaultId]

    shares_processed: Mapped[BigInteger]
    assets_returned: Mapped[BigInteger]
    fee_shares: Mapped[BigInteger | None]
    fully_executed: Mapped[bool]

    tx_hash: Mapped[TransactionHash]
    block_number: Mapped[BlockNumber]
    timestamp: Mapped[Timestamp]


class AdminWithdrawalTable(Base):
    __tablename__ = "admin_withdrawals"

    id: Mapped[PrimaryKeyId]
    vault_id: Mapped[ForeignKeyVaultId]

    shareholder: Mapped[Address]
    receiver: Mapped[Address]
    shares: Mapped[BigInteger]
    assets: Mapped[BigInteger]
    fee_shares: Mapped[BigInteger]
    fee_recipient: Mapped[Address | None]

    tx_hash: Mapped[TransactionHash]
    block_number: Mapped[BlockNumber]
    timestamp: Mapped[Timestamp]


class LoanTable(Base):
    __tablename__ = "loans"

    id: Mapped[PrimaryKeyId]
    vault_id: Mapped[ForeignKeyVaultId]
    loan_id: Mapped[BigInteger]
    borrower_id: Mapped[ForeignKeyBorrowerId]

    principal: Mapped[BigInteger]
    interest_rate_bps: Mapped[int]
    interest_type: Mapped[str]
    compounding_period: Mapped[str]
    start_timestamp: Mapped[Timestamp]
    maturity_timestamp: Mapped[Timestamp | None]
    grace_period_days: Mapped[int]
    disbursement_timestamp: Mapped[Timestamp]
    min_payment_amount: Mapped[BigInteger]
    late_fee_rate_bps: Mapped[int]

    outstanding_principal: Mapped[BigInteger]
    accrued_interest: Mapped[BigInteger]
    total_interest_paid: Mapped[BigInteger]
    total_principal_paid: Mapped[BigInteger]
    total_paid: Mapped[BigInteger]
    total_owed: Mapped[BigInteger]
    status: Mapped[str]

    last_interest_update_timestamp: Mapped[Timestamp]
    last_payment_timestamp: Mapped[Timestamp | None]
    default_timestamp: Mapped[Timestamp | None]
    is_late: Mapped[bool]
    days_late: Mapped[int]
    current_interest_rate: Mapped[int]
    payment_count: Mapped[int]
    late_payment_count: Mapped[int]

    # Relationships
    vault: Mapped["LendingVaultTable"] = relationship(
        "LendingVaultTable",
        back_populates="loans",
    )
    borrower: Mapped["BorrowerTable"] = relationship(
        "BorrowerTable",
        back_populates="loans",
    )
    payments: Mapped[list["LoanPaymentTable"]] = relationship(
        "LoanPaymentTable",
        back_populates="loan",
    )


class LoanPaymentTable(Base):
    """
    Immutable record of a single loan payment, with the remaining balances reported by the vault
    contract at the time of payment.
    """

    __tablename__ = "loan_payments"

    id: Mapped[PrimaryKeyId]
    loan_id: Mapped[ForeignKeyLoanId]
    borrower_id: Mapped[ForeignKeyBorrowerId]
    payer: Mapped[Address]

    total_payment: Mapped[BigInteger]
    interest_paid: Mapped[BigInteger]
    principal_paid: Mapped[BigInteger]
    late_fees_paid: Mapped[BigInteger]
    remaining_principal: Mapped[BigInteger]
    remaining_interest: Mapped[BigInteger]

    timestamp: Mapped[Timestamp]
    days_late: Mapped[int]
    was_late: Mapped[bool]
    tx_hash: Mapped[TransactionHash]
    block_number: Mapped[BlockNumber]

    # Relationships
    loan: Mapped["LoanTable"] = relationship(
        "LoanTable",
        back_populates="payments",
    )
