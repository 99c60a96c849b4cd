"""
Applies decoded vault events to the ledger.

Each event runs inside a single `LedgerStore.atomic()` block and is recorded in the
`processed_events` table, so a failed event leaves no partial writes and a redelivered event is
skipped without touching any aggregate.
"""

from collections.abc import Callable
from typing import Any

from eth_typing import ChecksumAddress

from vaultsync.aggregates import AggregateInitializer
from vaultsync.database.models import (
    AdminWithdrawalTable,
    Base,
    BorrowerTable,
    DepositExecutionTable,
    DepositRequestTable,
    LendingVaultTable,
    LoanPaymentTable,
    LoanTable,
    ProcessedEventTable,
    WithdrawExecutionTable,
    WithdrawRequestTable,
)
from vaultsync.events import (
    TERMINAL_LOAN_STATUSES,
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
    LoanStatus,
    LoanWrittenOff,
    RequestStatus,
    RoleAdminChanged,
    RoleGranted,
    RoleRevoked,
    VaultEvent,
    WithdrawExecuted,
    WithdrawRequested,
    get_compounding_period_name,
    get_interest_type_name,
)
from vaultsync.exceptions import ReconciliationError, UnknownEventError
from vaultsync.functions import saturating_sub
from vaultsync.identity import (
    admin_withdrawal_id,
    deposit_request_id,
    loan_id,
    make_log_id,
    processed_event_id,
    withdraw_request_id,
)
from vaultsync.logging import logger
from vaultsync.metrics import share_price, utilization_rate
from vaultsync.roles import RoleRegistry
from vaultsync.store import LedgerStore


def _next_request_status(current_status: str | None, fully_executed: bool) -> str:
    # A completed request stays completed, even if a later partial fill is observed
    if fully_executed or current_status == RequestStatus.COMPLETED.value:
        return RequestStatus.COMPLETED.value
    return RequestStatus.PARTIAL.value


class VaultReconciler:
    """
    The event state machine for one vault. Events must be applied one at a time, in
    (block number, log index) order.
    """

    def __init__(self, store: LedgerStore, vault: ChecksumAddress) -> None:
        self.store = store
        self.vault = vault
        self.aggregates = AggregateInitializer(store=store, vault=vault)
        self.roles = RoleRegistry(store=store, vault=vault)

        self._handlers: dict[type[VaultEvent], Callable[[Any], None]] = {
            DepositRequested: self._process_deposit_requested,
            DepositExecuted: self._process_deposit_executed,
            WithdrawRequested: self._process_withdraw_requested,
            WithdrawExecuted: self._process_withdraw_executed,
            AdminWithdrawal: self._process_admin_withdrawal,
            LoanIssued: self._process_loan_issued,
            LoanPayment: self._process_loan_payment,
            LoanFullyRepaid: self._process_loan_fully_repaid,
            LoanDefaulted: self._process_loan_defaulted,
            LoanWrittenOff: self._process_loan_written_off,
            KycRegistrySet: self._process_kyc_registry_set,
            KycEnabled: self._process_kyc_enabled,
            KycDisabled: self._process_kyc_disabled,
            RoleGranted: self._process_role_granted,
            RoleRevoked: self._process_role_revoked,
            RoleAdminChanged: self._process_role_admin_changed,
        }

    def apply(self, event: VaultEvent) -> bool:
        """
        Apply the event. Returns False if the event was already applied, True otherwise.

        Raises `ReconciliationError` if any read or write fails, in which case none of the event's
        writes are kept.
        """

        try:
            handler = self._handlers[type(event)]
        except KeyError:
            raise UnknownEventError(type(event)) from None

        key = processed_event_id(self.vault, event.transaction_hash, event.log_index)

        try:
            with self.store.atomic():
                if self.store.find(ProcessedEventTable, key) is not None:
                    logger.debug(f"Skipping already applied {type(event).__name__} ({key})")
                    return False

                handler(event)

                self.store.insert(
                    ProcessedEventTable(
                        id=key,
                        vault_id=self.vault,
                        event_name=type(event).__name__,
                        tx_hash=event.transaction_hash.to_0x_hex(),
                        log_index=event.log_index,
                        block_number=event.block_number,
                        timestamp=event.block_timestamp,
                    )
                )
        except Exception as exc:
            raise ReconciliationError(event) from exc

        return True

    def _append_log_row(self, row: Base) -> None:
        if self.store.find(type(row), row.id) is not None:
            logger.debug(f"Log row {row.id} already exists in {row.__tablename__}")
            return
        self.store.insert(row)

    def _update_vault_totals(
        self,
        vault: LendingVaultTable,
        timestamp: int,
        **values: Any,
    ) -> None:
        """
        Write the new vault values, then refresh the display metrics from the resulting totals.
        """

        total_assets = values.get("total_assets", vault.total_assets)
        total_supply = values.get("total_supply", vault.total_supply)
        total_outstanding_loans = values.get(
            "total_outstanding_loans", vault.total_outstanding_loans
        )
        self.store.update(
            vault,
            **values,
            current_share_price=share_price(total_assets, total_supply),
            utilization_rate=utilization_rate(total_outstanding_loans, total_assets),
            last_update_at=timestamp,
        )

    def _process_deposit_requested(self, event: DepositRequested) -> None:
        self.aggregates.ensure_vault(event.block_timestamp)
        lender = self.aggregates.ensure_lender(event.investor, event.block_timestamp)

        key = deposit_request_id(self.vault, event.request_id)
        if self.store.find(DepositRequestTable, key) is not None:
            logger.warning(f"Deposit request {key} already exists, ignoring repeated request")
            return

        self.store.insert(
            DepositRequestTable(
                id=key,
                vault_id=self.vault,
                lender_id=lender.id,
                request_id=event.request_id,
                receiver=event.receiver,
                assets_requested=event.assets,
                assets_processed=0,
                shares_issued=0,
                status=RequestStatus.PENDING.value,
                fully_executed=False,
                request_time=event.block_timestamp,
                last_execute_time=None,
                execution_share_price=None,
            )
        )

    def _process_deposit_executed(self, event: DepositExecuted) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)
        lender = self.aggregates.ensure_lender(event.investor, event.block_timestamp)

        request_key = deposit_request_id(self.vault, event.request_id)
        request = self.store.find(DepositRequestTable, request_key)
        if request is None:
            logger.warning(
                f"Deposit request {request_key} not found, recording execution without it"
            )
        else:
            request_values: dict[str, Any] = {
                "assets_processed": request.assets_processed + event.assets_processed,
                "shares_issued": request.shares_issued + event.shares_issued,
                "status": _next_request_status(request.status, event.fully_executed),
                "fully_executed": request.fully_executed or event.fully_executed,
                "last_execute_time": event.block_timestamp,
            }
            if event.shares_issued > 0:
                request_values["execution_share_price"] = share_price(
                    event.assets_processed, event.shares_issued
                )
            self.store.update(request, **request_values)

        self._append_log_row(
            DepositExecutionTable(
                id=make_log_id(request_key, event.transaction_hash, event.log_index),
                request_id=request_key,
                vault_id=self.vault,
                assets_processed=event.assets_processed,
                shares_issued=event.shares_issued,
                fully_executed=event.fully_executed,
                tx_hash=event.transaction_hash.to_0x_hex(),
                block_number=event.block_number,
                timestamp=event.block_timestamp,
            ),
        )

        self.store.update(
            lender,
            shares=lender.shares + event.shares_issued,
            deposited=lender.deposited + event.assets_processed,
            last_activity_time=event.block_timestamp,
            deposit_count=lender.deposit_count + (1 if event.fully_executed else 0),
            first_deposit_time=(
                lender.first_deposit_time
                if lender.first_deposit_time is not None
                else event.block_timestamp
            ),
            current_value=lender.current_value + event.assets_processed,
        )

        self._update_vault_totals(
            vault,
            event.block_timestamp,
            total_assets=vault.total_assets + event.assets_processed,
            total_supply=vault.total_supply + event.shares_issued,
            total_deposited=vault.total_deposited + event.assets_processed,
        )

    def _process_withdraw_requested(self, event: WithdrawRequested) -> None:
        self.aggregates.ensure_vault(event.block_timestamp)
        lender = self.aggregates.ensure_lender(event.investor, event.block_timestamp)

        key = withdraw_request_id(self.vault, event.request_id)
        if self.store.find(WithdrawRequestTable, key) is not None:
            logger.warning(f"Withdraw request {key} already exists, ignoring repeated request")
            return

        self.store.insert(
            WithdrawRequestTable(
                id=key,
                vault_id=self.vault,
                lender_id=lender.id,
                request_id=event.request_id,
                receiver=event.receiver,
                shares_requested=event.shares,
                shares_processed=0,
                assets_returned=0,
                status=RequestStatus.PENDING.value,
                fully_executed=False,
                request_time=event.block_timestamp,
                last_execute_time=None,
                execution_share_price=None,
            )
        )

    def _process_withdraw_executed(self, event: WithdrawExecuted) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)
        lender = self.aggregates.ensure_lender(event.investor, event.block_timestamp)

        request_key = withdraw_request_id(self.vault, event.request_id)
        request = self.store.find(WithdrawRequestTable, request_key)
        if request is None:
            logger.warning(
                f"Withdraw request {request_key} not found, recording execution without it"
            )
        else:
            request_values: dict[str, Any] = {
                "shares_processed": request.shares_processed + event.shares_processed,
                "assets_returned": request.assets_returned + event.assets_returned,
                "status": _next_request_status(request.status, event.fully_executed),
                "fully_executed": request.fully_executed or event.fully_executed,
                "last_execute_time": event.block_timestamp,
            }
            if event.shares_processed > 0:
                request_values["execution_share_price"] = share_price(
                    event.assets_returned, event.shares_processed
                )
            self.store.update(request, **request_values)

        self._append_log_row(
            WithdrawExecutionTable(
                id=make_log_id(request_key, event.transaction_hash, event.log_index),
                request_id=request_key,
                vault_id=self.vault,
                shares_processed=event.shares_processed,
                assets_returned=event.assets_returned,
                fee_shares=None,
                fully_executed=event.fully_executed,
                tx_hash=event.transaction_hash.to_0x_hex(),
                block_number=event.block_number,
                timestamp=event.block_timestamp,
            ),
        )

        self.store.update(
            lender,
            shares=saturating_sub(lender.shares, event.shares_processed),
            withdrawn=lender.withdrawn + event.assets_returned,
            last_activity_time=event.block_timestamp,
            withdraw_count=lender.withdraw_count + (1 if event.fully_executed else 0),
            current_value=saturating_sub(lender.current_value, event.assets_returned),
        )

        self._update_vault_totals(
            vault,
            event.block_timestamp,
            total_assets=saturating_sub(vault.total_assets, event.assets_returned),
            total_supply=saturating_sub(vault.total_supply, event.shares_processed),
            total_withdrawn=vault.total_withdrawn + event.assets_returned,
        )

    def _process_admin_withdrawal(self, event: AdminWithdrawal) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)

        self._append_log_row(
            AdminWithdrawalTable(
                id=admin_withdrawal_id(self.vault, event.transaction_hash, event.log_index),
                vault_id=self.vault,
                shareholder=event.shareholder,
                receiver=event.receiver,
                shares=event.shares,
                assets=event.assets,
                fee_shares=event.fee_shares,
                fee_recipient=event.fee_recipient,
                tx_hash=event.transaction_hash.to_0x_hex(),
                block_number=event.block_number,
                timestamp=event.block_timestamp,
            ),
        )

        lender = self.aggregates.ensure_lender(event.shareholder, event.block_timestamp)
        self.store.update(
            lender,
            shares=saturating_sub(lender.shares, event.shares),
            withdrawn=lender.withdrawn + event.assets,
            last_activity_time=event.block_timestamp,
            withdraw_count=lender.withdraw_count + 1,
            current_value=saturating_sub(lender.current_value, event.assets),
        )

        self._update_vault_totals(
            vault,
            event.block_timestamp,
            total_assets=saturating_sub(vault.total_assets, event.assets),
            total_supply=saturating_sub(vault.total_supply, event.shares),
            total_withdrawn=vault.total_withdrawn + event.assets,
        )

    def _process_loan_issued(self, event: LoanIssued) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)
        borrower = self.aggregates.ensure_borrower(event.borrower, event.block_timestamp)

        key = loan_id(self.vault, event.loan_id)
        if self.store.find(LoanTable, key) is not None:
            logger.warning(f"Loan {key} already issued, ignoring repeated issuance")
            return

        self.store.insert(
            LoanTable(
                id=key,
                vault_id=self.vault,
                loan_id=event.loan_id,
                borrower_id=borrower.id,
                principal=event.principal,
                interest_rate_bps=event.interest_rate,
                interest_type=get_interest_type_name(event.interest_type),
                compounding_period=get_compounding_period_name(event.compounding_period),
                start_timestamp=event.timestamp,
                maturity_timestamp=None,
                grace_period_days=0,
                disbursement_timestamp=event.timestamp,
                min_payment_amount=0,
                late_fee_rate_bps=0,
                outstanding_principal=event.principal,
                accrued_interest=0,
                total_interest_paid=0,
                total_principal_paid=0,
                total_paid=0,
                total_owed=event.principal,
                status=LoanStatus.ACTIVE.value,
                last_interest_update_timestamp=event.timestamp,
                last_payment_timestamp=None,
                default_timestamp=None,
                is_late=False,
                days_late=0,
                current_interest_rate=event.interest_rate,
                payment_count=0,
                late_payment_count=0,
            )
        )

        self.store.update(
            borrower,
            total_borrowed=borrower.total_borrowed + event.principal,
            current_outstanding=borrower.current_outstanding + event.principal,
            total_loans_count=borrower.total_loans_count + 1,
            active_loans_count=borrower.active_loans_count + 1,
            first_loan_time=(
                borrower.first_loan_time
                if borrower.first_loan_time is not None
                else event.block_timestamp
            ),
            last_activity_time=event.block_timestamp,
        )

        self._update_vault_totals(
            vault,
            event.block_timestamp,
            total_outstanding_loans=vault.total_outstanding_loans + event.principal,
            total_loans_issued=vault.total_loans_issued + 1,
            active_loans_count=vault.active_loans_count + 1,
        )

    def _find_open_loan(
        self,
        event: LoanPayment | LoanFullyRepaid | LoanDefaulted,
    ) -> LoanTable | None:
        """
        Return the loan referenced by the event, or None if it was never issued or has already
        reached a terminal status.
        """

        key = loan_id(self.vault, event.loan_id)
        loan = self.store.find(LoanTable, key)
        if loan is None:
            logger.warning(f"{type(event).__name__} for unknown loan {key}, skipping")
            return None
        if loan.status in TERMINAL_LOAN_STATUSES:
            logger.warning(
                f"{type(event).__name__} for loan {key} in terminal status {loan.status}, skipping"
            )
            return None
        return loan

    def _process_loan_payment(self, event: LoanPayment) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)
        if (loan := self._find_open_loan(event)) is None:
            return

        self._append_log_row(
            LoanPaymentTable(
                id=make_log_id(loan.id, event.transaction_hash, event.log_index),
                loan_id=loan.id,
                borrower_id=loan.borrower_id,
                payer=event.payer,
                total_payment=event.total_payment,
                interest_paid=event.interest_paid,
                principal_paid=event.principal_paid,
                late_fees_paid=0,
                remaining_principal=event.remaining_principal,
                remaining_interest=event.remaining_interest,
                timestamp=event.timestamp,
                days_late=0,
                was_late=False,
                tx_hash=event.transaction_hash.to_0x_hex(),
                block_number=event.block_number,
            ),
        )

        # Remaining balances come from the contract, which is the source of truth for accrual
        self.store.update(
            loan,
            outstanding_principal=event.remaining_principal,
            accrued_interest=event.remaining_interest,
            total_interest_paid=loan.total_interest_paid + event.interest_paid,
            total_principal_paid=loan.total_principal_paid + event.principal_paid,
            total_paid=loan.total_paid + event.total_payment,
            total_owed=event.remaining_principal + event.remaining_interest,
            last_payment_timestamp=event.timestamp,
            last_interest_update_timestamp=event.timestamp,
            payment_count=loan.payment_count + 1,
        )

        if (borrower := self.store.find(BorrowerTable, loan.borrower_id)) is not None:
            self.store.update(
                borrower,
                total_repaid=borrower.total_repaid + event.total_payment,
                total_interest_paid=borrower.total_interest_paid + event.interest_paid,
                total_principal_paid=borrower.total_principal_paid + event.principal_paid,
                current_outstanding=saturating_sub(
                    borrower.current_outstanding, event.principal_paid
                ),
                last_activity_time=event.block_timestamp,
            )

        self._update_vault_totals(
            vault,
            event.block_timestamp,
            total_outstanding_loans=saturating_sub(
                vault.total_outstanding_loans, event.principal_paid
            ),
            total_interest_earned=vault.total_interest_earned + event.interest_paid,
        )

    def _process_loan_fully_repaid(self, event: LoanFullyRepaid) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)
        if (loan := self._find_open_loan(event)) is None:
            return

        self.store.update(
            loan,
            status=LoanStatus.REPAID.value,
            outstanding_principal=0,
            accrued_interest=0,
            total_owed=0,
            total_interest_paid=event.total_interest_paid,
            total_principal_paid=event.total_principal_paid,
            total_paid=event.total_principal_paid + event.total_interest_paid,
            last_interest_update_timestamp=event.timestamp,
        )

        if (borrower := self.store.find(BorrowerTable, loan.borrower_id)) is not None:
            self.store.update(
                borrower,
                active_loans_count=saturating_sub(borrower.active_loans_count, 1),
                repaid_loans_count=borrower.repaid_loans_count + 1,
                current_outstanding=0,
                last_activity_time=event.block_timestamp,
            )

        self.store.update(
            vault,
            active_loans_count=saturating_sub(vault.active_loans_count, 1),
            repaid_loans_count=vault.repaid_loans_count + 1,
            last_update_at=event.block_timestamp,
        )

    def _process_loan_defaulted(self, event: LoanDefaulted) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)
        if (loan := self._find_open_loan(event)) is None:
            return

        self.store.update(
            loan,
            status=LoanStatus.DEFAULTED.value,
            outstanding_principal=event.outstanding_principal,
            accrued_interest=event.outstanding_interest,
            default_timestamp=event.timestamp,
            last_interest_update_timestamp=event.timestamp,
        )

        if (borrower := self.store.find(BorrowerTable, loan.borrower_id)) is not None:
            self.store.update(
                borrower,
                active_loans_count=saturating_sub(borrower.active_loans_count, 1),
                defaulted_loans_count=borrower.defaulted_loans_count + 1,
                last_activity_time=event.block_timestamp,
            )

        self.store.update(
            vault,
            active_loans_count=saturating_sub(vault.active_loans_count, 1),
            defaulted_loans_count=vault.defaulted_loans_count + 1,
            total_defaulted_amount=vault.total_defaulted_amount + event.outstanding_principal,
            last_update_at=event.block_timestamp,
        )

    def _process_loan_written_off(self, event: LoanWrittenOff) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)

        key = loan_id(self.vault, event.loan_id)
        loan = self.store.find(LoanTable, key)
        if loan is None:
            logger.warning(f"LoanWrittenOff for unknown loan {key}, skipping")
            return
        if loan.status == LoanStatus.WRITTEN_OFF.value:
            logger.warning(f"Loan {key} is already written off, skipping")
            return
        if loan.status != LoanStatus.DEFAULTED.value:
            logger.warning(f"Loan {key} written off while {loan.status}, expected DEFAULTED")

        self.store.update(
            loan,
            status=LoanStatus.WRITTEN_OFF.value,
            last_interest_update_timestamp=event.timestamp,
        )

        self.store.update(
            vault,
            total_written_off=vault.total_written_off + event.amount_written_off,
            last_update_at=event.block_timestamp,
        )

    def _process_kyc_registry_set(self, event: KycRegistrySet) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)
        self.store.update(
            vault,
            kyc_registry=event.new_registry,
            last_update_at=event.block_timestamp,
        )

    def _process_kyc_enabled(self, event: KycEnabled) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)
        self.store.update(vault, kyc_enabled=True, last_update_at=event.block_timestamp)

    def _process_kyc_disabled(self, event: KycDisabled) -> None:
        vault = self.aggregates.ensure_vault(event.block_timestamp)
        self.store.update(vault, kyc_enabled=False, last_update_at=event.block_timestamp)

    def _process_role_granted(self, event: RoleGranted) -> None:
        self.aggregates.ensure_vault(event.block_timestamp)
        self.roles.grant(event)

    def _process_role_revoked(self, event: RoleRevoked) -> None:
        self.aggregates.ensure_vault(event.block_timestamp)
        self.roles.revoke(event)

    def _process_role_admin_changed(self, event: RoleAdminChanged) -> None:
        self.aggregates.ensure_vault(event.block_timestamp)
        self.roles.change_admin(event)

