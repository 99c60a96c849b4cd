from eth_typing import ChecksumAddress

from vaultsync.constants import INITIAL_SHARE_PRICE, ZERO_UTILIZATION_RATE
from vaultsync.database.models import BorrowerTable, LenderTable, LendingVaultTable
from vaultsync.identity import borrower_id, lender_id
from vaultsync.store import LedgerStore


class AggregateInitializer:
    """
    Lazily creates the vault, lender and borrower rows on first reference. An existing row is
    returned as-is and never reset.
    """

    def __init__(self, store: LedgerStore, vault: ChecksumAddress) -> None:
        self.store = store
        self.vault = vault

    def ensure_vault(self, timestamp: int) -> LendingVaultTable:
        return self.store.get_or_create(
            LendingVaultTable,
            self.vault,
            lambda: LendingVaultTable(
                id=self.vault,
                total_assets=0,
                total_supply=0,
                total_unrealized_interest=0,
                total_outstanding_loans=0,
                total_loans_issued=0,
                total_interest_earned=0,
                total_defaulted_amount=0,
                total_written_off=0,
                active_loans_count=0,
                defaulted_loans_count=0,
                repaid_loans_count=0,
                total_deposited=0,
                total_withdrawn=0,
                initial_share_price=INITIAL_SHARE_PRICE,
                current_share_price=INITIAL_SHARE_PRICE,
                average_interest_rate="0",
                utilization_rate=ZERO_UTILIZATION_RATE,
                kyc_enabled=False,
                kyc_registry=None,
                created_at=timestamp,
                last_update_at=timestamp,
            ),
        )

    def ensure_lender(self, investor: ChecksumAddress, timestamp: int) -> LenderTable:
        key = lender_id(self.vault, investor)
        return self.store.get_or_create(
            LenderTable,
            key,
            lambda: LenderTable(
                id=key,
                vault_id=self.vault,
                address=investor,
                shares=0,
                deposited=0,
                withdrawn=0,
                realized_gains=0,
                unrealized_gains=0,
                total_interest_earned=0,
                current_value=0,
                last_interest_update=timestamp,
                first_deposit_time=None,
                last_activity_time=timestamp,
                deposit_count=0,
                withdraw_count=0,
            ),
        )

    def ensure_borrower(self, borrower: ChecksumAddress, timestamp: int) -> BorrowerTable:
        key = borrower_id(self.vault, borrower)
        return self.store.get_or_create(
            BorrowerTable,
            key,
            lambda: BorrowerTable(
                id=key,
                vault_id=self.vault,
                address=borrower,
                total_borrowed=0,
                total_repaid=0,
                total_interest_paid=0,
                total_principal_paid=0,
                current_outstanding=0,
                current_interest_accrued=0,
                total_loans_count=0,
                active_loans_count=0,
                repaid_loans_count=0,
                defaulted_loans_count=0,
                average_interest_rate="0",
                on_time_payment_rate="100",
                default_rate="0",
                kyc_verified=False,
                kyc_expiration=None,
                first_loan_time=None,
                last_activity_time=timestamp,
            ),
        )
