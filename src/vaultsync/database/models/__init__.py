from .access_control import (
    AccessControlRoleEventTable,
    AccessControlRoleMemberTable,
    AccessControlRoleTable,
)
from .base import Base, IntMappedToString
from .sync import ProcessedEventTable, TrackedVaultTable
from .vault import (
    AdminWithdrawalTable,
    BorrowerTable,
    DepositExecutionTable,
    DepositRequestTable,
    LenderTable,
    LendingVaultTable,
    LoanPaymentTable,
    LoanTable,
    WithdrawExecutionTable,
    WithdrawRequestTable,
)

__all__ = (
    "AccessControlRoleEventTable",
    "AccessControlRoleMemberTable",
    "AccessControlRoleTable",
    "AdminWithdrawalTable",
    "Base",
    "BorrowerTable",
    "DepositExecutionTable",
    "DepositRequestTable",
    "IntMappedToString",
    "LenderTable",
    "LendingVaultTable",
    "LoanPaymentTable",
    "LoanTable",
    "ProcessedEventTable",
    "TrackedVaultTable",
    "WithdrawExecutionTable",
    "WithdrawRequestTable",
)
