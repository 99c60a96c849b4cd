"""Lending vault: add tables

Revision ID: 4b1d07e2c9a3
Revises:
Create Date: 2026-10-19 09:12:44.201377

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

import vaultsync.database.models

# revision identifiers, used by Alembic.
revision: str = "4b1d07e2c9a3"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "lending_vaults",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column(
            "total_assets",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_supply",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_unrealized_interest",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_outstanding_loans",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("total_loans_issued", sa.Integer(), nullable=False),
        sa.Column(
            "total_interest_earned",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_defaulted_amount",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_written_off",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("active_loans_count", sa.Integer(), nullable=False),
        sa.Column("defaulted_loans_count", sa.Integer(), nullable=False),
        sa.Column("repaid_loans_count", sa.Integer(), nullable=False),
        sa.Column(
            "total_deposited",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_withdrawn",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("initial_share_price", sa.Text(), nullable=False),
        sa.Column("current_share_price", sa.Text(), nullable=False),
        sa.Column("average_interest_rate", sa.Text(), nullable=False),
        sa.Column("utilization_rate", sa.Text(), nullable=False),
        sa.Column("kyc_enabled", sa.Boolean(), nullable=False),
        sa.Column("kyc_registry", sa.String(length=42), nullable=True),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("last_update_at", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "tracked_vaults",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("chain_id", sa.Integer(), nullable=False),
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("last_update_block", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("tracked_vaults", schema=None) as batch_op:
        batch_op.create_index(
            "ix_tracked_vaults_address_chain",
            ["address", "chain_id"],
            unique=True,
        )

    op.create_table(
        "processed_events",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("vault_id", sa.String(length=42), nullable=False),
        sa.Column("event_name", sa.Text(), nullable=False),
        sa.Column("tx_hash", sa.String(length=66), nullable=False),
        sa.Column("log_index", sa.Integer(), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "access_control_roles",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("vault_id", sa.String(length=256), nullable=False),
        sa.Column("role_hash", sa.String(length=66), nullable=False),
        sa.Column("role_name", sa.Text(), nullable=False),
        sa.Column("admin_role_hash", sa.String(length=66), nullable=False),
        sa.Column("admin_role_name", sa.Text(), nullable=False),
        sa.Column("member_count", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["vault_id"],
            ["lending_vaults.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("access_control_roles", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_access_control_roles_vault_id"),
            ["vault_id"],
            unique=False,
        )

    op.create_table(
        "access_control_role_events",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("role_id", sa.Text(), nullable=False),
        sa.Column("event_type", sa.Text(), nullable=False),
        sa.Column("account", sa.String(length=42), nullable=True),
        sa.Column("admin_role_hash", sa.String(length=66), nullable=True),
        sa.Column("admin_role_name", sa.Text(), nullable=True),
        sa.Column("tx_hash", sa.String(length=66), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "admin_withdrawals",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("vault_id", sa.String(length=256), nullable=False),
        sa.Column("shareholder", sa.String(length=42), nullable=False),
        sa.Column("receiver", sa.String(length=42), nullable=False),
        sa.Column(
            "shares",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "assets",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "fee_shares",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("fee_recipient", sa.String(length=42), nullable=True),
        sa.Column("tx_hash", sa.String(length=66), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["vault_id"],
            ["lending_vaults.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("admin_withdrawals", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_admin_withdrawals_vault_id"),
            ["vault_id"],
            unique=False,
        )

    op.create_table(
        "borrowers",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("vault_id", sa.String(length=256), nullable=False),
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column(
            "total_borrowed",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_repaid",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_interest_paid",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_principal_paid",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "current_outstanding",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "current_interest_accrued",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("total_loans_count", sa.Integer(), nullable=False),
        sa.Column("active_loans_count", sa.Integer(), nullable=False),
        sa.Column("repaid_loans_count", sa.Integer(), nullable=False),
        sa.Column("defaulted_loans_count", sa.Integer(), nullable=False),
        sa.Column("average_interest_rate", sa.Text(), nullable=False),
        sa.Column("on_time_payment_rate", sa.Text(), nullable=False),
        sa.Column("default_rate", sa.Text(), nullable=False),
        sa.Column("kyc_verified", sa.Boolean(), nullable=False),
        sa.Column("kyc_expiration", sa.BigInteger(), nullable=True),
        sa.Column("first_loan_time", sa.BigInteger(), nullable=True),
        sa.Column("last_activity_time", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["vault_id"],
            ["lending_vaults.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("borrowers", schema=None) as batch_op:
        batch_op.create_index("ix_borrowers_address_vault", ["address", "vault_id"], unique=True)
        batch_op.create_index(batch_op.f("ix_borrowers_vault_id"), ["vault_id"], unique=False)

    op.create_table(
        "deposit_executions",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("request_id", sa.Text(), nullable=False),
        sa.Column("vault_id", sa.String(length=256), nullable=False),
        sa.Column(
            "assets_processed",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "shares_issued",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("fully_executed", sa.Boolean(), nullable=False),
        sa.Column("tx_hash", sa.String(length=66), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["vault_id"],
            ["lending_vaults.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("deposit_executions", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_deposit_executions_vault_id"),
            ["vault_id"],
            unique=False,
        )

    op.create_table(
        "lenders",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("vault_id", sa.String(length=256), nullable=False),
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column(
            "shares",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "deposited",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "withdrawn",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "realized_gains",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "unrealized_gains",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_interest_earned",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "current_value",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("last_interest_update", sa.BigInteger(), nullable=False),
        sa.Column("first_deposit_time", sa.BigInteger(), nullable=True),
        sa.Column("last_activity_time", sa.BigInteger(), nullable=False),
        sa.Column("deposit_count", sa.Integer(), nullable=False),
        sa.Column("withdraw_count", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["vault_id"],
            ["lending_vaults.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("lenders", schema=None) as batch_op:
        batch_op.create_index("ix_lenders_address_vault", ["address", "vault_id"], unique=True)
        batch_op.create_index(batch_op.f("ix_lenders_vault_id"), ["vault_id"], unique=False)

    op.create_table(
        "withdraw_executions",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("request_id", sa.Text(), nullable=False),
        sa.Column("vault_id", sa.String(length=256), nullable=False),
        sa.Column(
            "shares_processed",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "assets_returned",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "fee_shares",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=True,
        ),
        sa.Column("fully_executed", sa.Boolean(), nullable=False),
        sa.Column("tx_hash", sa.String(length=66), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["vault_id"],
            ["lending_vaults.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("withdraw_executions", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_withdraw_executions_vault_id"),
            ["vault_id"],
            unique=False,
        )

    op.create_table(
        "access_control_role_members",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("role_id", sa.String(length=256), nullable=False),
        sa.Column("account", sa.String(length=42), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("granted_at", sa.BigInteger(), nullable=False),
        sa.Column("revoked_at", sa.BigInteger(), nullable=True),
        sa.Column("grant_tx_hash", sa.String(length=66), nullable=False),
        sa.Column("revoke_tx_hash", sa.String(length=66), nullable=True),
        sa.Column("grant_block_number", sa.BigInteger(), nullable=False),
        sa.Column("revoke_block_number", sa.BigInteger(), nullable=True),
        sa.Column("updated_at", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["role_id"],
            ["access_control_roles.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("access_control_role_members", schema=None) as batch_op:
        batch_op.create_index(
            "ix_access_control_role_members_account_role",
            ["account", "role_id"],
            unique=True,
        )
        batch_op.create_index(
            batch_op.f("ix_access_control_role_members_role_id"),
            ["role_id"],
            unique=False,
        )

    op.create_table(
        "deposit_requests",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("vault_id", sa.String(length=256), nullable=False),
        sa.Column("lender_id", sa.String(length=256), nullable=False),
        sa.Column(
            "request_id",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("receiver", sa.String(length=42), nullable=False),
        sa.Column(
            "assets_requested",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "assets_processed",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "shares_issued",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("fully_executed", sa.Boolean(), nullable=False),
        sa.Column("request_time", sa.BigInteger(), nullable=False),
        sa.Column("last_execute_time", sa.BigInteger(), nullable=True),
        sa.Column("execution_share_price", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["lender_id"],
            ["lenders.id"],
        ),
        sa.ForeignKeyConstraint(
            ["vault_id"],
            ["lending_vaults.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("deposit_requests", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_deposit_requests_lender_id"),
            ["lender_id"],
            unique=False,
        )
        batch_op.create_index(
            batch_op.f("ix_deposit_requests_vault_id"),
            ["vault_id"],
            unique=False,
        )

    op.create_table(
        "loans",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("vault_id", sa.String(length=256), nullable=False),
        sa.Column(
            "loan_id",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("borrower_id", sa.String(length=256), nullable=False),
        sa.Column(
            "principal",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("interest_rate_bps", sa.Integer(), nullable=False),
        sa.Column("interest_type", sa.Text(), nullable=False),
        sa.Column("compounding_period", sa.Text(), nullable=False),
        sa.Column("start_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("maturity_timestamp", sa.BigInteger(), nullable=True),
        sa.Column("grace_period_days", sa.Integer(), nullable=False),
        sa.Column("disbursement_timestamp", sa.BigInteger(), nullable=False),
        sa.Column(
            "min_payment_amount",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("late_fee_rate_bps", sa.Integer(), nullable=False),
        sa.Column(
            "outstanding_principal",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "accrued_interest",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_interest_paid",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_principal_paid",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_paid",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "total_owed",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("last_interest_update_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("last_payment_timestamp", sa.BigInteger(), nullable=True),
        sa.Column("default_timestamp", sa.BigInteger(), nullable=True),
        sa.Column("is_late", sa.Boolean(), nullable=False),
        sa.Column("days_late", sa.Integer(), nullable=False),
        sa.Column("current_interest_rate", sa.Integer(), nullable=False),
        sa.Column("payment_count", sa.Integer(), nullable=False),
        sa.Column("late_payment_count", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["borrower_id"],
            ["borrowers.id"],
        ),
        sa.ForeignKeyConstraint(
            ["vault_id"],
            ["lending_vaults.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("loans", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_loans_borrower_id"), ["borrower_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_loans_vault_id"), ["vault_id"], unique=False)

    op.create_table(
        "withdraw_requests",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("vault_id", sa.String(length=256), nullable=False),
        sa.Column("lender_id", sa.String(length=256), nullable=False),
        sa.Column(
            "request_id",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("receiver", sa.String(length=42), nullable=False),
        sa.Column(
            "shares_requested",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "shares_processed",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "assets_returned",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("fully_executed", sa.Boolean(), nullable=False),
        sa.Column("request_time", sa.BigInteger(), nullable=False),
        sa.Column("last_execute_time", sa.BigInteger(), nullable=True),
        sa.Column("execution_share_price", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["lender_id"],
            ["lenders.id"],
        ),
        sa.ForeignKeyConstraint(
            ["vault_id"],
            ["lending_vaults.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("withdraw_requests", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_withdraw_requests_lender_id"),
            ["lender_id"],
            unique=False,
        )
        batch_op.create_index(
            batch_op.f("ix_withdraw_requests_vault_id"),
            ["vault_id"],
            unique=False,
        )

    op.create_table(
        "loan_payments",
        sa.Column("id", sa.String(length=256), nullable=False),
        sa.Column("loan_id", sa.String(length=256), nullable=False),
        sa.Column("borrower_id", sa.String(length=256), nullable=False),
        sa.Column("payer", sa.String(length=42), nullable=False),
        sa.Column(
            "total_payment",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "interest_paid",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "principal_paid",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "late_fees_paid",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "remaining_principal",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column(
            "remaining_interest",
            vaultsync.database.models.base.IntMappedToString(length=78),
            nullable=False,
        ),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("days_late", sa.Integer(), nullable=False),
        sa.Column("was_late", sa.Boolean(), nullable=False),
        sa.Column("tx_hash", sa.String(length=66), nullable=False),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(
            ["borrower_id"],
            ["borrowers.id"],
        ),
        sa.ForeignKeyConstraint(
            ["loan_id"],
            ["loans.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("loan_payments", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_loan_payments_borrower_id"),
            ["borrower_id"],
            unique=False,
        )
        batch_op.create_index(batch_op.f("ix_loan_payments_loan_id"), ["loan_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("loan_payments")
    op.drop_table("withdraw_requests")
    op.drop_table("loans")
    op.drop_table("deposit_requests")
    op.drop_table("access_control_role_members")
    op.drop_table("withdraw_executions")
    op.drop_table("lenders")
    op.drop_table("deposit_executions")
    op.drop_table("borrowers")
    op.drop_table("admin_withdrawals")
    op.drop_table("access_control_role_events")
    op.drop_table("access_control_roles")
    op.drop_table("processed_events")
    op.drop_table("tracked_vaults")
    op.drop_table("lending_vaults")
