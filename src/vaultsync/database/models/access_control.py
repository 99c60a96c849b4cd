from sqlalchemy import Index
from sqlalchemy.orm import Mapped, relationship

from .base import Address, Base, BlockNumber, RoleHash, Timestamp, TransactionHash
from .types import ForeignKeyRoleId, ForeignKeyVaultId, PrimaryKeyId


class AccessControlRoleTable(Base):
    __tablename__ = "access_control_roles"

    id: Mapped[PrimaryKeyId]
    vault_id: Mapped[ForeignKeyVaultId]

    role_hash: Mapped[RoleHash]
    role_name: Mapped[str]
    admin_role_hash: Mapped[RoleHash]
    admin_role_name: Mapped[str]
    member_count: Mapped[int]
    updated_at: Mapped[Timestamp]

    # Relationships
    members: Mapped[list["AccessControlRoleMemberTable"]] = relationship(
        "AccessControlRoleMemberTable",
        back_populates="role",
    )


class AccessControlRoleMemberTable(Base):
    __tablename__ = "access_control_role_members"

    id: Mapped[PrimaryKeyId]
    role_id: Mapped[ForeignKeyRoleId]
    account: Mapped[Address]

    is_active: Mapped[bool]
    granted_at: Mapped[Timestamp]
    revoked_at: Mapped[Timestamp | None]
    grant_tx_hash: Mapped[TransactionHash]
    revoke_tx_hash: Mapped[TransactionHash | None]
    grant_block_number: Mapped[BlockNumber]
    revoke_block_number: Mapped[BlockNumber | None]
    updated_at: Mapped[Timestamp]

    # Relationships
    role: Mapped["AccessControlRoleTable"] = relationship(
        "AccessControlRoleTable",
        back_populates="members",
    )


Index(
    "ix_access_control_role_members_account_role",
    AccessControlRoleMemberTable.account,
    AccessControlRoleMemberTable.role_id,
    unique=True,
)


class AccessControlRoleEventTable(Base):
    """
    Append-only audit trail of grants, revocations and admin changes.
    """

    __tablename__ = "access_control_role_events"

    id: Mapped[PrimaryKeyId]
    # Not a foreign key: a revocation may be observed for a role that was never granted
    role_id: Mapped[str]

    event_type: Mapped[str]
    account: Mapped[Address | None]
    admin_role_hash: Mapped[RoleHash | None]
    admin_role_name: Mapped[str | None]

    tx_hash: Mapped[TransactionHash]
    block_number: Mapped[BlockNumber]
    timestamp: Mapped[Timestamp]
