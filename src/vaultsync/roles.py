"""
Access-control bookkeeping for a vault: role records, their members, and an append-only audit trail
of grants, revocations and admin changes.
"""

from typing import Final

from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from hexbytes import HexBytes

from vaultsync.constants import DEFAULT_ADMIN_ROLE
from vaultsync.database.models import (
    AccessControlRoleEventTable,
    AccessControlRoleMemberTable,
    AccessControlRoleTable,
)
from vaultsync.events import RoleAdminChanged, RoleEventType, RoleGranted, RoleRevoked
from vaultsync.identity import role_event_id, role_id, role_member_id
from vaultsync.logging import logger
from vaultsync.store import LedgerStore

UNKNOWN_ROLE_NAME: Final = "UNKNOWN_ROLE"
DEFAULT_ADMIN_ROLE_NAME: Final = "DEFAULT_ADMIN_ROLE"

ROLE_NAMES: Final[dict[HexBytes, str]] = {
    HexBytes(keccak(text=name)): name for name in ("ADMIN_ROLE", "RELAYER_ROLE", "PAYOR_ROLE")
} | {DEFAULT_ADMIN_ROLE: DEFAULT_ADMIN_ROLE_NAME}


def get_role_name(role_hash: bytes) -> str:
    return ROLE_NAMES.get(HexBytes(role_hash), UNKNOWN_ROLE_NAME)


class RoleRegistry:
    """
    Applies role events for a single vault.
    """

    def __init__(self, store: LedgerStore, vault: ChecksumAddress) -> None:
        self.store = store
        self.vault = vault

    def _ensure_role(self, role_hash: HexBytes, timestamp: int) -> AccessControlRoleTable:
        key = role_id(self.vault, role_hash)
        return self.store.get_or_create(
            AccessControlRoleTable,
            key,
            lambda: AccessControlRoleTable(
                id=key,
                vault_id=self.vault,
                role_hash=role_hash.to_0x_hex(),
                role_name=get_role_name(role_hash),
                admin_role_hash=DEFAULT_ADMIN_ROLE.to_0x_hex(),
                admin_role_name=DEFAULT_ADMIN_ROLE_NAME,
                member_count=0,
                updated_at=timestamp,
            ),
        )

    def _append_audit_row(
        self,
        role_key: str,
        event_type: RoleEventType,
        event: RoleGranted | RoleRevoked | RoleAdminChanged,
        account: ChecksumAddress | None = None,
        admin_role_hash: HexBytes | None = None,
    ) -> None:
        key = role_event_id(
            role_key, event_type.value, event.transaction_hash, event.log_index
        )
        if self.store.find(AccessControlRoleEventTable, key) is not None:
            logger.debug(f"Role event {key} already recorded")
            return

        self.store.insert(
            AccessControlRoleEventTable(
                id=key,
                role_id=role_key,
                event_type=event_type.value,
                account=account,
                admin_role_hash=None if admin_role_hash is None else admin_role_hash.to_0x_hex(),
                admin_role_name=None if admin_role_hash is None else get_role_name(admin_role_hash),
                tx_hash=event.transaction_hash.to_0x_hex(),
                block_number=event.block_number,
                timestamp=event.block_timestamp,
            )
        )

    def grant(self, event: RoleGranted) -> None:
        role = self._ensure_role(event.role, event.block_timestamp)
        member_key = role_member_id(role.id, event.account)
        member = self.store.find(AccessControlRoleMemberTable, member_key)

        grant_fields = {
            "is_active": True,
            "granted_at": event.block_timestamp,
            "grant_tx_hash": event.transaction_hash.to_0x_hex(),
            "grant_block_number": event.block_number,
            "revoked_at": None,
            "revoke_tx_hash": None,
            "revoke_block_number": None,
            "updated_at": event.block_timestamp,
        }

        if member is None:
            self.store.insert(
                AccessControlRoleMemberTable(
                    id=member_key,
                    role_id=role.id,
                    account=event.account,
                    **grant_fields,
                )
            )
            was_active = False
        else:
            was_active = member.is_active
            self.store.update(member, **grant_fields)

        if was_active:
            logger.debug(f"{event.account} already holds role {role.role_name}")
            self.store.update(role, updated_at=event.block_timestamp)
        else:
            self.store.update(
                role,
                member_count=role.member_count + 1,
                updated_at=event.block_timestamp,
            )

        self._append_audit_row(role.id, RoleEventType.GRANTED, event, account=event.account)

    def revoke(self, event: RoleRevoked) -> None:
        role_key = role_id(self.vault, event.role)
        member = self.store.find(
            AccessControlRoleMemberTable, role_member_id(role_key, event.account)
        )

        was_active = False
        if member is not None:
            was_active = member.is_active
            self.store.update(
                member,
                is_active=False,
                revoked_at=event.block_timestamp,
                revoke_tx_hash=event.transaction_hash.to_0x_hex(),
                revoke_block_number=event.block_number,
                updated_at=event.block_timestamp,
            )
        else:
            logger.debug(f"Revoke of non-member {event.account} for role {role_key}")

        role = self.store.find(AccessControlRoleTable, role_key)
        if role is not None and was_active and role.member_count > 0:
            self.store.update(
                role,
                member_count=role.member_count - 1,
                updated_at=event.block_timestamp,
            )

        self._append_audit_row(role_key, RoleEventType.REVOKED, event, account=event.account)

    def change_admin(self, event: RoleAdminChanged) -> None:
        key = role_id(self.vault, event.role)
        role = self.store.find(AccessControlRoleTable, key)
        if role is None:
            self.store.insert(
                AccessControlRoleTable(
                    id=key,
                    vault_id=self.vault,
                    role_hash=event.role.to_0x_hex(),
                    role_name=get_role_name(event.role),
                    admin_role_hash=event.new_admin_role.to_0x_hex(),
                    admin_role_name=get_role_name(event.new_admin_role),
                    member_count=0,
                    updated_at=event.block_timestamp,
                )
            )
        else:
            self.store.update(
                role,
                admin_role_hash=event.new_admin_role.to_0x_hex(),
                admin_role_name=get_role_name(event.new_admin_role),
                updated_at=event.block_timestamp,
            )

        self._append_audit_row(
            key,
            RoleEventType.ADMIN_CHANGED,
            event,
            admin_role_hash=event.new_admin_role,
        )
