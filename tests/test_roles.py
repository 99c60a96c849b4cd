from eth_utils.crypto import keccak
from hexbytes import HexBytes
from sqlalchemy import select
from sqlalchemy.orm import Session

from tests.conftest import ADMIN, INVESTOR, VAULT_ADDRESS, EventPositions
from vaultsync.constants import DEFAULT_ADMIN_ROLE
from vaultsync.database.models import (
    AccessControlRoleEventTable,
    AccessControlRoleMemberTable,
    AccessControlRoleTable,
)
from vaultsync.events import RoleAdminChanged, RoleEventType, RoleGranted, RoleRevoked
from vaultsync.identity import role_id, role_member_id
from vaultsync.reconciler import VaultReconciler
from vaultsync.roles import ROLE_NAMES, get_role_name

RELAYER_ROLE = HexBytes(keccak(text="RELAYER_ROLE"))
ADMIN_ROLE = HexBytes(keccak(text="ADMIN_ROLE"))


def _role_events(session: Session, role_key: str) -> list[AccessControlRoleEventTable]:
    return list(
        session.scalars(
            select(AccessControlRoleEventTable)
            .where(AccessControlRoleEventTable.role_id == role_key)
            .order_by(AccessControlRoleEventTable.block_number)
        ).all()
    )


def _grant(reconciler: VaultReconciler, position: EventPositions, account: str) -> None:
    reconciler.apply(
        RoleGranted(
            **position(),
            role=RELAYER_ROLE,
            account=account,
            sender=ADMIN,
        )
    )


def _revoke(reconciler: VaultReconciler, position: EventPositions, account: str) -> None:
    reconciler.apply(
        RoleRevoked(
            **position(),
            role=RELAYER_ROLE,
            account=account,
            sender=ADMIN,
        )
    )


def test_role_names():
    assert len(ROLE_NAMES) == 4
    assert get_role_name(ADMIN_ROLE) == "ADMIN_ROLE"
    assert get_role_name(RELAYER_ROLE) == "RELAYER_ROLE"
    assert get_role_name(HexBytes(keccak(text="PAYOR_ROLE"))) == "PAYOR_ROLE"
    assert get_role_name(DEFAULT_ADMIN_ROLE) == "DEFAULT_ADMIN_ROLE"
    assert get_role_name(bytes(32)) == "DEFAULT_ADMIN_ROLE"
    assert get_role_name(HexBytes(keccak(text="MINTER_ROLE"))) == "UNKNOWN_ROLE"


def test_grant_creates_role_and_member(
    reconciler: VaultReconciler,
    session: Session,
    position: EventPositions,
):
    _grant(reconciler, position, INVESTOR)

    role_key = role_id(VAULT_ADDRESS, RELAYER_ROLE)
    role = session.get(AccessControlRoleTable, role_key)
    assert role is not None
    assert role.role_name == "RELAYER_ROLE"
    assert role.role_hash == RELAYER_ROLE.to_0x_hex()
    assert role.admin_role_hash == DEFAULT_ADMIN_ROLE.to_0x_hex()
    assert role.admin_role_name == "DEFAULT_ADMIN_ROLE"
    assert role.member_count == 1

    member = session.get(AccessControlRoleMemberTable, role_member_id(role_key, INVESTOR))
    assert member is not None
    assert member.is_active is True

    (granted,) = _role_events(session, role_key)
    assert granted.event_type == RoleEventType.GRANTED.value
    assert granted.account == INVESTOR
    assert granted.admin_role_hash is None


def test_double_grant_counts_once(
    reconciler: VaultReconciler,
    session: Session,
    position: EventPositions,
):
    _grant(reconciler, position, INVESTOR)
    _grant(reconciler, position, INVESTOR)

    role_key = role_id(VAULT_ADDRESS, RELAYER_ROLE)
    role = session.get(AccessControlRoleTable, role_key)
    assert role is not None
    assert role.member_count == 1
    assert [event.event_type for event in _role_events(session, role_key)] == [
        RoleEventType.GRANTED.value,
        RoleEventType.GRANTED.value,
    ]


def test_revoke_of_non_member(
    reconciler: VaultReconciler,
    session: Session,
    position: EventPositions,
):
    _grant(reconciler, position, ADMIN)
    _revoke(reconciler, position, INVESTOR)

    role_key = role_id(VAULT_ADDRESS, RELAYER_ROLE)
    role = session.get(AccessControlRoleTable, role_key)
    assert role is not None
    assert role.member_count == 1
    assert session.get(AccessControlRoleMemberTable, role_member_id(role_key, INVESTOR)) is None

    events = _role_events(session, role_key)
    assert events[-1].event_type == RoleEventType.REVOKED.value
    assert events[-1].account == INVESTOR


def test_revoke_for_unknown_role_still_records_event(
    reconciler: VaultReconciler,
    session: Session,
    position: EventPositions,
):
    _revoke(reconciler, position, INVESTOR)

    role_key = role_id(VAULT_ADDRESS, RELAYER_ROLE)
    assert session.get(AccessControlRoleTable, role_key) is None
    (revoked,) = _role_events(session, role_key)
    assert revoked.event_type == RoleEventType.REVOKED.value


def test_revoke_and_regrant(
    reconciler: VaultReconciler,
    session: Session,
    position: EventPositions,
):
    _grant(reconciler, position, INVESTOR)
    revoke_position = position()
    reconciler.apply(
        RoleRevoked(
            **revoke_position,
            role=RELAYER_ROLE,
            account=INVESTOR,
            sender=ADMIN,
        )
    )

    role_key = role_id(VAULT_ADDRESS, RELAYER_ROLE)
    role = session.get(AccessControlRoleTable, role_key)
    member = session.get(AccessControlRoleMemberTable, role_member_id(role_key, INVESTOR))
    assert role is not None
    assert member is not None
    assert role.member_count == 0
    assert member.is_active is False
    assert member.revoked_at == revoke_position["block_timestamp"]
    assert member.revoke_tx_hash == revoke_position["transaction_hash"].to_0x_hex()

    # A second revocation must not drive the count below zero
    _revoke(reconciler, position, INVESTOR)
    assert role.member_count == 0

    _grant(reconciler, position, INVESTOR)
    assert role.member_count == 1
    assert member.is_active is True
    assert member.revoked_at is None
    assert member.revoke_tx_hash is None
    assert member.revoke_block_number is None


def test_admin_change(
    reconciler: VaultReconciler,
    session: Session,
    position: EventPositions,
):
    _grant(reconciler, position, INVESTOR)
    reconciler.apply(
        RoleAdminChanged(
            **position(),
            role=RELAYER_ROLE,
            previous_admin_role=DEFAULT_ADMIN_ROLE,
            new_admin_role=ADMIN_ROLE,
        )
    )

    role_key = role_id(VAULT_ADDRESS, RELAYER_ROLE)
    role = session.get(AccessControlRoleTable, role_key)
    assert role is not None
    assert role.admin_role_hash == ADMIN_ROLE.to_0x_hex()
    assert role.admin_role_name == "ADMIN_ROLE"
    assert role.member_count == 1

    admin_changed = _role_events(session, role_key)[-1]
    assert admin_changed.event_type == RoleEventType.ADMIN_CHANGED.value
    assert admin_changed.account is None
    assert admin_changed.admin_role_hash == ADMIN_ROLE.to_0x_hex()
    assert admin_changed.admin_role_name == "ADMIN_ROLE"


def test_admin_change_creates_missing_role(
    reconciler: VaultReconciler,
    session: Session,
    position: EventPositions,
):
    reconciler.apply(
        RoleAdminChanged(
            **position(),
            role=ADMIN_ROLE,
            previous_admin_role=DEFAULT_ADMIN_ROLE,
            new_admin_role=RELAYER_ROLE,
        )
    )

    role = session.get(AccessControlRoleTable, role_id(VAULT_ADDRESS, ADMIN_ROLE))
    assert role is not None
    assert role.role_name == "ADMIN_ROLE"
    assert role.admin_role_name == "RELAYER_ROLE"
    assert role.member_count == 0
