from sqlalchemy.orm import Session

from tests.conftest import ADMIN, VAULT_ADDRESS, EventPositions
from vaultsync.constants import ZERO_ADDRESS
from vaultsync.database.models import LendingVaultTable
from vaultsync.events import KycDisabled, KycEnabled, KycRegistrySet
from vaultsync.reconciler import VaultReconciler


def test_kyc_toggles(
    reconciler: VaultReconciler,
    session: Session,
    position: EventPositions,
):
    reconciler.apply(
        KycRegistrySet(
            **position(),
            old_registry=ZERO_ADDRESS,
            new_registry=ADMIN,
        )
    )

    vault = session.get(LendingVaultTable, VAULT_ADDRESS)
    assert vault is not None
    assert vault.kyc_registry == ADMIN
    assert vault.kyc_enabled is False

    enabled_position = position()
    reconciler.apply(KycEnabled(**enabled_position))
    assert vault.kyc_enabled is True
    assert vault.last_update_at == enabled_position["block_timestamp"]

    reconciler.apply(KycDisabled(**position()))
    assert vault.kyc_enabled is False
    assert vault.kyc_registry == ADMIN


def test_kyc_event_on_fresh_vault_keeps_neutral_values(
    reconciler: VaultReconciler,
    session: Session,
    position: EventPositions,
):
    reconciler.apply(KycEnabled(**position()))

    vault = session.get(LendingVaultTable, VAULT_ADDRESS)
    assert vault is not None
    assert vault.kyc_enabled is True
    assert vault.total_assets == 0
    assert vault.total_supply == 0
    assert vault.current_share_price == "1.0"
    assert vault.kyc_registry is None
