from typing import cast

import click
import tqdm
from sqlalchemy import select
from sqlalchemy.orm import Session
from web3 import Web3
from web3.types import BlockParams, LogReceipt

from vaultsync.checksum_cache import get_checksum_address
from vaultsync.cli import cli
from vaultsync.cli.utils import get_web3_from_config
from vaultsync.config import settings
from vaultsync.database import db_session
from vaultsync.database.models import LendingVaultTable, TrackedVaultTable
from vaultsync.decoding import VaultEventTopic, decode_vault_event
from vaultsync.functions import fetch_logs_retrying, get_number_for_block_identifier
from vaultsync.logging import logger
from vaultsync.reconciler import VaultReconciler
from vaultsync.store import SqlLedgerStore
from vaultsync.types import BlockNumber, ChainId

AVALANCHE_C_CHAIN_ID: ChainId = 43114


def _get_tracked_vault(
    session: Session,
    address: str,
    chain_id: ChainId,
) -> TrackedVaultTable | None:
    return session.scalar(
        select(TrackedVaultTable).where(
            TrackedVaultTable.address == get_checksum_address(address),
            TrackedVaultTable.chain_id == chain_id,
        )
    )


def _sort_logs(logs: list[LogReceipt]) -> list[LogReceipt]:
    return sorted(logs, key=lambda log: (log["blockNumber"], log["logIndex"]))


def update_vault(
    w3: Web3,
    vault: TrackedVaultTable,
    start_block: BlockNumber,
    end_block: BlockNumber,
    session: Session,
    *,
    no_progress: bool = False,
) -> int:
    """
    Apply every vault event in the inclusive block range, in (block number, log index) order.

    Returns the number of events applied. Redelivered events are skipped by the reconciler and are
    not counted. The caller is responsible for stamping the vault's update block and committing the
    session once this returns.
    """

    vault_address = get_checksum_address(vault.address)

    logs = _sort_logs(
        fetch_logs_retrying(
            w3=w3,
            start_block=start_block,
            end_block=end_block,
            address=[vault_address],
            topic_signature=[[topic.value for topic in VaultEventTopic]],
            max_retries=settings.sync.max_retries,
            max_blocks_per_request=settings.sync.max_blocks_per_request,
        )
    )

    reconciler = VaultReconciler(store=SqlLedgerStore(session), vault=vault_address)
    block_timestamps: dict[BlockNumber, int] = {}
    applied = 0

    for log in tqdm.tqdm(
        logs,
        desc=f"Applying events for {vault_address}",
        bar_format="{desc}: {n_fmt}/{total_fmt} |{bar}|",
        leave=False,
        disable=no_progress,
    ):
        block_number = log["blockNumber"]
        if block_number not in block_timestamps:
            block_timestamps[block_number] = w3.eth.get_block(block_number)["timestamp"]

        event = decode_vault_event(log, block_timestamp=block_timestamps[block_number])
        if reconciler.apply(event):
            applied += 1

    logger.debug(
        f"Applied {applied} of {len(logs)} events for {vault_address} in blocks "
        f"{start_block}-{end_block}"
    )
    return applied


def _resolve_last_block(to_block: str, w3: Web3) -> BlockNumber:
    if to_block.isdigit():
        return int(to_block)

    if ":" in to_block:
        parts = to_block.split(":", 1)
        block_tag, offset = cast("tuple[BlockParams,str]", parts)
        block_offset = int(offset.strip())
    else:
        block_tag = cast("BlockParams", to_block)
        block_offset = 0

    if block_tag not in {"latest", "earliest", "pending", "safe", "finalized"}:
        msg = f"Invalid block tag: {block_tag}"
        raise ValueError(msg)

    return get_number_for_block_identifier(identifier=block_tag, w3=w3) + block_offset


@cli.group()
def vault() -> None:
    """
    Lending vault commands
    """


@vault.command("activate")
@click.argument("address")
@click.option(
    "--chain-id",
    "chain_id",
    default=AVALANCHE_C_CHAIN_ID,
    show_default=True,
    help="The chain ID of the network hosting the vault.",
)
@click.option(
    "--start-block",
    "start_block",
    default=0,
    show_default=True,
    help="The first block to index, usually the vault's deployment block.",
)
def vault_activate(address: str, chain_id: ChainId, start_block: BlockNumber) -> None:
    """
    Activate a vault.

    Events for activated vaults are applied when running `vaultsync vault update`.
    """

    address = get_checksum_address(address)

    with db_session() as session:
        tracked_vault = _get_tracked_vault(session, address, chain_id)
        if tracked_vault is not None:
            tracked_vault.active = True
        else:
            session.add(
                TrackedVaultTable(
                    chain_id=chain_id,
                    address=address,
                    active=True,
                    last_update_block=start_block - 1 if start_block > 0 else None,
                )
            )
        session.commit()

    click.echo(f"Activated vault {address} (chain ID {chain_id}).")


@vault.command("deactivate")
@click.argument("address")
@click.option(
    "--chain-id",
    "chain_id",
    default=AVALANCHE_C_CHAIN_ID,
    show_default=True,
    help="The chain ID of the network hosting the vault.",
)
def vault_deactivate(address: str, chain_id: ChainId) -> None:
    """
    Deactivate a vault.

    Events for deactivated vaults are not applied when running `vaultsync vault update`.
    """

    address = get_checksum_address(address)

    with db_session() as session:
        tracked_vault = _get_tracked_vault(session, address, chain_id)

        if tracked_vault is None:
            click.echo(f"The database has no entry for vault {address} (chain ID {chain_id}).")
            return

        if not tracked_vault.active:
            return
        tracked_vault.active = False
        session.commit()

    click.echo(f"Deactivated vault {address} (chain ID {chain_id}).")


@vault.command(
    "update",
    help="Apply new events for active vaults.",
)
@click.option(
    "--chunk",
    "chunk_size",
    type=click.IntRange(min=1),
    default=lambda: settings.sync.chunk_size,
    show_default="sync.chunk_size from the config file",
    help="The maximum number of blocks to process before committing changes to the database.",
)
@click.option(
    "--to-block",
    "to_block",
    type=str,
    default=lambda: settings.sync.to_block,
    show_default="sync.to_block from the config file",
    help=(
        "The last block in the update range. Must be a valid block identifier: "
        "'earliest', 'finalized', 'safe', 'latest', 'pending'. An identifier can be given with an "
        "optional offset, e.g. 'latest:-64' stops 64 blocks before the chain tip, "
        "'safe:128' stops 128 blocks after the last 'safe' block."
    ),
)
@click.option(
    "--stop-after-one-chunk",
    "stop_after_one_chunk",
    is_flag=True,
    default=False,
    show_default=True,
    help="Stop processing after the first chunk.",
)
@click.option(
    "--no-progress",
    "no_progress",
    is_flag=True,
    default=False,
    show_default=True,
    help="Disable progress bars.",
)
def vault_update(
    *,
    chunk_size: int,
    to_block: str,
    stop_after_one_chunk: bool,
    no_progress: bool,
) -> None:
    """
    Apply events for active vaults from the block after the last update through the target block.

    Changes are committed after each chunk. If an event cannot be applied, the chunk is rolled
    back and the run stops, leaving the vault's last update block unchanged.

    The whole run stops on the first failure, including vaults sharing the failed chunk and any
    chains not yet processed. Every vault in a chunk shares one transaction, so their update
    blocks stay consistent with each other and the next run resumes from the failed chunk.
    """

    with db_session() as session:
        active_chains = set(
            session.scalars(
                select(TrackedVaultTable.chain_id).where(TrackedVaultTable.active)
            ).all()
        )

        for chain_id in active_chains:
            w3 = get_web3_from_config(chain_id=chain_id)

            active_vaults = session.scalars(
                select(TrackedVaultTable).where(
                    TrackedVaultTable.active,
                    TrackedVaultTable.chain_id == chain_id,
                )
            ).all()

            initial_start_block = working_start_block = min(
                0 if tracked_vault.last_update_block is None
                else tracked_vault.last_update_block + 1
                for tracked_vault in active_vaults
            )

            last_block = _resolve_last_block(to_block, w3)
            current_block_number = get_number_for_block_identifier(identifier="latest", w3=w3)
            if last_block > current_block_number:
                msg = f"{to_block} is ahead of the current chain tip."
                raise ValueError(msg)

            if initial_start_block > last_block:
                click.echo(f"Chain {chain_id} has not advanced since the last update.")
                continue

            block_pbar = tqdm.tqdm(
                total=last_block - initial_start_block + 1,
                bar_format="{desc} {percentage:3.1f}% |{bar}|",
                leave=False,
                disable=no_progress,
            )

            while True:
                # Cap the working end block at the lowest of:
                # - the target block
                # - the end of the working chunk size
                # - the update blocks of vaults that are further along
                working_end_block = min(
                    [last_block]
                    + [working_start_block + chunk_size - 1]
                    + [
                        tracked_vault.last_update_block
                        for tracked_vault in active_vaults
                        if tracked_vault.last_update_block is not None
                        if tracked_vault.last_update_block > working_start_block
                    ],
                )
                assert working_end_block >= working_start_block

                block_pbar.set_description(
                    f"Processing block range {working_start_block:,} -> {working_end_block:,}"
                )
                block_pbar.refresh()

                vaults_to_update = [
                    tracked_vault
                    for tracked_vault in active_vaults
                    if (
                        tracked_vault.last_update_block is None
                        or tracked_vault.last_update_block + 1 == working_start_block
                    )
                ]

                for tracked_vault in vaults_to_update:
                    try:
                        update_vault(
                            w3=w3,
                            vault=tracked_vault,
                            start_block=working_start_block,
                            end_block=working_end_block,
                            session=session,
                            no_progress=no_progress,
                        )
                    except Exception:
                        logger.exception(
                            f"Processing failed for vault {tracked_vault.address} in blocks "
                            f"{working_start_block}-{working_end_block}"
                        )
                        session.rollback()
                        block_pbar.close()
                        return

                # Every vault in the chunk was updated, so stamp the update block and commit
                for tracked_vault in vaults_to_update:
                    tracked_vault.last_update_block = working_end_block
                session.commit()

                if working_end_block == last_block or stop_after_one_chunk:
                    break
                working_start_block = working_end_block + 1

                block_pbar.n = working_end_block - initial_start_block

            block_pbar.close()


@vault.command("show")
@click.argument("address")
def vault_show(address: str) -> None:
    """
    Display the reconciled state of a vault.
    """

    address = get_checksum_address(address)

    with db_session() as session:
        lending_vault = session.get(LendingVaultTable, address)
        if lending_vault is None:
            click.echo(f"No events have been applied for vault {address}.")
            return

        for column in LendingVaultTable.__table__.columns:
            click.echo(f"{column.name}: {getattr(lending_vault, column.key)}")
