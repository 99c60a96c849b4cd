import click
from sqlalchemy import func, select

from vaultsync.cli import cli
from vaultsync.config import settings
from vaultsync.database import current_database_version, db_session, latest_database_version
from vaultsync.database.models import ProcessedEventTable, TrackedVaultTable
from vaultsync.database.operations import (
    backup_sqlite_database,
    compact_sqlite_database,
    create_new_sqlite_database,
    upgrade_existing_sqlite_database,
)
from vaultsync.exceptions.database import BackupExists
from vaultsync.version import __version__


@cli.group()
def database() -> None:
    """
    Database commands
    """


@database.command("backup")
def database_backup() -> None:
    """
    Back up the database.
    """

    try:
        backup_path = backup_sqlite_database(settings.database.path)
    except BackupExists as exc:
        user_confirm = click.confirm(
            f"An existing backup was found at {exc.path}. Do you want to remove it and continue?",
            default=False,
        )
        if user_confirm:
            exc.path.unlink()
            backup_path = backup_sqlite_database(settings.database.path)
        else:
            raise click.Abort from None

    click.echo(f"Backed up the database to {backup_path}.")


@database.command("reset")
def database_reset() -> None:
    """
    Remove and recreate the database. All tracked vaults and applied events are lost.
    """

    user_confirm = click.confirm(
        f"The existing database at {settings.database.path} will be removed and a new, empty database will be created and initialized using the schema included in {__package__} version {__version__}. Every vault will need to be re-indexed from its first block. Do you want to proceed?",  # noqa: E501
        default=False,
    )
    if user_confirm:
        db_session.remove()
        settings.database.path.unlink(missing_ok=True)
        create_new_sqlite_database(settings.database.path)
    else:
        raise click.Abort


@database.command("status")
def database_status() -> None:
    """
    Show the schema revision and indexing progress.
    """

    click.echo(f"Database:         {settings.database.path}")
    click.echo(f"Schema revision:  {current_database_version} (latest {latest_database_version})")

    with db_session() as session:
        for vault in session.scalars(select(TrackedVaultTable)).all():
            event_count = session.scalar(
                select(func.count())
                .select_from(ProcessedEventTable)
                .where(ProcessedEventTable.vault_id == vault.address)
            )
            click.echo(
                f"Vault {vault.address} (chain ID {vault.chain_id}): "
                f"{'active' if vault.active else 'inactive'}, "
                f"last update block {vault.last_update_block}, {event_count} events applied"
            )


@database.command("upgrade")
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def database_upgrade(*, force: bool) -> None:
    """
    Upgrade the database to the latest schema.
    """

    if current_database_version == latest_database_version:
        click.echo(f"The database is already at the latest revision ({latest_database_version}).")
        return

    if force or click.confirm(
        f"The database at {settings.database.path} will be upgraded from version {current_database_version} to {latest_database_version}. Do you want to proceed?",  # noqa:E501
        default=False,
    ):
        upgrade_existing_sqlite_database()
    else:
        raise click.Abort


@database.command("compact")
def database_compact() -> None:
    """
    Compact the database.
    """
    compact_sqlite_database(settings.database.path)
