"""
Opens the vault ledger named in the config file, creating it on first use.
"""

from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from vaultsync.config import settings
from vaultsync.database.operations import (
    create_new_sqlite_database,
    get_alembic_config,
    get_scoped_sqlite_session,
)
from vaultsync.logging import logger

if not settings.database.path.exists():
    create_new_sqlite_database(db_path=settings.database.path)

db_session = get_scoped_sqlite_session(database_path=settings.database.path)


def _get_current_revision() -> str | None:
    with db_session() as session:
        return MigrationContext.configure(connection=session.connection()).get_current_revision()


current_database_version = _get_current_revision()
latest_database_version = ScriptDirectory.from_config(get_alembic_config()).get_current_head()

if current_database_version != latest_database_version:
    logger.warning(
        f"The vault ledger at {settings.database.path} is at schema revision "
        f"{current_database_version}, but this version of vaultsync expects "
        f"{latest_database_version}. Run 'vaultsync database upgrade' before syncing vaults."
    )
