import pathlib
import sqlite3

from alembic import command
from alembic.config import Config
from sqlalchemy import URL, Engine, create_engine, event
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from vaultsync.config import settings
from vaultsync.database.models import Base
from vaultsync.exceptions.database import BackupExists
from vaultsync.logging import logger


def sqlite_url(db_path: pathlib.Path) -> URL:
    return URL.create(drivername="sqlite", database=str(db_path.absolute()))


def _run_outside_transaction(db_path: pathlib.Path, *statements: str) -> list[object]:
    """
    Execute maintenance statements that SQLite refuses to run inside a transaction, returning the
    first column of each result.
    """

    engine = create_engine(sqlite_url(db_path), isolation_level="AUTOCOMMIT")
    try:
        with engine.connect() as connection:
            values: list[object] = []
            for statement in statements:
                result = connection.exec_driver_sql(statement)
                values.append(result.scalar() if result.returns_rows else None)
            return values
    finally:
        engine.dispose()


def backup_sqlite_database(db_path: pathlib.Path) -> pathlib.Path:
    """
    Write a consistent copy of the ledger next to the database file, returning its path.
    """

    assert db_path.exists()

    backup_path = db_path.with_suffix(f"{db_path.suffix}.bak")
    if backup_path.exists():
        raise BackupExists(path=backup_path)

    # Fold the write-ahead log into the main file so the copy includes every committed event
    _run_outside_transaction(db_path, "PRAGMA wal_checkpoint(FULL);")
    with sqlite3.connect(db_path) as source, sqlite3.connect(backup_path) as target:
        source.backup(target=target)

    logger.info(f"Backed up the vault ledger to {backup_path}")
    return backup_path


def create_new_sqlite_database(db_path: pathlib.Path) -> None:
    """
    Create an empty ledger with every table and stamp it with the latest schema revision.
    """

    db_path.parent.mkdir(parents=True, exist_ok=True)

    (journal_mode, _) = _run_outside_transaction(
        db_path,
        "PRAGMA journal_mode=WAL;",
        "PRAGMA auto_vacuum=FULL;",
    )
    assert journal_mode == "wal"

    engine = create_engine(sqlite_url(db_path))
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()
    _run_outside_transaction(db_path, "VACUUM;")

    command.stamp(get_alembic_config(db_path), "head")
    logger.info(f"Initialized a new vault ledger at {db_path}")


def compact_sqlite_database(db_path: pathlib.Path) -> None:
    _run_outside_transaction(db_path, "VACUUM;")
    logger.info(f"Compacted the vault ledger at {db_path}")


def upgrade_existing_sqlite_database() -> None:
    command.upgrade(get_alembic_config(), "head")
    logger.info(f"Upgraded the vault ledger at {settings.database.path} to the latest revision")


def create_session_engine(url: URL | str) -> Engine:
    """
    Create an engine whose transactions are controlled by SQLAlchemy instead of the sqlite3 driver.

    The driver delays BEGIN until the first DML statement, which breaks SAVEPOINT rollback. The
    listeners disable that behavior and emit BEGIN explicitly, following the recipe in the
    SQLAlchemy SQLite dialect documentation.
    """

    engine = create_engine(url)

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(
        dbapi_connection,  # noqa: ANN001
        connection_record,  # noqa: ANN001, ARG001
    ) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection) -> None:  # noqa: ANN001
        connection.exec_driver_sql("BEGIN")

    return engine


def get_scoped_sqlite_session(database_path: pathlib.Path) -> scoped_session[Session]:
    return scoped_session(
        session_factory=sessionmaker(bind=create_session_engine(sqlite_url(database_path)))
    )


def get_alembic_config(db_path: pathlib.Path | None = None) -> Config:
    cfg = Config()
    cfg.set_main_option(
        "sqlalchemy.url",
        sqlite_url(db_path or settings.database.path).render_as_string(hide_password=False),
    )
    cfg.set_main_option("script_location", "vaultsync:migrations")
    return cfg
