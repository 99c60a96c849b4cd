"""
Ledger store: keyed find/insert/get-or-create/update over the vault tables.

The reconciler only talks to the `LedgerStore` protocol. `SqlLedgerStore` implements it on a
SQLAlchemy session, and wraps each event in a savepoint so that all of the event's writes are kept
or none are.
"""

from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import Any, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vaultsync.database.models import Base
from vaultsync.exceptions.store import LedgerStoreError

RowT = TypeVar("RowT", bound=Base)


class LedgerStore(Protocol):
    def find(self, table: type[RowT], key: str) -> RowT | None:
        """
        Return the row with the given primary key, or None.
        """
        ...

    def insert(self, row: RowT) -> RowT:
        """
        Add a new row. The caller guarantees that no row with the same key exists.
        """
        ...

    def get_or_create(
        self,
        table: type[RowT],
        key: str,
        create: Callable[[], RowT],
    ) -> RowT:
        """
        Return the existing row for the key, or insert the row built by `create`. An existing row
        is never modified.
        """
        ...

    def update(self, row: RowT, **values: Any) -> RowT:
        """
        Set the given column values on an existing row.
        """
        ...

    def atomic(self) -> Any:
        """
        Context manager grouping writes so they are applied together or discarded together.
        """
        ...


class SqlLedgerStore:
    """
    A `LedgerStore` backed by a SQLAlchemy session. Committing the session is left to the caller.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def find(self, table: type[RowT], key: str) -> RowT | None:
        try:
            return self.session.get(table, key)
        except SQLAlchemyError as exc:
            raise LedgerStoreError(
                operation="find",
                table=table.__tablename__,
                key=key,
            ) from exc

    def insert(self, row: RowT) -> RowT:
        try:
            self.session.add(row)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise LedgerStoreError(
                operation="insert",
                table=row.__tablename__,
                key=getattr(row, "id", None),
            ) from exc
        return row

    def get_or_create(
        self,
        table: type[RowT],
        key: str,
        create: Callable[[], RowT],
    ) -> RowT:
        if (row := self.find(table, key)) is None:
            row = self.insert(create())
        return row

    def update(self, row: RowT, **values: Any) -> RowT:
        for column, value in values.items():
            if column not in row.__mapper__.columns:
                msg = f"{row.__tablename__} has no column {column}"
                raise ValueError(msg)
            setattr(row, column, value)
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            raise LedgerStoreError(
                operation="update",
                table=row.__tablename__,
                key=getattr(row, "id", None),
            ) from exc
        return row

    @contextmanager
    def atomic(self) -> Generator[None, None, None]:
        """
        Run the enclosed writes inside a SAVEPOINT. Any exception rolls back every write made in the
        block, including changes to rows already loaded into the session.
        """

        try:
            savepoint = self.session.begin_nested()
        except SQLAlchemyError as exc:
            raise LedgerStoreError(operation="begin", table="*") from exc

        try:
            yield
        except BaseException:
            if savepoint.is_active:
                savepoint.rollback()
            raise
        else:
            try:
                savepoint.commit()
            except SQLAlchemyError as exc:
                raise LedgerStoreError(operation="commit", table="*") from exc
