from typing import Annotated, ClassVar

from sqlalchemy import BigInteger as SqlBigInteger
from sqlalchemy import Dialect, String, Text
from sqlalchemy.orm import DeclarativeBase, mapped_column
from sqlalchemy.types import TypeDecorator


class IntMappedToString(TypeDecorator[int]):
    """
    Vault balances are uint256 values, which overflow every native SQL integer type. They are stored
    as decimal strings in a VARCHAR(78), wide enough for 2**256 - 1.
    """

    cache_ok = True
    impl = String(78)

    def process_bind_param(
        self,
        value: int | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> str | None:
        if value is None:
            return None
        assert value >= 0, "ledger quantities are never negative"
        return str(value)

    def process_result_value(
        self,
        value: str | None,
        dialect: Dialect,  # noqa: ARG002
    ) -> int | None:
        return None if value is None else int(value)


Address = Annotated[str, mapped_column(String(42))]
TransactionHash = Annotated[str, mapped_column(String(66))]
RoleHash = Annotated[str, mapped_column(String(66))]
BigInteger = Annotated[int, IntMappedToString]
# Block numbers and timestamps fit in 8 bytes
Timestamp = Annotated[int, mapped_column(SqlBigInteger)]
BlockNumber = Annotated[int, mapped_column(SqlBigInteger)]


class Base(DeclarativeBase):
    type_annotation_map: ClassVar = {
        # keys must be Python types (native or Annotated)
        # values must be SQLAlchemy types
        BigInteger: IntMappedToString,
        str: Text,
    }
