from typing import Annotated

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import mapped_column

PrimaryKeyInt = Annotated[
    int,
    mapped_column(primary_key=True, autoincrement=True),
]
# Composite string keys built by vaultsync.identity
PrimaryKeyId = Annotated[
    str,
    mapped_column(String(256), primary_key=True),
]
ForeignKeyVaultId = Annotated[
    str,
    mapped_column(ForeignKey("lending_vaults.id"), index=True),
]
ForeignKeyLenderId = Annotated[
    str,
    mapped_column(ForeignKey("lenders.id"), index=True),
]
ForeignKeyBorrowerId = Annotated[
    str,
    mapped_column(ForeignKey("borrowers.id"), index=True),
]
ForeignKeyLoanId = Annotated[
    str,
    mapped_column(ForeignKey("loans.id"), index=True),
]
ForeignKeyRoleId = Annotated[
    str,
    mapped_column(ForeignKey("access_control_roles.id"), index=True),
]
