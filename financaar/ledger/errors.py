"""
Ledger error taxonomy.

Every failure of a ledger operation is a LedgerError carrying a
LedgerErrorCode. The string form starts with the code name, so callers
that match on substrings such as "INSUFFICIENT_FUNDS" keep working, while
new callers can inspect ``error.code`` and the structured fields.
"""

from enum import Enum
from typing import Optional


class LedgerErrorCode(str, Enum):
    # Validation: caller-correctable
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_TITLE = "INVALID_TITLE"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    INVALID_TRANSFER = "INVALID_TRANSFER"
    INVALID_DEBT = "INVALID_DEBT"
    INVALID_INPUT = "INVALID_INPUT"
    # Referential: stale caller state
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    DESTINATION_ACCOUNT_NOT_FOUND = "DESTINATION_ACCOUNT_NOT_FOUND"
    DEBT_NOT_FOUND = "DEBT_NOT_FOUND"
    DEBT_NOT_ACTIVE = "DEBT_NOT_ACTIVE"
    DEBT_STILL_ACTIVE = "DEBT_STILL_ACTIVE"
    # Business rule
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    # Storage failure after rollback
    DATABASE_ERROR = "DATABASE_ERROR"


class LedgerError(Exception):
    """Base class for ledger failures."""

    def __init__(self, code: LedgerErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code.value}: {message}")


class ValidationError(LedgerError):
    """Input rejected before any data was touched."""


class NotFoundError(LedgerError):
    """A referenced account or debt does not exist (or is no longer usable)."""


class InsufficientFundsError(LedgerError):
    """The source account cannot cover the amount."""

    def __init__(self, account_name: str, balance: float, amount: float):
        self.account_name = account_name
        self.balance = balance
        self.amount = amount
        super().__init__(
            LedgerErrorCode.INSUFFICIENT_FUNDS,
            f'Account "{account_name}" has {balance:.2f} '
            f"but the operation needs {amount:.2f}",
        )


class DatabaseError(LedgerError):
    """The store failed mid-operation; all writes were rolled back."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        detail = f"{operation} failed"
        if cause is not None:
            detail += f": {cause}"
        super().__init__(LedgerErrorCode.DATABASE_ERROR, detail)
