from .engine import LedgerEngine
from .errors import (
    DatabaseError,
    InsufficientFundsError,
    LedgerError,
    LedgerErrorCode,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "DatabaseError",
    "InsufficientFundsError",
    "LedgerEngine",
    "LedgerError",
    "LedgerErrorCode",
    "NotFoundError",
    "ValidationError",
]
