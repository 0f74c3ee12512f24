"""
Database models for the Financaar ledger.

Row-level dataclasses for accounts, categories, transactions, debts and
settings, with conversions from SQLite rows and to plain dictionaries.
"""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from financaar.models import (
    DEFAULT_CARD_COLOR,
    AccountKind,
    CategoryType,
    DebtDirection,
    DebtStatus,
    TransactionStatus,
    TransactionType,
)


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    # CURRENT_TIMESTAMP defaults use a space separator
    return datetime.fromisoformat(value.replace(" ", "T", 1))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Account:
    """
    A named store of money.

    Cash accounts ignore ``color`` and ``last_four_digits``; card accounts
    fall back to the default card color when none was chosen.
    """

    id: Optional[int]
    name: str
    balance: float
    kind: AccountKind
    color: Optional[str] = None
    emoji: Optional[str] = None
    description: Optional[str] = None
    last_four_digits: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.name:
            self.name = self.name.strip()
        if self.kind == AccountKind.CARD and not self.color:
            self.color = DEFAULT_CARD_COLOR

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "balance": self.balance,
            "kind": self.kind.value,
            "color": self.color,
            "emoji": self.emoji,
            "description": self.description,
            "last_four_digits": self.last_four_digits,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Account":
        """Create an Account from a database row."""
        kind = AccountKind(row["type"])
        is_card = kind == AccountKind.CARD
        return cls(
            id=row["id"],
            name=row["name"],
            balance=row["balance"],
            kind=kind,
            color=row["color"] if is_card else None,
            emoji=row["emoji"],
            description=row["description"],
            last_four_digits=row["last_four_digits"] if is_card else None,
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )


@dataclass
class Category:
    """A label classifying income or expense transactions."""

    id: Optional[int]
    name: str
    type: CategoryType
    icon: str
    color: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "icon": self.icon,
            "color": self.color,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Category":
        """Create a Category from a database row."""
        return cls(
            id=row["id"],
            name=row["name"],
            type=CategoryType(row["type"]),
            icon=row["icon"],
            color=row["color"],
            created_at=_parse_dt(row["created_at"]),
        )


@dataclass
class Transaction:
    """
    One entry in the append-only ledger.

    ``category_id`` is absent for transfers and for the synthetic
    transactions created by debts; ``to_account_id`` is set for transfers only.
    """

    id: Optional[int]
    type: TransactionType
    amount: float
    title: str
    account_id: int
    date: datetime
    category_id: Optional[int] = None
    to_account_id: Optional[int] = None
    description: Optional[str] = None
    status: TransactionStatus = TransactionStatus.SUCCESS
    created_at: Optional[datetime] = None
    category_name: Optional[str] = None  # Joined for display

    @property
    def is_successful(self) -> bool:
        return self.status == TransactionStatus.SUCCESS

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "type": self.type.value,
            "amount": self.amount,
            "title": self.title,
            "description": self.description,
            "category_id": self.category_id,
            "category_name": self.category_name,
            "account_id": self.account_id,
            "to_account_id": self.to_account_id,
            "date": self.date.isoformat(),
            "created_at": _iso(self.created_at),
            "status": self.status.value,
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Transaction":
        """Create a Transaction from a database row."""
        keys = row.keys()
        return cls(
            id=row["id"],
            type=TransactionType(row["type"]),
            amount=row["amount"],
            title=row["title"],
            description=row["description"],
            category_id=row["category_id"],
            account_id=row["account_id"],
            to_account_id=row["to_account_id"],
            date=_parse_dt(row["date"]),
            created_at=_parse_dt(row["created_at"]),
            status=TransactionStatus(row["status"]),
            category_name=row["category_name"] if "category_name" in keys else None,
        )


@dataclass
class Debt:
    """Money borrowed from (``got``) or lent to (``gave``) a named person."""

    id: Optional[int]
    direction: DebtDirection
    person_name: str
    amount: float
    date: datetime
    account_id: Optional[int] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: DebtStatus = DebtStatus.ACTIVE
    transaction_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == DebtStatus.ACTIVE

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "direction": self.direction.value,
            "person_name": self.person_name,
            "amount": self.amount,
            "description": self.description,
            "account_id": self.account_id,
            "date": self.date.isoformat(),
            "due_date": _iso(self.due_date),
            "status": self.status.value,
            "transaction_id": self.transaction_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Debt":
        """Create a Debt from a database row."""
        return cls(
            id=row["id"],
            direction=DebtDirection(row["type"]),
            person_name=row["person_name"],
            amount=row["amount"],
            description=row["description"],
            account_id=row["account_id"],
            date=_parse_dt(row["date"]),
            due_date=_parse_dt(row["due_date"]),
            status=DebtStatus(row["status"]),
            transaction_id=row["transaction_id"],
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )


@dataclass
class Setting:
    key: str
    value: str
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {"key": self.key, "value": self.value, "updated_at": _iso(self.updated_at)}

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Setting":
        return cls(
            key=row["key"],
            value=row["value"],
            updated_at=_parse_dt(row["updated_at"]),
        )


@dataclass
class TotalBalance:
    """Sum of account balances split by account kind."""

    cash: float = 0.0
    cards: float = 0.0
    total: float = 0.0

    def to_dict(self) -> dict:
        return {"cash": self.cash, "cards": self.cards, "total": self.total}


@dataclass
class DebtTotals:
    """Outstanding amounts across active debts."""

    owed_by_user: float = 0.0  # active 'got' debts
    owed_to_user: float = 0.0  # active 'gave' debts

    def to_dict(self) -> dict:
        return {"owed_by_user": self.owed_by_user, "owed_to_user": self.owed_to_user}
