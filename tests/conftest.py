from datetime import date

import pytest

from financaar.db import FinanceRepository
from financaar.ledger import LedgerEngine
from financaar.models import AccountKind, CategoryType
from financaar.services import AnalyticsService


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "financaar.db"


@pytest.fixture
def repo(db_path):
    return FinanceRepository(db_path)


@pytest.fixture
def ledger(repo):
    return LedgerEngine(repo)


@pytest.fixture
def analytics(repo):
    return AnalyticsService(repo)


@pytest.fixture
def today():
    return date(2026, 6, 15)


@pytest.fixture
def income_category(repo):
    return repo.categories.list_categories(CategoryType.INCOME)[0]


@pytest.fixture
def expense_categories(repo):
    return repo.categories.list_categories(CategoryType.EXPENSE)


@pytest.fixture
def cash(ledger):
    return ledger.create_account("Cash", AccountKind.CASH, balance=0)


@pytest.fixture
def card(ledger):
    return ledger.create_account(
        "Debit Card", AccountKind.CARD, balance=1000, last_four_digits="1234"
    )
