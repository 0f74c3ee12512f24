"""Tests for the entity store repositories."""

from datetime import date, datetime, timedelta, timezone

import pytest

from financaar.db import FinanceRepository, StorageError
from financaar.models import (
    DEFAULT_CARD_COLOR,
    AccountKind,
    CategoryType,
    DebtDirection,
    DebtStatus,
    TransactionType,
)


class TestAccounts:
    def test_create_cash_account_drops_card_fields(self, repo):
        account = repo.accounts.create(
            "  Wallet ", AccountKind.CASH, color="#000000", last_four_digits="1234"
        )

        assert account.id is not None
        assert account.name == "Wallet"
        assert account.color is None
        assert account.last_four_digits is None

    def test_card_gets_default_color(self, repo):
        account = repo.accounts.create("Visa", AccountKind.CARD, last_four_digits="9876")

        stored = repo.accounts.get(account.id)
        assert stored.color == DEFAULT_CARD_COLOR
        assert stored.last_four_digits == "9876"
        assert stored.kind == AccountKind.CARD

    def test_rejects_empty_name(self, repo):
        with pytest.raises(ValueError):
            repo.accounts.create("   ", AccountKind.CASH)

    def test_rejects_bad_last_four_digits(self, repo):
        with pytest.raises(ValueError):
            repo.accounts.create("Visa", AccountKind.CARD, last_four_digits="12a4")

    def test_list_in_creation_order_and_by_kind(self, repo):
        repo.accounts.create("B", AccountKind.CASH)
        repo.accounts.create("A", AccountKind.CARD)
        repo.accounts.create("C", AccountKind.CASH)

        assert [a.name for a in repo.accounts.list_accounts()] == ["B", "A", "C"]
        assert [a.name for a in repo.accounts.list_accounts(AccountKind.CASH)] == ["B", "C"]

    def test_total_balance_breakdown(self, repo):
        repo.accounts.create("Wallet", AccountKind.CASH, balance=100)
        repo.accounts.create("Visa", AccountKind.CARD, balance=250.5)

        total = repo.get_total_balance()
        assert total.cash == 100
        assert total.cards == 250.5
        assert total.total == 350.5

    def test_total_balance_is_stable_between_reads(self, repo):
        repo.accounts.create("Wallet", AccountKind.CASH, balance=42)

        assert repo.get_total_balance() == repo.get_total_balance()

    def test_empty_total_balance_is_zero(self, repo):
        assert repo.get_total_balance().total == 0

    def test_update_descriptive_fields(self, repo):
        account = repo.accounts.create("Wallet", AccountKind.CASH)

        updated = repo.accounts.update(account.id, name="Pocket", emoji="💰")
        assert updated.name == "Pocket"
        assert updated.emoji == "💰"

    def test_balance_is_not_updatable(self, repo):
        account = repo.accounts.create("Wallet", AccountKind.CASH)

        with pytest.raises(ValueError):
            repo.accounts.update(account.id, balance=1000)

    def test_update_missing_account_returns_none(self, repo):
        assert repo.accounts.update(999, name="Ghost") is None

    def test_delete(self, repo):
        account = repo.accounts.create("Wallet", AccountKind.CASH)

        assert repo.accounts.delete(account.id)
        assert repo.accounts.get(account.id) is None
        assert not repo.accounts.delete(account.id)


class TestCategories:
    def test_defaults_seeded_once(self, repo, db_path):
        assert len(repo.categories.list_categories(CategoryType.INCOME)) == 5
        assert len(repo.categories.list_categories(CategoryType.EXPENSE)) == 10

        reopened = FinanceRepository(db_path)
        assert len(reopened.categories.list_categories()) == 15
        assert reopened.categories.seed_defaults() == 0

    def test_create_update_delete(self, repo):
        category = repo.categories.create("Pets", CategoryType.EXPENSE, "paw", "#123456")

        updated = repo.categories.update(category.id, name="Pet Care")
        assert updated.name == "Pet Care"
        assert updated.icon == "paw"
        assert repo.categories.list_categories()[-1].id == category.id

        assert repo.categories.delete(category.id)
        assert repo.categories.get(category.id) is None

    def test_reset_detaches_transactions(self, repo, ledger, cash, expense_categories, income_category):
        ledger.record_transaction(TransactionType.INCOME, 100, "Pay", cash.id, income_category.id)
        txn = ledger.record_transaction(
            TransactionType.EXPENSE, 10, "Snack", cash.id, expense_categories[0].id
        )
        repo.categories.create("Custom", CategoryType.EXPENSE, "star", "#111111")

        assert repo.categories.reset() == 15
        names = [c.name for c in repo.categories.list_categories()]
        assert "Custom" not in names
        assert repo.transactions.get(txn.id).category_id is None

    def test_stats(self, repo, ledger, cash, income_category, expense_categories):
        food = expense_categories[0]
        ledger.record_transaction(TransactionType.INCOME, 100, "Pay", cash.id, income_category.id)
        ledger.record_transaction(TransactionType.EXPENSE, 10, "Lunch", cash.id, food.id)
        ledger.record_transaction(TransactionType.EXPENSE, 15, "Dinner", cash.id, food.id)

        stats = repo.categories.get_stats(food.id, since=date(2000, 1, 1))
        assert stats == {"transaction_count": 2, "total_amount": 25}


class TestTransactions:
    def test_list_newest_first(self, repo, cash, income_category):
        for day in (3, 1, 2):
            repo.transactions.insert(
                TransactionType.INCOME, 10, f"Day {day}", cash.id,
                category_id=income_category.id, date=datetime(2026, 1, day, 12),
            )

        titles = [t.title for t in repo.transactions.list_transactions()]
        assert titles == ["Day 3", "Day 2", "Day 1"]

    def test_list_includes_category_name(self, repo, cash, income_category):
        repo.transactions.insert(
            TransactionType.INCOME, 10, "Pay", cash.id, category_id=income_category.id
        )

        assert repo.transactions.list_transactions()[0].category_name == income_category.name

    def test_filters(self, repo, cash, card, income_category):
        repo.transactions.insert(
            TransactionType.INCOME, 10, "Pay", cash.id,
            category_id=income_category.id, date=date(2026, 1, 5),
        )
        repo.transactions.insert(
            TransactionType.TRANSFER, 5, "Move", card.id,
            to_account_id=cash.id, date=date(2026, 2, 5),
        )
        repo.transactions.insert(
            TransactionType.TRANSFER, 5, "Elsewhere", card.id,
            to_account_id=card.id, date=date(2026, 3, 5),
        )

        by_account = repo.transactions.list_transactions(account_id=cash.id)
        assert [t.title for t in by_account] == ["Move", "Pay"]

        by_type = repo.transactions.list_transactions(type=TransactionType.TRANSFER)
        assert len(by_type) == 2

        in_range = repo.transactions.list_transactions(
            start_date=date(2026, 2, 1), end_date=date(2026, 2, 28)
        )
        assert [t.title for t in in_range] == ["Move"]

        assert len(repo.transactions.list_transactions(limit=1)) == 1

    def test_rejects_non_positive_limit(self, repo):
        with pytest.raises(ValueError):
            repo.transactions.list_transactions(limit=0)

    def test_check_constraint_surfaces_as_storage_error(self, repo, cash, income_category):
        with pytest.raises(StorageError):
            repo.transactions.insert(
                TransactionType.INCOME, -5, "Negative", cash.id, category_id=income_category.id
            )


class TestDebts:
    def test_totals_count_active_only(self, repo, ledger, cash):
        ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 200, cash.id)
        lent = ledger.create_debt_with_transaction(DebtDirection.GAVE, "Sam", 50, cash.id)
        ledger.create_debt_with_transaction(DebtDirection.GAVE, "Kim", 30, cash.id)
        repo.debts.update_status(lent.id, DebtStatus.COMPLETED)

        totals = repo.debts.get_totals()
        assert totals.owed_by_user == 200
        assert totals.owed_to_user == 30

    def test_list_filters(self, repo, ledger, cash):
        ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 200, cash.id)
        ledger.create_debt_with_transaction(DebtDirection.GAVE, "Sam", 50, cash.id)

        got = repo.debts.list_debts(direction=DebtDirection.GOT)
        assert [d.person_name for d in got] == ["Alex"]
        assert len(repo.debts.list_debts(status=DebtStatus.ACTIVE)) == 2


class TestSettings:
    def test_upsert_and_flags(self, repo):
        assert repo.settings.get("theme", "light") == "light"
        repo.settings.set("theme", "dark")
        repo.settings.set("theme", "sepia")
        assert repo.settings.get("theme") == "sepia"

        assert not repo.settings.is_setup_completed()
        repo.settings.set_setup_completed()
        assert repo.settings.is_setup_completed()
        assert repo.settings.clear_setup_flag()
        assert not repo.settings.is_setup_completed()

        repo.settings.set_user_name("Dana")
        assert repo.settings.get_user_name() == "Dana"


class TestMaintenance:
    def test_clear_all_data_keeps_categories(self, repo, ledger, cash, income_category):
        ledger.record_transaction(TransactionType.INCOME, 100, "Pay", cash.id, income_category.id)
        ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 20, cash.id)
        repo.settings.set_user_name("Dana")

        repo.clear_all_data()

        assert repo.list_accounts() == []
        assert repo.transactions.list_transactions() == []
        assert repo.debts.list_debts() == []
        assert repo.settings.all() == []
        assert len(repo.categories.list_categories()) == 15

    def test_clear_accounts_by_kind(self, repo, ledger, cash, card, income_category):
        ledger.record_transaction(TransactionType.INCOME, 100, "Pay", card.id, income_category.id)

        assert repo.accounts.clear(AccountKind.CARD) == 1
        assert [a.name for a in repo.list_accounts()] == ["Cash"]
        assert repo.transactions.list_transactions() == []

    def test_clear_transactions_keeps_debts(self, repo, ledger, cash):
        debt = ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 20, cash.id)

        repo.transactions.clear()

        assert repo.transactions.list_transactions() == []
        assert repo.debts.get(debt.id).transaction_id is None


class TestTransactionDates:
    def test_aware_date_stored_as_local_calendar_day(self, repo, cash, income_category):
        aware = datetime(2026, 6, 1, 1, 0, tzinfo=timezone(timedelta(hours=4)))
        local = aware.astimezone().replace(tzinfo=None)

        txn = repo.transactions.insert(
            TransactionType.INCOME, 10, "Pay", cash.id,
            category_id=income_category.id, date=aware,
        )

        stored = repo.transactions.get(txn.id)
        assert stored.date == local
        assert stored.date.tzinfo is None
        same_day = repo.transactions.list_transactions(
            start_date=local.date(), end_date=local.date()
        )
        assert [t.id for t in same_day] == [txn.id]

    def test_plain_date_falls_at_midnight(self, repo, cash, income_category):
        txn = repo.transactions.insert(
            TransactionType.INCOME, 10, "Pay", cash.id,
            category_id=income_category.id, date=date(2026, 6, 1),
        )

        assert repo.transactions.get(txn.id).date == datetime(2026, 6, 1)
