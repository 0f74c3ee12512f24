"""Tests for the ledger engine: preconditions, balance effects and atomicity."""

import pytest

from financaar.ledger import (
    DatabaseError,
    InsufficientFundsError,
    LedgerEngine,
    LedgerError,
    LedgerErrorCode,
    NotFoundError,
    ValidationError,
)
from financaar.models import AccountKind, DebtDirection, DebtStatus, TransactionType


def balance(repo, account):
    return repo.accounts.get(account.id).balance


def fund(ledger, account, amount, category):
    ledger.record_transaction(TransactionType.INCOME, amount, "Top up", account.id, category.id)


def test_engine_requires_repository():
    with pytest.raises(RuntimeError, match="Database is not initialized"):
        LedgerEngine(None)


class TestAccounts:
    def test_create_with_opening_balance(self, ledger, repo):
        account = ledger.create_account("Savings", AccountKind.CASH, balance=150)

        assert repo.accounts.get(account.id).balance == 150

    def test_negative_opening_balance_rejected(self, ledger, repo):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_account("Savings", balance=-1)

        assert exc_info.value.code == LedgerErrorCode.INVALID_AMOUNT
        assert repo.list_accounts() == []

    def test_empty_name_rejected(self, ledger):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_account("  ")

        assert exc_info.value.code == LedgerErrorCode.INVALID_INPUT

    def test_update_details(self, ledger, cash):
        updated = ledger.update_account_details(cash.id, name="Pocket money")

        assert updated.name == "Pocket money"

    def test_update_missing_account(self, ledger):
        with pytest.raises(NotFoundError) as exc_info:
            ledger.update_account_details(404, name="Ghost")

        assert exc_info.value.code == LedgerErrorCode.ACCOUNT_NOT_FOUND

    def test_delete_unused_account(self, ledger, repo, cash):
        ledger.delete_account(cash.id)

        assert repo.accounts.get(cash.id) is None

    def test_delete_account_with_history_fails(self, ledger, repo, cash, income_category):
        fund(ledger, cash, 10, income_category)

        with pytest.raises(DatabaseError):
            ledger.delete_account(cash.id)

        assert repo.accounts.get(cash.id) is not None


class TestRecordTransaction:
    def test_income_then_expense(self, ledger, repo, cash, income_category, expense_categories):
        ledger.record_transaction(TransactionType.INCOME, 500, "Salary", cash.id, income_category.id)
        assert balance(repo, cash) == 500

        with pytest.raises(InsufficientFundsError) as exc_info:
            ledger.record_transaction(
                TransactionType.EXPENSE, 600, "Rent", cash.id, expense_categories[0].id
            )

        assert balance(repo, cash) == 500
        error = exc_info.value
        assert error.code == LedgerErrorCode.INSUFFICIENT_FUNDS
        assert "INSUFFICIENT_FUNDS" in str(error)
        assert error.account_name == "Cash"
        assert error.balance == 500
        assert error.amount == 600

    def test_insufficient_funds_leaves_no_row(self, ledger, repo, expense_categories):
        account = ledger.create_account("Wallet", balance=50)

        with pytest.raises(InsufficientFundsError):
            ledger.record_transaction(
                TransactionType.EXPENSE, 100, "Shoes", account.id, expense_categories[0].id
            )

        assert balance(repo, account) == 50
        assert repo.transactions.list_transactions() == []

    def test_expense_of_exact_balance_allowed(self, ledger, repo, expense_categories):
        account = ledger.create_account("Wallet", balance=50)

        ledger.record_transaction(
            TransactionType.EXPENSE, 50, "Shoes", account.id, expense_categories[0].id
        )

        assert balance(repo, account) == 0

    def test_debt_payment_reduces_balance(self, ledger, repo, card, expense_categories):
        ledger.record_transaction(
            TransactionType.DEBT_PAYMENT, 300, "Loan installment", card.id, expense_categories[0].id
        )

        assert balance(repo, card) == 700

    @pytest.mark.parametrize("amount", [0, -5, float("nan"), float("inf"), "10", True, None])
    def test_invalid_amount(self, ledger, repo, card, income_category, amount):
        with pytest.raises(ValidationError) as exc_info:
            ledger.record_transaction(TransactionType.INCOME, amount, "Pay", card.id, income_category.id)

        assert exc_info.value.code == LedgerErrorCode.INVALID_AMOUNT
        assert balance(repo, card) == 1000

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_invalid_title(self, ledger, card, income_category, title):
        with pytest.raises(ValidationError) as exc_info:
            ledger.record_transaction(TransactionType.INCOME, 10, title, card.id, income_category.id)

        assert exc_info.value.code == LedgerErrorCode.INVALID_TITLE

    def test_amount_checked_before_title(self, ledger, card, income_category):
        with pytest.raises(ValidationError) as exc_info:
            ledger.record_transaction(TransactionType.INCOME, 0, "", card.id, income_category.id)

        assert exc_info.value.code == LedgerErrorCode.INVALID_AMOUNT

    def test_missing_account(self, ledger, income_category):
        with pytest.raises(NotFoundError) as exc_info:
            ledger.record_transaction(TransactionType.INCOME, 10, "Pay", 999, income_category.id)

        assert exc_info.value.code == LedgerErrorCode.ACCOUNT_NOT_FOUND

    @pytest.mark.parametrize("category_id", [None, 999])
    def test_invalid_category(self, ledger, repo, card, category_id):
        with pytest.raises(ValidationError) as exc_info:
            ledger.record_transaction(TransactionType.EXPENSE, 10, "Lunch", card.id, category_id)

        assert exc_info.value.code == LedgerErrorCode.INVALID_CATEGORY
        assert balance(repo, card) == 1000

    def test_debt_transaction_types_not_recordable(self, ledger, card):
        with pytest.raises(ValidationError) as exc_info:
            ledger.record_transaction(TransactionType.BORROWED, 10, "Loan", card.id)

        assert exc_info.value.code == LedgerErrorCode.INVALID_DEBT

    def test_transaction_row_stored(self, ledger, repo, card, expense_categories):
        txn = ledger.record_transaction(
            TransactionType.EXPENSE, 12.5, " Coffee ", card.id, expense_categories[1].id,
            description="Flat white",
        )

        stored = repo.transactions.get(txn.id)
        assert stored.title == "Coffee"
        assert stored.amount == 12.5
        assert stored.category_name == expense_categories[1].name
        assert stored.is_successful


class TestTransfers:
    def test_conservation(self, ledger, repo, cash, card):
        before = repo.get_total_balance().total

        txn = ledger.record_transaction(
            TransactionType.TRANSFER, 250, "Withdraw", card.id, to_account_id=cash.id
        )

        assert balance(repo, card) == 750
        assert balance(repo, cash) == 250
        assert repo.get_total_balance().total == before
        stored = repo.transactions.get(txn.id)
        assert stored.to_account_id == cash.id
        assert stored.category_id is None

    def test_category_ignored_for_transfers(self, ledger, card, cash):
        txn = ledger.record_transaction(
            TransactionType.TRANSFER, 10, "Withdraw", card.id, category_id=999, to_account_id=cash.id
        )

        assert txn.category_id is None

    @pytest.mark.parametrize("destination", ["same", None])
    def test_invalid_destination(self, ledger, card, destination):
        to_account_id = card.id if destination == "same" else None

        with pytest.raises(ValidationError) as exc_info:
            ledger.record_transaction(
                TransactionType.TRANSFER, 10, "Loop", card.id, to_account_id=to_account_id
            )

        assert exc_info.value.code == LedgerErrorCode.INVALID_TRANSFER

    def test_missing_destination(self, ledger, repo, card):
        with pytest.raises(NotFoundError) as exc_info:
            ledger.record_transaction(TransactionType.TRANSFER, 10, "Away", card.id, to_account_id=999)

        assert exc_info.value.code == LedgerErrorCode.DESTINATION_ACCOUNT_NOT_FOUND
        assert balance(repo, card) == 1000

    def test_insufficient_funds(self, ledger, repo, cash, card):
        with pytest.raises(InsufficientFundsError):
            ledger.record_transaction(TransactionType.TRANSFER, 1, "Empty", cash.id, to_account_id=card.id)

        assert balance(repo, cash) == 0
        assert balance(repo, card) == 1000

    def test_failure_mid_transfer_rolls_back(self, ledger, repo, cash, card, monkeypatch):
        original = repo.accounts.set_balance

        def fail_on_destination(account_id, balance, conn=None):
            if account_id == cash.id:
                raise RuntimeError("disk unplugged")
            return original(account_id, balance, conn=conn)

        monkeypatch.setattr(repo.accounts, "set_balance", fail_on_destination)

        with pytest.raises(DatabaseError) as exc_info:
            ledger.record_transaction(TransactionType.TRANSFER, 100, "Withdraw", card.id, to_account_id=cash.id)

        assert exc_info.value.code == LedgerErrorCode.DATABASE_ERROR
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        monkeypatch.undo()
        assert balance(repo, card) == 1000
        assert balance(repo, cash) == 0
        assert repo.transactions.list_transactions() == []


class TestDebts:
    def test_round_trip_got(self, ledger, repo, cash):
        debt = ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 200, cash.id)

        assert balance(repo, cash) == 200
        assert debt.status == DebtStatus.ACTIVE
        linked = repo.transactions.get(debt.transaction_id)
        assert linked.type == TransactionType.BORROWED
        assert linked.title == "Borrowed from Alex"
        assert linked.category_id is None

        settlement = ledger.repay_debt(debt.id, cash.id)

        assert balance(repo, cash) == 0
        assert settlement.type == TransactionType.DEBT_PAYMENT
        assert settlement.amount == 200
        assert repo.debts.get(debt.id).status == DebtStatus.COMPLETED

    def test_round_trip_gave(self, ledger, repo, card, cash):
        debt = ledger.create_debt_with_transaction(DebtDirection.GAVE, "Sam", 300, card.id)

        assert balance(repo, card) == 700
        assert repo.transactions.get(debt.transaction_id).type == TransactionType.LENT

        # Collection may land on a different account
        settlement = ledger.repay_debt(debt.id, cash.id)

        assert settlement.type == TransactionType.INCOME
        assert balance(repo, cash) == 300
        assert repo.debts.get(debt.id).status == DebtStatus.COMPLETED

    def test_lending_requires_funds(self, ledger, repo, cash):
        with pytest.raises(InsufficientFundsError):
            ledger.create_debt_with_transaction(DebtDirection.GAVE, "Sam", 10, cash.id)

        assert repo.debts.list_debts() == []
        assert repo.transactions.list_transactions() == []

    def test_debt_requires_person(self, ledger, cash):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_debt_with_transaction(DebtDirection.GOT, " ", 10, cash.id)

        assert exc_info.value.code == LedgerErrorCode.INVALID_DEBT

    def test_debt_requires_account(self, ledger):
        with pytest.raises(NotFoundError) as exc_info:
            ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 10, 999)

        assert exc_info.value.code == LedgerErrorCode.ACCOUNT_NOT_FOUND

    def test_repay_missing_debt(self, ledger, cash):
        with pytest.raises(NotFoundError) as exc_info:
            ledger.repay_debt(999, cash.id)

        assert exc_info.value.code == LedgerErrorCode.DEBT_NOT_FOUND

    def test_repay_twice(self, ledger, cash):
        debt = ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 20, cash.id)
        ledger.repay_debt(debt.id, cash.id)

        with pytest.raises(LedgerError) as exc_info:
            ledger.repay_debt(debt.id, cash.id)

        assert exc_info.value.code == LedgerErrorCode.DEBT_NOT_ACTIVE

    def test_repay_without_funds_keeps_debt_active(self, ledger, repo, cash, card):
        debt = ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 200, card.id)

        with pytest.raises(InsufficientFundsError):
            ledger.repay_debt(debt.id, cash.id)

        assert repo.debts.get(debt.id).is_active
        assert balance(repo, cash) == 0
        assert balance(repo, card) == 1200

    def test_repay_to_missing_account(self, ledger, cash):
        debt = ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 20, cash.id)

        with pytest.raises(NotFoundError) as exc_info:
            ledger.repay_debt(debt.id, 999)

        assert exc_info.value.code == LedgerErrorCode.ACCOUNT_NOT_FOUND

    def test_delete_completed_debt_keeps_balance(self, ledger, repo, cash):
        debt = ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 200, cash.id)
        ledger.repay_debt(debt.id, cash.id)
        ledger.create_debt_with_transaction(DebtDirection.GOT, "Kim", 50, cash.id)

        ledger.delete_debt(debt.id)

        assert repo.debts.get(debt.id) is None
        assert repo.transactions.get(debt.transaction_id) is None
        assert balance(repo, cash) == 50

    def test_delete_active_debt_rejected(self, ledger, repo, cash):
        debt = ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 200, cash.id)

        with pytest.raises(ValidationError) as exc_info:
            ledger.delete_debt(debt.id)

        assert exc_info.value.code == LedgerErrorCode.DEBT_STILL_ACTIVE
        assert repo.debts.get(debt.id) is not None

    def test_delete_missing_debt(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.delete_debt(999)


def test_overlong_title_rejected(ledger, card, income_category):
    with pytest.raises(ValidationError) as exc_info:
        ledger.record_transaction(TransactionType.INCOME, 10, "x" * 201, card.id, income_category.id)

    assert exc_info.value.code == LedgerErrorCode.INVALID_TITLE


def test_unknown_transaction_type_rejected(ledger, card, income_category):
    with pytest.raises(ValidationError) as exc_info:
        ledger.record_transaction("refund", 10, "Refund", card.id, income_category.id)

    assert exc_info.value.code == LedgerErrorCode.INVALID_INPUT


def test_unknown_debt_direction_rejected(ledger, repo, card):
    with pytest.raises(ValidationError) as exc_info:
        ledger.create_debt_with_transaction("owed", "Alex", 10, card.id)

    assert exc_info.value.code == LedgerErrorCode.INVALID_INPUT
    assert repo.debts.list_debts() == []
