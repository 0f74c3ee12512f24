"""
Demo script for the Financaar ledger.

Opens (or creates) the configured database, records a few transactions
and a debt, then prints the analytics read surface.
"""

import logging

from financaar.config import (
    DEFAULT_DB_PATH,
    DEFAULT_HISTORY_LIMIT,
    configure_logging,
    ensure_directories,
)
from financaar.db import FinanceRepository
from financaar.ledger import LedgerEngine, LedgerError
from financaar.models import AccountKind, CategoryType, DebtDirection, TransactionType
from financaar.services import AnalyticsService

logger = logging.getLogger(__name__)


def main():
    configure_logging()
    ensure_directories()

    repo = FinanceRepository(DEFAULT_DB_PATH)
    ledger = LedgerEngine(repo)
    analytics = AnalyticsService(repo)

    print("=" * 60)
    print("Financaar Ledger Demo")
    print("=" * 60)

    if not repo.list_accounts():
        wallet = ledger.create_account("Wallet", AccountKind.CASH, balance=0, emoji="👛")
        card = ledger.create_account(
            "Debit Card", AccountKind.CARD, balance=250, last_four_digits="4242"
        )
        income = repo.categories.list_categories(CategoryType.INCOME)[0]
        expense = repo.categories.list_categories(CategoryType.EXPENSE)[0]

        ledger.record_transaction(TransactionType.INCOME, 500, "Salary", wallet.id, income.id)
        ledger.record_transaction(TransactionType.EXPENSE, 120, "Groceries", wallet.id, expense.id)
        ledger.record_transaction(
            TransactionType.TRANSFER, 100, "Top up card", wallet.id, to_account_id=card.id
        )
        debt = ledger.create_debt_with_transaction(DebtDirection.GOT, "Alex", 200, wallet.id)
        ledger.repay_debt(debt.id, wallet.id)

        try:
            ledger.record_transaction(TransactionType.EXPENSE, 10_000, "Rent", wallet.id, expense.id)
        except LedgerError as e:
            print(f"\nRejected as expected: {e}")

    print("\nAccounts:")
    for account in repo.list_accounts():
        print(f"  {account.name:<15} {account.kind.value:<5} {account.balance:>10,.2f}")
    total = repo.get_total_balance()
    print(f"  {'Total':<21} {total.total:>10,.2f}")

    print("\nRecent transactions:")
    for txn in repo.transactions.list_transactions(limit=DEFAULT_HISTORY_LIMIT):
        print(f"  {txn.date:%Y-%m-%d} {txn.type.value:<13} {txn.amount:>10,.2f}  {txn.title}")

    current = analytics.get_current_month_data()
    print(f"\nThis month ({current.month}):")
    print(f"  Income:       {current.income:,.2f}")
    print(f"  Expense:      {current.expense:,.2f}")
    print(f"  Savings rate: {current.savings_rate:.1f}%")

    print("\nCategory spending:")
    for category in analytics.get_category_spending():
        print(f"  {category.name:<20} {category.total_spent:>10,.2f} ({category.percentage:.0f}%)")

    advanced = analytics.get_advanced_analytics()
    print(f"\nFinancial health score: {advanced.financial_health_score}/100 ({advanced.trend})")


if __name__ == "__main__":
    main()
