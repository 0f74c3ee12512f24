from enum import Enum


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    DEBT_PAYMENT = "debt_payment"
    BORROWED = "borrowed"
    LENT = "lent"


class TransactionStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class DebtDirection(str, Enum):
    """
    Direction of a person-to-person debt.

    - GOT: the user borrowed money and owes it back
    - GAVE: the user lent money and is owed it
    """

    GOT = "got"
    GAVE = "gave"


class DebtStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


# Sign of the effect each transaction type has on its source account.
# Transfers move money between accounts and leave the total unchanged.
BALANCE_EFFECT = {
    TransactionType.INCOME: 1,
    TransactionType.EXPENSE: -1,
    TransactionType.DEBT_PAYMENT: -1,
    TransactionType.BORROWED: 1,
    TransactionType.LENT: -1,
    TransactionType.TRANSFER: 0,
}

# Types that draw money out of the source account and need sufficient funds
OUTFLOW_TYPES = frozenset(
    {TransactionType.EXPENSE, TransactionType.DEBT_PAYMENT, TransactionType.TRANSFER}
)

DEBT_TRANSACTION_TYPE = {
    DebtDirection.GOT: TransactionType.BORROWED,
    DebtDirection.GAVE: TransactionType.LENT,
}
