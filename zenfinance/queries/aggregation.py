"""
Aggregation View

Derived figures for the dashboard, computed from records the caller has
already fetched. Nothing here touches storage: each function is pure,
deterministic and safe to call repeatedly on the same input.
"""

from decimal import Decimal
from typing import Iterable

from zenfinance.models.finance import (
    Account,
    CategoryTotal,
    Transaction,
    TransactionType,
)


def aggregate_expenses_by_category(
    transactions: Iterable[Transaction],
) -> list[CategoryTotal]:
    """
    Sum expense amounts per category label.

    Income is excluded entirely: this answers "where did my money go".
    Categories appear in the order they are first seen, so a list that is
    already most-recent-first puts the latest category first.

    Example:
        Expenses [(A, 100), (B, 50), (A, 25)] -> [(A, 125), (B, 50)]
    """
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        if transaction.kind != TransactionType.EXPENSE:
            continue
        totals[transaction.category] = (
            totals.get(transaction.category, Decimal("0")) + transaction.amount
        )
    return [
        CategoryTotal(category=category, total=total)
        for category, total in totals.items()
    ]


def total_balance(accounts: Iterable[Account]) -> Decimal:
    """Sum of all account balances."""
    return sum((account.balance for account in accounts), Decimal("0"))


def totals_by_kind(transactions: Iterable[Transaction]) -> dict[TransactionType, Decimal]:
    """Total income and total expense over the given transactions."""
    totals = {kind: Decimal("0") for kind in TransactionType}
    for transaction in transactions:
        totals[transaction.kind] += transaction.amount
    return totals
