"""Aggregation views package."""

from zenfinance.queries.aggregation import (
    aggregate_expenses_by_category,
    total_balance,
    totals_by_kind,
)

__all__ = ["aggregate_expenses_by_category", "total_balance", "totals_by_kind"]
