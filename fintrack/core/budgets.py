"""Monthly budget suggestions from recent spending."""
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable

from fintrack.core.models import ExpenseEntry
from fintrack.core.money import ZERO, round_units, to_decimal

WINDOW_MONTHS = 3


def budget_key(entry: ExpenseEntry) -> int | None:
    """Top-level category an expense rolls up to."""
    if entry.parent_id is not None:
        return entry.parent_id
    return entry.category_id


def expense_totals(expenses: Iterable[ExpenseEntry]) -> Dict[int, Decimal]:
    """Absolute spending per top-level category; uncategorised entries are skipped."""
    totals: Dict[int, Decimal] = defaultdict(lambda: ZERO)
    for entry in expenses:
        key = budget_key(entry)
        if key is None:
            continue
        totals[key] += abs(to_decimal(entry.amount))
    return dict(totals)


def suggest_budgets(expenses: Iterable[ExpenseEntry]) -> Dict[int, int]:
    """
    Suggested monthly budget per top-level category.

    Always divides by the 3-month window, even when fewer months have data.
    """
    return {
        key: round_units(total / WINDOW_MONTHS)
        for key, total in expense_totals(expenses).items()
    }
