"""
Household cash summaries from accounts and transactions.

Everything here is pure: callers pass the records and a pinned `today`.
Income is summed as stored; expenses are summed as absolute amounts.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Sequence

from fintrack.core.dates import month_start
from fintrack.core.models import Account, Transaction, TransactionType
from fintrack.core.money import HUNDRED, ZERO, to_decimal

EVOLUTION_MONTHS = 6
TOP_EXPENSES = 5
RECENT_TRANSACTIONS = 10
UNCATEGORISED = "Autres"
MONTH_LABELS = [
    "janv.", "fév.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
]

# Category names that count as money put aside, unless an excluded word also matches
INVESTMENT_KEYWORDS = ("épargne", "epargne", "investissement", "invest", "savings")
EXCLUDED_KEYWORDS = ("immobilier", "apport", "notaire", "capital", "transfert")


@dataclass(frozen=True)
class MonthFlow:
    start: date
    income: Decimal
    expenses: Decimal

    @property
    def label(self) -> str:
        return MONTH_LABELS[self.start.month - 1]

    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses

    def as_json(self) -> Dict:
        return {
            "month": self.label,
            "revenus": float(self.income),
            "depenses": float(self.expenses),
            "solde": float(self.balance),
        }


@dataclass(frozen=True)
class HouseholdSummary:
    total_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_invested: Decimal
    savings_rate: Decimal
    evolution: List[MonthFlow]

    def as_json(self) -> Dict:
        return {
            "totalBalance": float(self.total_balance),
            "monthlyIncome": float(self.monthly_income),
            "monthlyExpenses": float(self.monthly_expenses),
            "monthlyInvested": float(self.monthly_invested),
            "savingsRate": float(self.savings_rate),
            "monthlyEvolution": [m.as_json() for m in self.evolution],
        }


def _is(txn: Transaction, kind: TransactionType) -> bool:
    return TransactionType(txn.type) is kind


def in_month(txn: Transaction, start: date) -> bool:
    return start <= txn.ts < month_start(start, 1)


def month_transactions(transactions: Iterable[Transaction], today: date) -> List[Transaction]:
    start = month_start(today)
    return [t for t in transactions if in_month(t, start)]


def total_balance(accounts: Iterable[Account]) -> Decimal:
    """Cash held across active accounts."""
    return sum((to_decimal(a.balance) for a in accounts if a.active), ZERO)


def income_total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((to_decimal(t.amount) for t in transactions if _is(t, TransactionType.INCOME)), ZERO)


def expense_total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((abs(to_decimal(t.amount)) for t in transactions if _is(t, TransactionType.EXPENSE)), ZERO)


def is_investment_category(name: str | None) -> bool:
    if not name:
        return False
    lowered = name.lower()
    if not any(kw in lowered for kw in INVESTMENT_KEYWORDS):
        return False
    return not any(kw in lowered for kw in EXCLUDED_KEYWORDS)


def invested_total(transactions: Iterable[Transaction], category_names: Mapping[int, str]) -> Decimal:
    """
    Net amount moved into savings categories.

    Expenses in such a category add to the total; income in one (a
    withdrawal) subtracts from it.
    """
    total = ZERO
    for txn in transactions:
        if txn.category_id is None or not is_investment_category(category_names.get(txn.category_id)):
            continue
        amount = abs(to_decimal(txn.amount))
        if _is(txn, TransactionType.EXPENSE):
            total += amount
        elif _is(txn, TransactionType.INCOME):
            total -= amount
    return total


def savings_rate(invested: Decimal, income: Decimal) -> Decimal:
    """Share of income invested, in percent to one decimal; 0 without income."""
    if income <= 0:
        return ZERO
    rate = max(ZERO, invested) / income * HUNDRED
    return rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def monthly_evolution(
    transactions: Sequence[Transaction],
    today: date,
    months: int = EVOLUTION_MONTHS,
) -> List[MonthFlow]:
    """Income and expenses per calendar month, oldest first, ending with today's month."""
    flows = []
    for offset in range(-(months - 1), 1):
        start = month_start(today, offset)
        in_range = [t for t in transactions if in_month(t, start)]
        flows.append(MonthFlow(start=start, income=income_total(in_range), expenses=expense_total(in_range)))
    return flows


def household_summary(
    accounts: Iterable[Account],
    transactions: Sequence[Transaction],
    category_names: Mapping[int, str],
    today: date,
) -> HouseholdSummary:
    current = month_transactions(transactions, today)
    income = income_total(current)
    invested = invested_total(current, category_names)
    return HouseholdSummary(
        total_balance=total_balance(accounts),
        monthly_income=income,
        monthly_expenses=expense_total(current),
        monthly_invested=invested,
        savings_rate=savings_rate(invested, income),
        evolution=monthly_evolution(transactions, today),
    )


def _ranked(totals: Mapping[str, Decimal]) -> List[Dict]:
    rows = [{"name": name, "amount": amount} for name, amount in totals.items()]
    return sorted(rows, key=lambda row: row["amount"], reverse=True)


def _recent_expenses(transactions: Iterable[Transaction], today: date) -> List[Transaction]:
    since = month_start(today, -(EVOLUTION_MONTHS - 1))
    return [t for t in transactions if t.ts >= since and _is(t, TransactionType.EXPENSE)]


def expenses_by_category(
    transactions: Iterable[Transaction],
    category_names: Mapping[int, str],
    today: date,
) -> List[Dict]:
    """Expenses of the last six months per category name, largest first."""
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in _recent_expenses(transactions, today):
        totals[category_names.get(txn.category_id, UNCATEGORISED)] += abs(to_decimal(txn.amount))
    return _ranked(totals)


def expenses_by_account(
    transactions: Iterable[Transaction],
    account_names: Mapping[int, str],
    today: date,
) -> List[Dict]:
    """Expenses of the last six months per account name, largest first."""
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in _recent_expenses(transactions, today):
        totals[account_names.get(txn.account_id, str(txn.account_id))] += abs(to_decimal(txn.amount))
    return _ranked(totals)


def top_expenses(
    transactions: Iterable[Transaction],
    category_names: Mapping[int, str],
    today: date,
    limit: int = TOP_EXPENSES,
) -> List[Dict]:
    """Largest expenses of today's month."""
    rows = [
        {
            "id": t.id,
            "description": t.description or "Transaction",
            "amount": abs(to_decimal(t.amount)),
            "category": category_names.get(t.category_id, UNCATEGORISED),
            "date": t.ts,
        }
        for t in month_transactions(transactions, today)
        if _is(t, TransactionType.EXPENSE)
    ]
    rows.sort(key=lambda row: row["amount"], reverse=True)
    return rows[:limit]


def recent_transactions(transactions: Iterable[Transaction], limit: int = RECENT_TRANSACTIONS) -> List[Transaction]:
    """Latest transactions, newest first; ties keep the later id first."""
    return sorted(transactions, key=lambda t: (t.ts, t.id or 0), reverse=True)[:limit]
