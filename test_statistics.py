"""Tests for household cash summaries and spending breakdowns."""
from datetime import date
from decimal import Decimal

import pytest

from fintrack.core.models import Account, Transaction, TransactionType
from fintrack.core.statistics import (
    expense_total,
    expenses_by_account,
    expenses_by_category,
    household_summary,
    income_total,
    invested_total,
    is_investment_category,
    month_transactions,
    monthly_evolution,
    recent_transactions,
    savings_rate,
    top_expenses,
    total_balance,
)

TODAY = date(2024, 5, 15)
GROCERIES, SAVINGS, REAL_ESTATE_DOWN_PAYMENT = 1, 2, 3
CATEGORY_NAMES = {
    GROCERIES: "Alimentation",
    SAVINGS: "Épargne",
    REAL_ESTATE_DOWN_PAYMENT: "Épargne apport immobilier",
}
CHECKING, JOINT = 10, 11
ACCOUNT_NAMES = {CHECKING: "Compte courant", JOINT: "Compte joint"}

_ids = iter(range(1, 1000))


def txn(ts, kind, amount, category=None, account=CHECKING, description=None) -> Transaction:
    return Transaction(
        id=next(_ids), account_id=account, ts=ts, type=kind,
        amount=Decimal(amount), category_id=category, description=description,
    )


def income(ts, amount, **kw):
    return txn(ts, TransactionType.INCOME, amount, **kw)


def expense(ts, amount, **kw):
    return txn(ts, TransactionType.EXPENSE, amount, **kw)


class TestMonthWindow:
    """Calendar-month boundaries for the current month."""

    def test_first_and_last_day_are_included(self):
        txns = [
            expense(date(2024, 4, 30), "-1"),
            expense(date(2024, 5, 1), "-2"),
            expense(date(2024, 5, 31), "-3"),
            expense(date(2024, 6, 1), "-4"),
        ]
        assert [t.amount for t in month_transactions(txns, TODAY)] == [Decimal("-2"), Decimal("-3")]

    def test_income_as_stored_and_expenses_absolute(self):
        txns = [income(TODAY, "2500"), expense(TODAY, "-40"), expense(TODAY, "15"),
                txn(TODAY, TransactionType.TRANSFER, "-500")]

        assert income_total(txns) == Decimal("2500")
        assert expense_total(txns) == Decimal("55")


class TestBalance:
    def test_only_active_accounts(self):
        accounts = [
            Account(1, "Courant", "checking", "EUR", Decimal("1200.50")),
            Account(2, "Livret", "savings", "EUR", Decimal("3000")),
            Account(3, "Ancien", "checking", "EUR", Decimal("999"), active=False),
        ]
        assert total_balance(accounts) == Decimal("4200.50")

    def test_no_accounts(self):
        assert total_balance([]) == 0


class TestInvested:
    @pytest.mark.parametrize("name, expected", [
        ("Épargne", True),
        ("Investissement PEA", True),
        ("Savings", True),
        ("Épargne apport immobilier", False),
        ("Transfert épargne", False),
        ("Alimentation", False),
        (None, False),
    ])
    def test_category_keywords(self, name, expected):
        assert is_investment_category(name) is expected

    def test_expenses_add_and_withdrawals_subtract(self):
        txns = [
            expense(TODAY, "-300", category=SAVINGS),
            income(TODAY, "100", category=SAVINGS),
            expense(TODAY, "-5000", category=REAL_ESTATE_DOWN_PAYMENT),
            expense(TODAY, "-80", category=GROCERIES),
            expense(TODAY, "-20"),
        ]
        assert invested_total(txns, CATEGORY_NAMES) == Decimal("200")


class TestSavingsRate:
    def test_share_of_income(self):
        assert savings_rate(Decimal("300"), Decimal("2000")) == Decimal("15.0")

    def test_rounded_to_one_decimal_half_up(self):
        assert savings_rate(Decimal("1"), Decimal("16")) == Decimal("6.3")  # 6.25

    @pytest.mark.parametrize("income_amount", ["0", "-100"])
    def test_no_income_gives_zero(self, income_amount):
        assert savings_rate(Decimal("300"), Decimal(income_amount)) == 0

    def test_net_withdrawal_counts_as_zero(self):
        assert savings_rate(Decimal("-50"), Decimal("2000")) == 0


class TestEvolution:
    def test_six_months_oldest_first(self):
        flows = monthly_evolution([], TODAY)

        assert [f.start for f in flows] == [
            date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1),
            date(2024, 3, 1), date(2024, 4, 1), date(2024, 5, 1),
        ]
        assert [f.label for f in flows] == ["déc.", "janv.", "fév.", "mars", "avr.", "mai"]

    def test_month_totals_and_balance(self):
        txns = [
            income(date(2024, 1, 31), "2000"),
            expense(date(2024, 1, 31), "-500"),
            expense(date(2024, 2, 1), "-300"),
            income(date(2023, 11, 30), "9999"),  # before the window
        ]
        flows = {f.start: f for f in monthly_evolution(txns, TODAY)}

        january = flows[date(2024, 1, 1)]
        assert (january.income, january.expenses, january.balance) == (
            Decimal("2000"), Decimal("500"), Decimal("1500"),
        )
        assert flows[date(2024, 2, 1)].balance == Decimal("-300")
        assert flows[date(2023, 12, 1)].income == 0

    def test_json_shape(self):
        (flow,) = monthly_evolution([income(TODAY, "10")], TODAY, months=1)
        assert flow.as_json() == {"month": "mai", "revenus": 10.0, "depenses": 0.0, "solde": 10.0}


class TestHouseholdSummary:
    def test_current_month_figures(self):
        accounts = [Account(CHECKING, "Courant", "checking", "EUR", Decimal("1500"))]
        txns = [
            income(date(2024, 5, 2), "2000"),
            expense(date(2024, 5, 3), "-400", category=SAVINGS),
            expense(date(2024, 5, 4), "-100", category=GROCERIES),
            income(date(2024, 4, 28), "2000"),
        ]
        summary = household_summary(accounts, txns, CATEGORY_NAMES, TODAY)

        assert summary.total_balance == Decimal("1500")
        assert summary.monthly_income == Decimal("2000")
        assert summary.monthly_expenses == Decimal("500")
        assert summary.monthly_invested == Decimal("400")
        assert summary.savings_rate == Decimal("20.0")
        assert len(summary.evolution) == 6

    def test_empty_household(self):
        payload = household_summary([], [], {}, TODAY).as_json()

        assert payload["totalBalance"] == 0.0
        assert payload["savingsRate"] == 0.0
        assert len(payload["monthlyEvolution"]) == 6


class TestBreakdowns:
    """Six-month spending per category and account, and the month's top expenses."""

    @pytest.fixture
    def txns(self):
        return [
            expense(date(2023, 12, 1), "-100", category=GROCERIES),
            expense(date(2024, 3, 10), "-50", category=GROCERIES, account=JOINT),
            expense(date(2024, 5, 2), "-30"),
            expense(date(2024, 5, 3), "-400", category=SAVINGS, description="Virement livret"),
            income(date(2024, 5, 1), "2000", category=SAVINGS),
            expense(date(2023, 11, 30), "-999", category=GROCERIES),  # before the window
        ]

    def test_by_category(self, txns):
        assert expenses_by_category(txns, CATEGORY_NAMES, TODAY) == [
            {"name": "Épargne", "amount": Decimal("400")},
            {"name": "Alimentation", "amount": Decimal("150")},
            {"name": "Autres", "amount": Decimal("30")},
        ]

    def test_by_account(self, txns):
        assert expenses_by_account(txns, ACCOUNT_NAMES, TODAY) == [
            {"name": "Compte courant", "amount": Decimal("530")},
            {"name": "Compte joint", "amount": Decimal("50")},
        ]

    def test_top_expenses_of_the_month(self, txns):
        top = top_expenses(txns, CATEGORY_NAMES, TODAY)

        assert [row["amount"] for row in top] == [Decimal("400"), Decimal("30")]
        assert top[0]["description"] == "Virement livret"
        assert top[1]["description"] == "Transaction"
        assert top[1]["category"] == "Autres"

    def test_top_expenses_limit(self):
        txns = [expense(TODAY, f"-{n}") for n in range(1, 9)]
        assert [row["amount"] for row in top_expenses(txns, {}, TODAY)] == [
            Decimal(n) for n in (8, 7, 6, 5, 4)
        ]

    def test_recent_transactions_newest_first(self, txns):
        recent = recent_transactions(txns, limit=2)
        assert [t.ts for t in recent] == [date(2024, 5, 3), date(2024, 5, 2)]
