"""Tests for the pandas report frames and logging setup."""
import json
import logging
from datetime import date
from decimal import Decimal

import pytest

from fintrack import reports
from fintrack.core.investments import compute_investment_metrics
from fintrack.core.models import (
    AssetHolding,
    InvestmentInputs,
    PositionLot,
    RealEstateInputs,
    Transaction,
    TransactionType,
)
from fintrack.core.portfolio import portfolio_overview
from fintrack.core.real_estate import compute_real_estate_metrics
from fintrack.core.statistics import monthly_evolution
from fintrack.logging_config import JsonFormatter, configure_logging


def studio(rent="1000") -> RealEstateInputs:
    return RealEstateInputs(
        purchase_price=Decimal("200000"), notary_fees=Decimal("5000"),
        initial_works=Decimal("0"), down_payment=Decimal("20000"),
        loan_monthly_payment=Decimal("600"), loan_insurance_monthly=Decimal("20"),
        rent_monthly=Decimal(rent), vacancy_rate_pct=Decimal("10"),
        non_recoverable_charges_monthly=Decimal("50"), property_tax_yearly=Decimal("1200"),
        insurance_yearly=Decimal("240"),
    )


class TestPortfolioFrame:
    def test_sorted_by_value(self):
        assets = [
            AssetHolding(id=1, name="Small", category="ETF",
                         quantity=Decimal("1"), amount_invested=Decimal("10"), current_price=Decimal("20")),
            AssetHolding(id=2, name="Big", category="Crypto",
                         quantity=Decimal("1"), amount_invested=Decimal("10"), current_price=Decimal("1500")),
        ]
        df = reports.portfolio_frame(portfolio_overview(assets))

        assert list(df.columns) == reports.PORTFOLIO_COLUMNS
        assert list(df["Name"]) == ["Big", "Small"]
        assert df.loc[0, "Value"] == "1,500.00"
        assert df.loc[1, "P/L %"] == "100.00"

    def test_empty(self):
        df = reports.portfolio_frame(portfolio_overview([]))
        assert df.empty
        assert list(df.columns) == reports.PORTFOLIO_COLUMNS


class TestPositionsFrame:
    def test_one_row_per_lot(self):
        lots = (
            PositionLot(quantity=Decimal("1"), paid_amount=Decimal("100"), paid_currency="USD",
                        purchase_date=date(2024, 1, 1)),
            PositionLot(quantity=Decimal("2"), paid_amount=Decimal("300"), paid_currency="USD",
                        purchase_date=date(2024, 2, 1)),
        )
        metrics = compute_investment_metrics(InvestmentInputs("BTC", "USD", Decimal("200"), lots))

        df = reports.positions_frame(metrics)

        assert len(df) == 2
        assert "Cost (USD)" in df.columns
        assert list(df["P/L %"]) == ["100.00", "33.33"]


class TestRealEstateFrames:
    def test_cumulative_frame_indexed_by_month(self):
        df = reports.cumulative_frame(compute_real_estate_metrics(studio()))

        assert len(df) == 361
        assert df.loc[0, "cumulative"] == -25000.0
        assert df.loc[12, "cumulative"] == -23680.0

    def test_break_even_month(self):
        assert reports.break_even_month(compute_real_estate_metrics(studio())) == 228

    def test_never_breaks_even(self):
        assert reports.break_even_month(compute_real_estate_metrics(studio(rent="500"))) is None


class TestBudgetFrame:
    def test_names_and_order(self):
        df = reports.budget_frame({"1": 120, "2": 450, "9": 30}, {1: "Transport", 2: "Alimentation"})

        assert list(df["Category"]) == ["Alimentation", "Transport", "9"]
        assert list(df["Suggested budget"]) == [450, 120, 30]

    def test_empty(self):
        df = reports.budget_frame({}, {})
        assert df.empty
        assert list(df.columns) == reports.BUDGET_COLUMNS


class TestLogging:
    def test_json_formatter(self):
        record = logging.LogRecord("fintrack.core.db", logging.WARNING, __file__, 1,
                                   "Opening %s", ("db",), None)
        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "fintrack.core.db"
        assert payload["message"] == "Opening db"

    @pytest.fixture
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield root
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_level_and_json_from_env(self, monkeypatch, restore_root):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_JSON", "1")

        configure_logging()
        configure_logging()

        assert restore_root.level == logging.DEBUG
        assert len(restore_root.handlers) == 1
        assert isinstance(restore_root.handlers[0].formatter, JsonFormatter)

    def test_unknown_level_falls_back_to_info(self, monkeypatch, restore_root):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        monkeypatch.delenv("LOG_JSON", raising=False)

        configure_logging()

        assert restore_root.level == logging.INFO
        assert not isinstance(restore_root.handlers[0].formatter, JsonFormatter)

    def test_explicit_level_overrides_env(self, monkeypatch, restore_root):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        configure_logging(logging.DEBUG)

        assert restore_root.level == logging.DEBUG


class TestHouseholdFrames:
    def test_evolution_frame(self):
        flows = monthly_evolution([
            Transaction(1, 1, date(2024, 5, 2), TransactionType.INCOME, Decimal("2000")),
            Transaction(2, 1, date(2024, 5, 3), TransactionType.EXPENSE, Decimal("-500")),
        ], date(2024, 5, 15))

        df = reports.evolution_frame(flows)

        assert list(df.index) == ["déc.", "janv.", "fév.", "mars", "avr.", "mai"]
        assert df.loc["mai"].tolist() == [2000.0, 500.0, 1500.0]
        assert df.loc["janv.", "Balance"] == 0.0

    def test_breakdown_shares(self):
        rows = [{"name": "Alimentation", "amount": Decimal("300")}, {"name": "Autres", "amount": Decimal("100")}]
        df = reports.breakdown_frame(rows, "Category")

        assert list(df.columns) == ["Category", "Amount", "Share %"]
        assert df["Share %"].tolist() == [75.0, 25.0]

    def test_empty_breakdown(self):
        df = reports.breakdown_frame([], "Account")
        assert df.empty
        assert list(df.columns) == ["Account", "Amount", "Share %"]
