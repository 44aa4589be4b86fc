"""Tests for rental property cash flow and payback metrics."""
from dataclasses import replace
from decimal import Decimal

import pytest

from fintrack.core.models import RealEstateInputs
from fintrack.core.real_estate import (
    HORIZON_MONTHS,
    compute_real_estate_metrics,
    monthly_costs,
    net_rent,
)


@pytest.fixture
def flat() -> RealEstateInputs:
    return RealEstateInputs(
        purchase_price=Decimal("200000"),
        notary_fees=Decimal("5000"),
        initial_works=Decimal("0"),
        down_payment=Decimal("20000"),
        loan_monthly_payment=Decimal("600"),
        loan_insurance_monthly=Decimal("20"),
        rent_monthly=Decimal("1000"),
        vacancy_rate_pct=Decimal("10"),
        non_recoverable_charges_monthly=Decimal("50"),
        property_tax_yearly=Decimal("1200"),
        insurance_yearly=Decimal("240"),
    )


class TestCashflow:
    """Monthly rent, costs and net cash flow."""

    def test_net_rent_applies_vacancy(self, flat):
        assert net_rent(flat) == Decimal("900")

    def test_monthly_costs_spread_yearly_items(self, flat):
        assert monthly_costs(flat) == Decimal("790")

    def test_worked_example(self, flat):
        metrics = compute_real_estate_metrics(flat)

        assert metrics.cashflow_net == Decimal("110.00")
        assert metrics.cash_initial == Decimal("25000.00")
        assert metrics.payback_months == Decimal("227.27")
        assert metrics.payback_years == Decimal("18.94")

    def test_maintenance_reserve_is_a_monthly_cost(self, flat):
        metrics = compute_real_estate_metrics(replace(flat, maintenance_reserve_monthly=Decimal("30")))
        assert metrics.cashflow_net == Decimal("80.00")

    def test_accepts_plain_numbers(self, flat):
        as_floats = RealEstateInputs(**{
            k: float(v) for k, v in vars(flat).items() if v is not None
        })
        assert compute_real_estate_metrics(as_floats) == compute_real_estate_metrics(flat)


class TestPayback:
    """Payback only exists for a strictly positive cash flow."""

    def test_negative_cashflow_has_no_payback(self, flat):
        metrics = compute_real_estate_metrics(replace(flat, rent_monthly=Decimal("500")))

        assert metrics.cashflow_net == Decimal("-340.00")
        assert metrics.payback_months is None
        assert metrics.payback_years is None

    def test_zero_cashflow_has_no_payback(self, flat):
        metrics = compute_real_estate_metrics(
            replace(flat, rent_monthly=Decimal("790"), vacancy_rate_pct=Decimal("0"))
        )

        assert metrics.cashflow_net == 0
        assert metrics.payback_months is None
        assert metrics.payback_years is None

    @pytest.mark.parametrize("rent", ["900", "1000", "1500", "2750.50"])
    def test_payback_times_cashflow_recovers_initial_cash(self, flat, rent):
        metrics = compute_real_estate_metrics(replace(flat, rent_monthly=Decimal(rent)))

        recovered = metrics.payback_months * metrics.cashflow_net
        assert abs(recovered - metrics.cash_initial) <= metrics.cashflow_net * Decimal("0.01")


class TestCumulativeSeries:
    """30-year cumulative cash position."""

    def test_series_covers_month_zero_to_360(self, flat):
        series = compute_real_estate_metrics(flat).cumulative_series

        assert len(series) == HORIZON_MONTHS + 1 == 361
        assert [p.month for p in series] == list(range(361))

    def test_series_starts_at_minus_initial_cash(self, flat):
        metrics = compute_real_estate_metrics(flat)
        assert metrics.cumulative_series[0].cumulative == -metrics.cash_initial

    def test_series_steps_by_cashflow(self, flat):
        metrics = compute_real_estate_metrics(flat)
        series = metrics.cumulative_series

        for previous, current in zip(series, series[1:]):
            assert current.cumulative == previous.cumulative + metrics.cashflow_net
        assert series[-1].cumulative == Decimal("14600.00")

    def test_series_accumulates_unrounded_cashflow(self):
        inputs = RealEstateInputs(
            purchase_price=Decimal("0"),
            notary_fees=Decimal("0"),
            initial_works=Decimal("0"),
            down_payment=Decimal("0"),
            loan_monthly_payment=Decimal("0"),
            loan_insurance_monthly=Decimal("0"),
            rent_monthly=Decimal("1000"),
            vacancy_rate_pct=Decimal("0"),
            non_recoverable_charges_monthly=Decimal("0"),
            property_tax_yearly=Decimal("1000"),
            insurance_yearly=Decimal("0"),
        )
        metrics = compute_real_estate_metrics(inputs)

        # 916.666... a month: the rounded figure times 12 would give 11000.04
        assert metrics.cashflow_net == Decimal("916.67")
        assert metrics.cumulative_series[12].cumulative == Decimal("11000.00")
        assert metrics.payback_months == 0

    def test_json_shape(self, flat):
        payload = compute_real_estate_metrics(flat).as_json()

        assert set(payload) == {"cashflowNet", "cashInitial", "paybackMonths", "paybackYears", "cumulativeSeries"}
        assert payload["cumulativeSeries"][0] == {"month": 0, "cumulative": -25000.0}
        assert payload["paybackMonths"] == pytest.approx(227.27)

    def test_json_payback_null_when_undefined(self, flat):
        payload = compute_real_estate_metrics(replace(flat, rent_monthly=Decimal("0"))).as_json()
        assert payload["paybackMonths"] is None
        assert payload["paybackYears"] is None


class TestPurity:
    def test_repeated_calls_are_identical(self, flat):
        assert compute_real_estate_metrics(flat) == compute_real_estate_metrics(flat)
