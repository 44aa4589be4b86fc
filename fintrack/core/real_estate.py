"""Rental property cash flow and payback calculations."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from fintrack.core.models import RealEstateInputs
from fintrack.core.money import HUNDRED, ONE, ZERO, as_float, round_cents, to_decimal

HORIZON_MONTHS = 360
MONTHS_PER_YEAR = Decimal("12")


@dataclass(frozen=True)
class SeriesPoint:
    month: int
    cumulative: Decimal


@dataclass(frozen=True)
class RealEstateMetrics:
    cashflow_net: Decimal
    cash_initial: Decimal
    payback_months: Decimal | None
    payback_years: Decimal | None
    cumulative_series: List[SeriesPoint]

    def as_json(self) -> Dict:
        return {
            "cashflowNet": as_float(self.cashflow_net),
            "cashInitial": as_float(self.cash_initial),
            "paybackMonths": as_float(self.payback_months),
            "paybackYears": as_float(self.payback_years),
            "cumulativeSeries": [
                {"month": p.month, "cumulative": float(p.cumulative)}
                for p in self.cumulative_series
            ],
        }


def net_rent(inputs: RealEstateInputs) -> Decimal:
    """Monthly rent after the vacancy allowance."""
    vacancy = to_decimal(inputs.vacancy_rate_pct) / HUNDRED
    return to_decimal(inputs.rent_monthly) * (ONE - vacancy)


def monthly_costs(inputs: RealEstateInputs) -> Decimal:
    """Loan, insurance, charges, and yearly taxes spread over 12 months."""
    reserve = inputs.maintenance_reserve_monthly
    return (
        to_decimal(inputs.loan_monthly_payment)
        + to_decimal(inputs.loan_insurance_monthly)
        + to_decimal(inputs.non_recoverable_charges_monthly)
        + to_decimal(inputs.property_tax_yearly) / MONTHS_PER_YEAR
        + to_decimal(inputs.insurance_yearly) / MONTHS_PER_YEAR
        + (to_decimal(reserve) if reserve else ZERO)
    )


def cash_initial(inputs: RealEstateInputs) -> Decimal:
    return (
        to_decimal(inputs.down_payment)
        + to_decimal(inputs.notary_fees)
        + to_decimal(inputs.initial_works)
    )


def cumulative_series(start: Decimal, monthly: Decimal, months: int = HORIZON_MONTHS) -> List[SeriesPoint]:
    """
    Cumulative cash position from month 0 to `months` inclusive.

    Accumulates the unrounded monthly amount; only the reported points are
    rounded to cents.
    """
    series = []
    cumulative = start
    for month in range(months + 1):
        if month > 0:
            cumulative += monthly
        series.append(SeriesPoint(month=month, cumulative=round_cents(cumulative)))
    return series


def compute_real_estate_metrics(inputs: RealEstateInputs) -> RealEstateMetrics:
    """
    Compute monthly net cash flow, initial cash outlay and payback period.

    Payback is only defined for a strictly positive cash flow; otherwise both
    payback fields are None.
    """
    cashflow = net_rent(inputs) - monthly_costs(inputs)
    initial = cash_initial(inputs)

    payback_months = None
    payback_years = None
    if cashflow > 0:
        months = initial / cashflow
        payback_months = round_cents(months)
        payback_years = round_cents(months / MONTHS_PER_YEAR)

    return RealEstateMetrics(
        cashflow_net=round_cents(cashflow),
        cash_initial=round_cents(initial),
        payback_months=payback_months,
        payback_years=payback_years,
        cumulative_series=cumulative_series(-initial, cashflow),
    )
