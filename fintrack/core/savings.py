"""Savings account ("livret") projections and rate-based valuation."""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict

from fintrack.core.dates import years_elapsed
from fintrack.core.models import Compounding, InterestMode, SavingsInputs
from fintrack.core.money import HUNDRED, ONE, ZERO, to_decimal

MONTHS = 12
QUARTERS = 4
DAYS = 365

_PERIODS_PER_YEAR = {
    Compounding.ANNUAL: 1,
    Compounding.MONTHLY: MONTHS,
    Compounding.DAILY: DAYS,
}


@dataclass(frozen=True)
class SavingsProjection:
    current_value: Decimal
    projection_1y: Decimal
    estimated_interest_1y: Decimal

    def as_json(self) -> Dict:
        return {
            "currentValue": float(self.current_value),
            "projection1y": float(self.projection_1y),
            "estimatedInterest1y": float(self.estimated_interest_1y),
        }


def _monthly_contributions_compounded(contribution: Decimal, monthly_rate: Decimal) -> Decimal:
    # a contribution made in month m earns interest for 12 - m + 1 periods
    total = ZERO
    for month in range(1, MONTHS + 1):
        total += contribution * (ONE + monthly_rate) ** (MONTHS - month + 1)
    return total


def project_savings(inputs: SavingsInputs) -> SavingsProjection:
    """
    Project a savings balance one year ahead.

    simple_annuel: interest on the opening balance only, contributions added
    as-is; interest is estimated on the mid-year average balance.
    capitalisation_mensuelle: balance and each monthly contribution compound
    monthly.
    capitalisation_trimestrielle: balance compounds quarterly, contributions
    are added without interest.
    A missing or non-positive rate projects balance plus contributions.
    """
    balance = to_decimal(inputs.current_balance)
    rate = to_decimal(inputs.annual_rate_pct) if inputs.annual_rate_pct is not None else None
    contribution = to_decimal(inputs.monthly_contribution or 0)
    contributed = contribution * MONTHS
    has_rate = rate is not None and rate > 0

    projection = balance + contributed
    interest = ZERO

    if has_rate:
        mode = InterestMode(inputs.interest_mode)
        if mode is InterestMode.SIMPLE_ANNUAL:
            projection = balance * (ONE + rate / HUNDRED) + contributed
            average_balance = balance + contribution * 6
            interest = average_balance * rate / HUNDRED
        elif mode is InterestMode.MONTHLY:
            monthly_rate = rate / HUNDRED / MONTHS
            projection = balance * (ONE + monthly_rate) ** MONTHS
            projection += _monthly_contributions_compounded(contribution, monthly_rate)
            interest = projection - balance - contributed
        elif mode is InterestMode.QUARTERLY:
            quarterly_rate = rate / HUNDRED / QUARTERS
            projection = balance * (ONE + quarterly_rate) ** QUARTERS + contributed
            interest = projection - balance - contributed

    return SavingsProjection(
        current_value=balance,
        projection_1y=projection,
        estimated_interest_1y=interest,
    )


def rate_based_value(
    base_amount,
    annual_rate_pct,
    start: date | datetime,
    compounding: Compounding = Compounding.ANNUAL,
    now: date | datetime | None = None,
) -> Decimal:
    """
    Value of an interest-bearing placement after the time elapsed since `start`.

    V = P * (1 + r/n) ** (n * years), years counted in 365.25-day units.
    Returns `base_amount` unchanged when no time has elapsed.
    """
    base = to_decimal(base_amount)
    if now is None:
        tz = start.tzinfo if isinstance(start, datetime) else None
        now = datetime.now(tz)

    years = years_elapsed(start, now)
    if years <= 0:
        return base

    periods = Decimal(_PERIODS_PER_YEAR[Compounding(compounding)])
    rate = to_decimal(annual_rate_pct) / HUNDRED
    return base * (ONE + rate / periods) ** (periods * years)
