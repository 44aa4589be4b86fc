"""Tabular views of calculator results for the command line."""
from typing import Dict, Mapping, Sequence

import pandas as pd

from fintrack.core.investments import InvestmentMetrics
from fintrack.core.portfolio import PortfolioOverview
from fintrack.core.real_estate import RealEstateMetrics
from fintrack.core.statistics import MonthFlow

PORTFOLIO_COLUMNS = ["Type", "Name", "Platform", "Value", "P/L", "P/L %", "Currency"]
BUDGET_COLUMNS = ["Category", "Suggested budget"]
EVOLUTION_COLUMNS = ["Month", "Income", "Expenses", "Balance"]


def portfolio_frame(overview: PortfolioOverview) -> pd.DataFrame:
    """One row per holding, largest value first."""
    if not overview.items:
        return pd.DataFrame(columns=PORTFOLIO_COLUMNS)

    data = []
    for item in overview.items:
        data.append({
            "Type": item.type,
            "Name": item.name,
            "Platform": item.platform,
            "Value": f"{item.current_value:,.2f}",
            "P/L": f"{item.pl_value:,.2f}",
            "P/L %": f"{item.pl_pct:.2f}",
            "Currency": item.currency,
            "_sort": float(item.current_value),
        })

    df = pd.DataFrame(data).sort_values("_sort", ascending=False, kind="stable")
    return df.drop(columns="_sort").reset_index(drop=True)


def positions_frame(metrics: InvestmentMetrics) -> pd.DataFrame:
    """Purchase lots of one asset with their individual P/L."""
    data = []
    for valuation in metrics.positions:
        lot = valuation.lot
        data.append({
            "Purchase date": lot.purchase_date,
            "Quantity": f"{lot.quantity:.8f}",
            "Paid": f"{lot.paid_amount:,.2f} {lot.paid_currency}",
            f"Cost ({metrics.quote_currency})": f"{valuation.cost_basis:,.2f}",
            f"Value ({metrics.quote_currency})": f"{valuation.current_value:,.2f}",
            "P/L %": f"{valuation.pl_pct:.2f}",
        })
    return pd.DataFrame(data)


def cumulative_frame(metrics: RealEstateMetrics) -> pd.DataFrame:
    """Cumulative cash position by month, indexed by month number."""
    df = pd.DataFrame(
        [{"month": p.month, "cumulative": float(p.cumulative)} for p in metrics.cumulative_series]
    )
    return df.set_index("month")


def break_even_month(metrics: RealEstateMetrics) -> int | None:
    """First month whose cumulative cash position is non-negative."""
    series = cumulative_frame(metrics)["cumulative"]
    reached = series[series >= 0]
    return int(reached.index[0]) if not reached.empty else None


def budget_frame(suggestions: Mapping, category_names: Dict) -> pd.DataFrame:
    """Suggested budgets with category names, highest first."""
    if not suggestions:
        return pd.DataFrame(columns=BUDGET_COLUMNS)

    data = [
        {"Category": category_names.get(int(key), str(key)), "Suggested budget": amount}
        for key, amount in suggestions.items()
    ]
    df = pd.DataFrame(data).sort_values("Suggested budget", ascending=False, kind="stable")
    return df.reset_index(drop=True)


def evolution_frame(flows: Sequence[MonthFlow]) -> pd.DataFrame:
    """Income, expenses and balance per month, indexed by month label."""
    df = pd.DataFrame(
        [
            {
                "Month": flow.label,
                "Income": float(flow.income),
                "Expenses": float(flow.expenses),
                "Balance": float(flow.balance),
            }
            for flow in flows
        ],
        columns=EVOLUTION_COLUMNS,
    )
    return df.set_index("Month")


def breakdown_frame(rows: Sequence[Mapping], label: str) -> pd.DataFrame:
    """Name/amount rows from a spending breakdown, share of the total in percent."""
    if not rows:
        return pd.DataFrame(columns=[label, "Amount", "Share %"])

    df = pd.DataFrame({
        label: [row["name"] for row in rows],
        "Amount": [float(row["amount"]) for row in rows],
    })
    total = df["Amount"].sum()
    df["Share %"] = (df["Amount"] / total * 100).round(1) if total else 0.0
    return df
