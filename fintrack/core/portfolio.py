"""Portfolio overview: value every holding by its valuation mode and aggregate."""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Sequence

from fintrack.core.models import AssetHolding, RealEstateHolding, ValuationMode
from fintrack.core.money import HUNDRED, ONE, ZERO, pct_of, round_units, to_decimal
from fintrack.core.real_estate import compute_real_estate_metrics
from fintrack.core.savings import rate_based_value

ALL_TYPES = "all"
REAL_ESTATE_TYPE = "immobilier"
OTHER_TYPE = "autres"

CATEGORY_TO_TYPE = {
    "Crypto": "crypto",
    "Action": "bourse",
    "ETF": "bourse",
    "Livret": "épargne",
    "Fonds euros": "épargne",
    "Immobilier": REAL_ESTATE_TYPE,
    "Crowdfunding": OTHER_TYPE,
    "Royaltiz": OTHER_TYPE,
    "Autre": OTHER_TYPE,
}

RANKED = 3


@dataclass(frozen=True)
class AssetValuation:
    id: str
    type: str
    name: str
    subtitle: str
    platform: str
    category: str
    currency: str
    quantity: Decimal
    cost: Decimal
    current_price: Decimal
    current_value: Decimal
    pl_value: Decimal
    pl_pct: Decimal

    def as_json(self) -> Dict:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "subtitle": self.subtitle,
            "platform": self.platform,
            "value": float(self.current_value),
            "pl_value": float(self.pl_value),
            "pl_pct": float(self.pl_pct),
            "category": self.category,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class PortfolioOverview:
    total_value: Decimal
    total_cost: Decimal
    period_change_pct: Decimal
    allocation: List[Dict]
    top: List[Dict]
    worst: List[Dict]
    items: List[AssetValuation]

    def as_json(self) -> Dict:
        return {
            "total_value": float(self.total_value),
            "total_cost": float(self.total_cost),
            "period_change_pct": float(self.period_change_pct),
            "allocation": self.allocation,
            "top": self.top,
            "worst": self.worst,
            "items": [item.as_json() for item in self.items],
        }


def dashboard_type(category: str) -> str:
    return CATEGORY_TO_TYPE.get(category, OTHER_TYPE)


def _quantity_and_cost(asset: AssetHolding) -> tuple[Decimal, Decimal]:
    if asset.positions:
        quantity = ZERO
        cost = ZERO
        for lot in asset.positions:
            lot_qty = to_decimal(lot.quantity)
            quantity += lot_qty
            cost += lot_qty * to_decimal(lot.cost_basis or 0)
        return quantity, cost

    quantity = to_decimal(asset.quantity) if asset.quantity else ONE
    cost = to_decimal(asset.amount_invested) if asset.amount_invested else ZERO
    return quantity, cost


def _rate_value(asset: AssetHolding, cost: Decimal, now) -> Decimal:
    if asset.category == "Livret" and asset.account_balance is not None:
        return to_decimal(asset.account_balance)
    if asset.base_amount and asset.annual_rate and asset.start_date:
        return rate_based_value(
            asset.base_amount, asset.annual_rate, asset.start_date, asset.compounding, now=now
        )
    if asset.base_amount:
        return to_decimal(asset.base_amount)
    return cost


def value_asset(asset: AssetHolding, now: date | datetime | None = None) -> AssetValuation:
    """
    Current value of an investment asset according to its valuation mode.

    Missing prices fall back to the average cost, missing imported values to
    the cost, so an asset without market data shows zero P/L.
    """
    quantity, cost = _quantity_and_cost(asset)
    average_cost = cost / quantity if quantity > 0 else ZERO
    divisor = quantity or ONE
    mode = ValuationMode(asset.valuation_mode)

    if mode is ValuationMode.RATE:
        value = _rate_value(asset, cost, now)
        price = value / divisor
    elif mode is ValuationMode.MANUAL:
        price = to_decimal(asset.manual_price) if asset.manual_price else average_cost
        value = quantity * price
    elif mode is ValuationMode.EXTERNAL_IMPORT:
        value = to_decimal(asset.current_value) if asset.current_value else cost
        price = value / quantity if quantity > 0 else ZERO
    else:
        price = to_decimal(asset.current_price) if asset.current_price else average_cost
        value = quantity * price

    pl_value = value - cost
    return AssetValuation(
        id=str(asset.id),
        type=dashboard_type(asset.category),
        name=asset.name,
        subtitle=asset.symbol or f"{quantity:.4f} unités",
        platform=asset.platform or "-",
        category=asset.category,
        currency=asset.currency,
        quantity=quantity,
        cost=cost,
        current_price=price,
        current_value=value,
        pl_value=pl_value,
        pl_pct=pct_of(pl_value, cost),
    )


def value_real_estate(holding: RealEstateHolding) -> AssetValuation:
    """Initial cash plus one year of net cash flow, measured against the initial cash."""
    metrics = compute_real_estate_metrics(holding.inputs)
    cost = metrics.cash_initial
    value = cost + metrics.cashflow_net * 12
    pl_value = value - cost
    return AssetValuation(
        id=f"re_{holding.id}",
        type=REAL_ESTATE_TYPE,
        name=holding.name,
        subtitle=holding.subtitle or "Immobilier",
        platform="-",
        category="Immobilier",
        currency="EUR",
        quantity=ONE,
        cost=cost,
        current_price=value,
        current_value=value,
        pl_value=pl_value,
        pl_pct=pct_of(pl_value, cost),
    )


def allocation_by_type(items: Sequence[AssetValuation], total_value: Decimal) -> List[Dict]:
    """Whole-percent share of each dashboard type with a positive value."""
    totals: Dict[str, Decimal] = {}
    for item in items:
        totals[item.type] = totals.get(item.type, ZERO) + item.current_value

    if total_value <= 0:
        return []
    return [
        {"label": label, "value": round_units(value / total_value * HUNDRED)}
        for label, value in totals.items()
        if value > 0
    ]


def portfolio_overview(
    assets: Sequence[AssetHolding],
    real_estates: Sequence[RealEstateHolding] = (),
    asset_type: str = ALL_TYPES,
    now: date | datetime | None = None,
) -> PortfolioOverview:
    """Value all holdings, optionally restricted to one dashboard type."""
    if asset_type != ALL_TYPES:
        assets = [a for a in assets if dashboard_type(a.category) == asset_type]
        if asset_type != REAL_ESTATE_TYPE:
            real_estates = []

    items = [value_asset(asset, now) for asset in assets]
    items += [value_real_estate(holding) for holding in real_estates]

    total_value = sum((item.current_value for item in items), ZERO)
    total_cost = sum((item.cost for item in items), ZERO)

    ranked = sorted(items, key=lambda item: item.pl_pct, reverse=True)
    top = [{"label": item.name, "pct": float(item.pl_pct)} for item in ranked[:RANKED]]
    worst = [{"label": item.name, "pct": float(item.pl_pct)} for item in reversed(ranked[-RANKED:])]

    return PortfolioOverview(
        total_value=total_value,
        total_cost=total_cost,
        period_change_pct=pct_of(total_value - total_cost, total_cost),
        allocation=allocation_by_type(items, total_value),
        top=top,
        worst=worst,
        items=items,
    )
