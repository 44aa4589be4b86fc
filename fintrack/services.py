"""
Request-level operations: validate caller input, load records, run calculators.

Calculators never reject input. Everything a user can get wrong is checked
here and reported as ValidationError (400) or NotFoundError (404); results are
returned as JSON-ready dicts.
"""
import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Sequence

import duckdb

from fintrack.core import db
from fintrack.core.budgets import suggest_budgets
from fintrack.core.categorize import auto_categorize_batch
from fintrack.core.dates import month_start, trailing_window_start
from fintrack.core.investments import compute_investment_metrics, quote_single_lot
from fintrack.core.models import InterestMode, InvestmentInputs, SavingsInputs, TransactionType
from fintrack.core.money import normalize_currency, to_decimal
from fintrack.core.portfolio import ALL_TYPES, CATEGORY_TO_TYPE, portfolio_overview as build_overview
from fintrack.core.real_estate import compute_real_estate_metrics
from fintrack.core.savings import project_savings
from fintrack.core.statistics import (
    EVOLUTION_MONTHS,
    expense_total,
    expenses_by_account,
    expenses_by_category,
    household_summary,
    income_total,
    month_transactions,
    monthly_evolution,
    recent_transactions,
    top_expenses,
)

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def as_json(self) -> Dict:
        return {"error": self.message}


class ValidationError(ServiceError, ValueError):
    status = 400


class NotFoundError(ServiceError, LookupError):
    status = 404


def _number(params: Dict, key: str, required: bool = False) -> Decimal | None:
    """Read a numeric parameter; empty strings count as absent."""
    raw = params.get(key)
    if raw is None or raw == "":
        if required:
            raise ValidationError(f"Missing required field: {key}")
        return None
    try:
        value = to_decimal(raw)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{key} must be a number, got {raw!r}")
    if not value.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    return value


def real_estate_metrics(conn: duckdb.DuckDBPyConnection, investment_id: int) -> Dict:
    holding = db.load_real_estate(conn, investment_id)
    if holding is None:
        raise NotFoundError(f"Real estate investment {investment_id} not found")

    metrics = compute_real_estate_metrics(holding.inputs)
    logger.info(f"Real estate {investment_id}: cashflow {metrics.cashflow_net}/month")
    return {"investmentId": holding.id, "name": holding.name, **metrics.as_json()}


def _base_symbol(stored_base: str | None, symbol: str | None) -> str | None:
    if stored_base:
        return stored_base
    if symbol:
        return re.split(r"[/\-]", symbol)[0] or None
    return None


def investment_metrics(
    conn: duckdb.DuckDBPyConnection,
    asset_id: int,
    current_price,
    quote: str | None = None,
) -> Dict:
    """
    Metrics of a market-valued asset across all its purchase lots.

    `current_price` comes from the caller's price lookup, in the quote currency.
    """
    asset = db.load_asset(conn, asset_id)
    if asset is None:
        raise NotFoundError(f"Investment {asset_id} not found")

    price = _number({"current_price": current_price}, "current_price", required=True)
    if price <= 0:
        raise ValidationError(f"Invalid current price for investment {asset_id}")

    base_symbol = _base_symbol(asset.base_symbol, asset.symbol)
    if not base_symbol:
        raise ValidationError(f"Investment {asset_id} has no base symbol")
    quote_currency = normalize_currency(
        asset.quote_symbol or quote or db.get_setting(conn, "default_quote_currency")
    )

    if not asset.positions:
        raise ValidationError(f"Investment {asset_id} has no positions")

    metrics = compute_investment_metrics(InvestmentInputs(
        base_symbol=base_symbol.upper(),
        quote_currency=quote_currency,
        current_price=price,
        positions=asset.positions,
    ))
    return {"investmentId": asset.id, "investmentName": asset.name, **metrics.as_json()}


def quick_quote(payload: Dict) -> Dict:
    """P/L of a single purchase about to be recorded (crypto/ETF creation forms)."""
    quantity = _number(payload, "quantity", required=True)
    buy_unit_price = _number(payload, "buy_unit_price", required=True)
    current_price = _number(payload, "current_price", required=True)
    fees = _number(payload, "fees") or Decimal("0")

    for key, value in (("quantity", quantity), ("buy_unit_price", buy_unit_price), ("current_price", current_price)):
        if value <= 0:
            raise ValidationError(f"{key} must be greater than 0")
    if fees < 0:
        raise ValidationError("fees cannot be negative")

    return quote_single_lot(quantity, buy_unit_price, current_price, fees).as_json()


def savings_projection(params: Dict, default_mode: str = InterestMode.SIMPLE_ANNUAL.value) -> Dict:
    balance = _number(params, "current_balance") or Decimal("0")
    if balance <= 0:
        raise ValidationError("current_balance must be greater than 0")

    mode_name = params.get("interest_mode") or default_mode
    try:
        mode = InterestMode(mode_name)
    except ValueError:
        allowed = ", ".join(m.value for m in InterestMode)
        raise ValidationError(f"interest_mode must be one of: {allowed}")

    projection = project_savings(SavingsInputs(
        current_balance=balance,
        annual_rate_pct=_number(params, "annual_rate_pct"),
        monthly_contribution=_number(params, "monthly_contribution"),
        interest_mode=mode,
    ))
    return projection.as_json()


def budget_suggestions(conn: duckdb.DuckDBPyConnection, today: date | None = None) -> Dict[str, int]:
    """Suggested monthly budget per top-level category id (as string keys)."""
    since = trailing_window_start(today or date.today())
    expenses = db.load_expenses_since(conn, since)
    logger.debug(f"Budget suggestions from {len(expenses)} expenses since {since}")
    return {str(key): amount for key, amount in suggest_budgets(expenses).items()}


def categorize(conn: duckdb.DuckDBPyConnection, descriptions: Sequence[str | None]) -> List[Dict | None]:
    matches = auto_categorize_batch(descriptions, db.load_keywords(conn))
    return [
        None if cat is None else {
            "id": cat.id,
            "name": cat.name,
            "emoji": cat.emoji,
            "parentId": cat.parent_id,
        }
        for cat in matches
    ]


def portfolio_overview(
    conn: duckdb.DuckDBPyConnection,
    asset_type: str = ALL_TYPES,
    now: date | datetime | None = None,
) -> Dict:
    known = {ALL_TYPES, *CATEGORY_TO_TYPE.values()}
    if asset_type not in known:
        raise ValidationError(f"Unknown asset type: {asset_type}")

    overview = build_overview(db.load_assets(conn), db.load_real_estates(conn), asset_type, now)
    payload = overview.as_json()
    payload["updated_at"] = (now or datetime.now()).isoformat()
    return payload


def dashboard(conn: duckdb.DuckDBPyConnection, today: date | None = None) -> Dict:
    """
    Household summary for the current month.

    Net worth adds the portfolio's total value to the cash held in active
    accounts.
    """
    today = today or date.today()
    accounts = db.load_accounts(conn)
    transactions = db.load_transactions(conn, since=month_start(today, -(EVOLUTION_MONTHS - 1)))
    category_names = db.load_category_names(conn)

    summary = household_summary(accounts, transactions, category_names, today)
    holdings = build_overview(db.load_assets(conn), db.load_real_estates(conn), now=today)
    account_names = {a.id: a.name for a in accounts}

    payload = summary.as_json()
    payload["holdingsValue"] = float(holdings.total_value)
    payload["netWorth"] = float(holdings.total_value + summary.total_balance)
    payload["recentTransactions"] = [
        {
            "id": t.id,
            "description": t.description or "Transaction",
            "amount": float(t.amount),
            "type": TransactionType(t.type).value,
            "date": t.ts.isoformat(),
            "category": category_names.get(t.category_id),
            "account": account_names.get(t.account_id),
        }
        for t in recent_transactions(db.load_transactions(conn))
    ]
    return payload


def statistics(conn: duckdb.DuckDBPyConnection, today: date | None = None) -> Dict:
    """Six-month spending breakdowns and the month's largest expenses."""
    today = today or date.today()
    transactions = db.load_transactions(conn, since=month_start(today, -(EVOLUTION_MONTHS - 1)))
    category_names = db.load_category_names(conn)
    account_names = {a.id: a.name for a in db.load_accounts(conn)}
    current = month_transactions(transactions, today)

    def amounts(rows):
        return [{**row, "amount": float(row["amount"])} for row in rows]

    return {
        "monthlyIncome": float(income_total(current)),
        "monthlyExpenses": float(expense_total(current)),
        "categoryData": amounts(expenses_by_category(transactions, category_names, today)),
        "accountData": amounts(expenses_by_account(transactions, account_names, today)),
        "monthlyEvolution": [m.as_json() for m in monthly_evolution(transactions, today)],
        "topExpenses": [
            {**row, "date": row["date"].isoformat()}
            for row in amounts(top_expenses(transactions, category_names, today))
        ],
    }
