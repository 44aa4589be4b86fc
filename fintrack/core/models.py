"""Data models for the finance tracker."""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Tuple


class InterestMode(str, Enum):
    """How a savings account projection capitalises interest over one year."""
    SIMPLE_ANNUAL = "simple_annuel"
    MONTHLY = "capitalisation_mensuelle"
    QUARTERLY = "capitalisation_trimestrielle"


class Compounding(str, Enum):
    """Compounding frequency for rate-based valuation over elapsed time."""
    ANNUAL = "annuelle"
    MONTHLY = "mensuelle"
    DAILY = "quotidienne"


class ValuationMode(str, Enum):
    MARKET = "marché"
    RATE = "taux"
    MANUAL = "manuel"
    EXTERNAL_IMPORT = "import_externe"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class PositionLot:
    """One purchase lot of an investment asset."""
    quantity: Decimal
    paid_amount: Decimal
    paid_currency: str
    purchase_date: date | datetime | None
    fx_rate_to_quote: Decimal | None = None
    cost_basis: Decimal | None = None  # per unit, as stored
    id: int | None = None


@dataclass(frozen=True)
class InvestmentInputs:
    base_symbol: str
    quote_currency: str
    current_price: Decimal  # in quote currency
    positions: Tuple[PositionLot, ...] = ()


@dataclass(frozen=True)
class RealEstateInputs:
    purchase_price: Decimal
    notary_fees: Decimal
    initial_works: Decimal
    down_payment: Decimal
    loan_monthly_payment: Decimal
    loan_insurance_monthly: Decimal
    rent_monthly: Decimal
    vacancy_rate_pct: Decimal
    non_recoverable_charges_monthly: Decimal
    property_tax_yearly: Decimal
    insurance_yearly: Decimal
    maintenance_reserve_monthly: Decimal | None = None


@dataclass(frozen=True)
class SavingsInputs:
    current_balance: Decimal
    annual_rate_pct: Decimal | None = None
    monthly_contribution: Decimal | None = None
    interest_mode: InterestMode = InterestMode.SIMPLE_ANNUAL


@dataclass(frozen=True)
class ExpenseEntry:
    """An expense transaction reduced to what budget suggestions need."""
    amount: Decimal  # negative for expenses
    category_id: int | None
    parent_id: int | None = None


@dataclass(frozen=True)
class CategoryRef:
    id: int
    name: str
    emoji: str | None = None
    parent_id: int | None = None


@dataclass(frozen=True)
class CategoryKeyword:
    keyword: str
    category: CategoryRef


@dataclass(frozen=True)
class AssetHolding:
    """An investment asset as seen by the portfolio overview."""
    id: int
    name: str
    category: str
    valuation_mode: ValuationMode = ValuationMode.MARKET
    symbol: str | None = None
    base_symbol: str | None = None
    quote_symbol: str | None = None
    platform: str | None = None
    currency: str = "EUR"
    quantity: Decimal | None = None
    positions: Tuple[PositionLot, ...] = ()
    amount_invested: Decimal | None = None
    current_price: Decimal | None = None
    manual_price: Decimal | None = None
    current_value: Decimal | None = None
    base_amount: Decimal | None = None
    annual_rate: Decimal | None = None
    start_date: date | datetime | None = None
    compounding: Compounding = Compounding.ANNUAL
    account_balance: Decimal | None = None  # linked account, if any


@dataclass(frozen=True)
class RealEstateHolding:
    id: int
    name: str
    inputs: RealEstateInputs
    subtitle: str | None = None


@dataclass(frozen=True)
class Account:
    id: int | None
    name: str
    type: str
    currency: str
    balance: Decimal
    active: bool = True


@dataclass(frozen=True)
class Transaction:
    id: int | None
    account_id: int
    ts: date
    type: TransactionType
    amount: Decimal
    category_id: int | None = None
    description: str | None = None
