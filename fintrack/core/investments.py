"""Investment position valuation: cost basis, current value and P/L per lot and per asset."""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from fintrack.core.models import InvestmentInputs, PositionLot
from fintrack.core.money import ZERO, as_float, convert, pct_of, same_currency, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionValuation:
    lot: PositionLot
    cost_basis: Decimal  # in quote currency
    current_value: Decimal
    pl_value: Decimal
    pl_pct: Decimal

    def as_json(self) -> Dict:
        purchase_date = self.lot.purchase_date
        return {
            "id": self.lot.id,
            "quantity": float(self.lot.quantity),
            "paidAmount": float(self.lot.paid_amount),
            "paidCurrency": self.lot.paid_currency,
            "purchaseDate": purchase_date.isoformat() if purchase_date else None,
            "fxRateToQuote": as_float(self.lot.fx_rate_to_quote),
            "costBasis": float(self.cost_basis),
            "currentValue": float(self.current_value),
            "plValue": float(self.pl_value),
            "plPct": float(self.pl_pct),
        }


@dataclass(frozen=True)
class InvestmentMetrics:
    base_symbol: str
    quote_currency: str
    quantity: Decimal
    average_buy_price: Decimal | None
    current_price: Decimal
    current_value: Decimal
    cost_basis: Decimal
    pl_value: Decimal
    pl_pct: Decimal
    positions: List[PositionValuation]

    def as_json(self) -> Dict:
        return {
            "baseSymbol": self.base_symbol,
            "quoteCurrency": self.quote_currency,
            "quantity": float(self.quantity),
            "buyPrice": as_float(self.average_buy_price),
            "currentPrice": float(self.current_price),
            "currentValue": float(self.current_value),
            "costBasis": float(self.cost_basis),
            "plValue": float(self.pl_value),
            "plPct": float(self.pl_pct),
            "positions": [p.as_json() for p in self.positions],
        }


@dataclass(frozen=True)
class LotQuote:
    """Metrics for a single synthetic lot, used when an asset is first recorded."""
    quantity: Decimal
    buy_unit_price: Decimal
    fees: Decimal
    current_price: Decimal
    cost_basis_quote: Decimal
    current_value: Decimal
    pl_value: Decimal
    pl_pct: Decimal

    def as_json(self) -> Dict:
        return {
            "currentPrice": float(self.current_price),
            "costBasisQuote": float(self.cost_basis_quote),
            "currentValue": float(self.current_value),
            "plValue": float(self.pl_value),
            "plPct": float(self.pl_pct),
        }


def trading_symbol(base_symbol: str, quote_currency: str) -> str:
    """Pair symbol such as BTCUSD."""
    return f"{base_symbol}{quote_currency}".upper()


def lot_cost_basis(lot: PositionLot, quote_currency: str) -> Decimal:
    """
    Amount paid for a lot, expressed in the quote currency.

    Without an FX rate the paid currency is assumed to be the quote currency.
    """
    paid = to_decimal(lot.paid_amount)
    rate = lot.fx_rate_to_quote
    if (rate is None or rate <= 0) and not same_currency(lot.paid_currency, quote_currency):
        logger.warning(
            f"No FX rate for lot paid in {lot.paid_currency}, valuing it as {quote_currency}"
        )
    return convert(paid, None if rate is None else to_decimal(rate))


def value_position(lot: PositionLot, current_price: Decimal, quote_currency: str) -> PositionValuation:
    """Value one purchase lot at the current market price."""
    cost_basis = lot_cost_basis(lot, quote_currency)
    current_value = to_decimal(lot.quantity) * to_decimal(current_price)
    pl_value = current_value - cost_basis
    return PositionValuation(
        lot=lot,
        cost_basis=cost_basis,
        current_value=current_value,
        pl_value=pl_value,
        pl_pct=pct_of(pl_value, cost_basis),
    )


def compute_investment_metrics(inputs: InvestmentInputs) -> InvestmentMetrics:
    """
    Aggregate all purchase lots of an asset.

    Total quantity and cost basis are derived from the lots. A zero cost basis
    yields a P/L percentage of exactly 0.
    """
    price = to_decimal(inputs.current_price)
    valuations = [value_position(lot, price, inputs.quote_currency) for lot in inputs.positions]

    quantity = sum((to_decimal(v.lot.quantity) for v in valuations), ZERO)
    cost_basis = sum((v.cost_basis for v in valuations), ZERO)
    current_value = quantity * price
    pl_value = current_value - cost_basis

    return InvestmentMetrics(
        base_symbol=inputs.base_symbol,
        quote_currency=inputs.quote_currency,
        quantity=quantity,
        average_buy_price=cost_basis / quantity if quantity > 0 else None,
        current_price=price,
        current_value=current_value,
        cost_basis=cost_basis,
        pl_value=pl_value,
        pl_pct=pct_of(pl_value, cost_basis),
        positions=valuations,
    )


def quote_single_lot(quantity, buy_unit_price, current_price, fees=0) -> LotQuote:
    """Cost basis (quantity * unit price + fees), value and P/L of one lot."""
    quantity = to_decimal(quantity)
    buy_unit_price = to_decimal(buy_unit_price)
    current_price = to_decimal(current_price)
    fees = to_decimal(fees or 0)

    cost_basis = quantity * buy_unit_price + fees
    current_value = quantity * current_price
    pl_value = current_value - cost_basis

    return LotQuote(
        quantity=quantity,
        buy_unit_price=buy_unit_price,
        fees=fees,
        current_price=current_price,
        cost_basis_quote=cost_basis,
        current_value=current_value,
        pl_value=pl_value,
        pl_pct=pct_of(pl_value, cost_basis),
    )
