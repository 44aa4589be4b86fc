"""Decimal and currency helpers shared by the calculators."""
from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_decimal_or_none(value) -> Decimal | None:
    if value is None:
        return None
    return to_decimal(value)


def round_cents(value: Decimal) -> Decimal:
    """Round a monetary amount to 2 decimals, halves away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_units(value: Decimal) -> int:
    """Round to the nearest whole unit, halves away from zero."""
    return int(to_decimal(value).quantize(ONE, rounding=ROUND_HALF_UP))


def pct_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100, or exactly 0 when whole is not positive."""
    if whole > 0:
        return part / whole * HUNDRED
    return ZERO


def normalize_currency(code: str | None) -> str | None:
    if code is None:
        return None
    return code.strip().upper()


def same_currency(a: str | None, b: str | None) -> bool:
    return normalize_currency(a) == normalize_currency(b)


def convert(amount: Decimal, fx_rate: Decimal | None) -> Decimal:
    """
    Convert an amount with an explicit FX rate.

    A missing or non-positive rate leaves the amount unchanged: the caller is
    trusted to have paid in the target currency.
    """
    if fx_rate is not None and fx_rate > 0:
        return amount * fx_rate
    return amount


def as_float(value: Decimal | None) -> float | None:
    """Serialize a Decimal for JSON output."""
    return None if value is None else float(value)
