"""
Decimal precision rules shared by the engine, schemas and reports.
Quantities carry 3 places, unit costs 4, money totals 2.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

QUANTITY_PLACES = Decimal("0.001")
COST_PLACES = Decimal("0.0001")
MONEY_PLACES = Decimal("0.01")
PERCENT_PLACES = Decimal("0.01")

ZERO = Decimal("0")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "$",
    "AUD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


def _dec(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value if value is not None else 0))


def to_quantity(value: Any) -> Decimal:
    return _dec(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def to_cost(value: Any) -> Decimal:
    return _dec(value).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Decimal:
    return _dec(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def to_percent(value: Any) -> Decimal:
    return _dec(value).quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)


def format_quantity(value: Any, unit: str = "") -> str:
    text = f"{to_quantity(value)}"
    return f"{text} {unit}".strip()


def format_money(value: Any, currency_symbol: str = "$") -> str:
    return f"{currency_symbol}{to_money(value):,.2f}"


def format_unit_cost(value: Any, unit: str, currency_symbol: str = "$") -> str:
    """Unit cost as shown on purchase entry: ``$X.XXXX per unit``."""
    return f"{currency_symbol}{to_cost(value)} per {unit}"


def currency_symbol(currency: str) -> str:
    """Display prefix for an ISO currency code; unknown codes print as ``KES 12.00``."""
    code = currency.strip().upper()
    return CURRENCY_SYMBOLS.get(code, f"{code} ")
