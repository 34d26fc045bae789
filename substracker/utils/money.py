"""
Money rounding / formatting at the presentation boundary.

The engine keeps full Decimal precision (a yearly price divided by 12 is not
rounded); values are quantized only when they leave the process.

Usage:
    from substracker.utils.money import format_money

    format_money(Decimal("1200.5"))         -> "1 200.50 €"
    format_money(Decimal("10"), "USD")      -> "10.00 USD"
"""
from decimal import Decimal, ROUND_HALF_UP

_CENT = Decimal("0.01")

_CURRENCY_SUFFIX = {
    "EUR": "€",
}


def currency_label(code: str) -> str:
    return _CURRENCY_SUFFIX.get(code, code)


def quantize_money(amount) -> Decimal:
    """Round to cents, half up."""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def money_str(amount) -> str:
    """2-place string for JSON responses ("10.00")."""
    return str(quantize_money(amount))


def format_money(amount, currency: str = "EUR") -> str:
    """Thousands separated by spaces, 2 decimals, currency suffix."""
    formatted = f"{quantize_money(amount):,.2f}".replace(",", " ")
    return f"{formatted} {currency_label(currency)}"
