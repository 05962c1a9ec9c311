"""
operations/billing.py -- Order totals and currency display.

Amounts are computed with Decimal and rounded half-up to cents, then handed
back as floats for storage. tax_rate and currency come from Settings
(tax.rate, currency).
"""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "JPY": "¥",
}


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def compute_totals(subtotal: float, tax_rate: float, discount: float = 0.0) -> tuple[float, float]:
    """Return (tax_amount, total_amount) for an order.

    Tax is charged on the subtotal before discount. The total never drops
    below zero.
    """
    if subtotal < 0 or discount < 0 or tax_rate < 0:
        raise ValueError("subtotal, discount and tax_rate must be non-negative")
    sub = _money(subtotal)
    tax = _money(sub * Decimal(str(tax_rate)))
    total = max(sub + tax - _money(discount), Decimal("0.00"))
    return float(tax), float(total)


def format_currency(amount: float, currency: str = "USD") -> str:
    """Format amount for display, e.g. 1234.5 -> "$1,234.50".

    Unknown currency codes are shown as a suffix: "1,234.50 CHF".
    """
    value = _money(amount)
    symbol = _CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{value:,.2f} {currency.upper()}"
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"
