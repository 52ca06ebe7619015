"""Money arithmetic for order totals and gateway amounts.

Amounts are stored as floats on aggregates; every calculation goes through
Decimal and is rounded half-up to cents before it is stored or compared.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")

# Card processing fee charged by the payment gateway
PROCESSING_PERCENTAGE_FEE = Decimal("0.029")
PROCESSING_FIXED_FEE = Decimal("0.30")


def to_decimal(amount) -> Decimal:
    if amount is None:
        return Decimal("0")
    return Decimal(str(amount))


def round_money(amount) -> float:
    """Round to cents, half-up, and return the float stored on aggregates."""
    return float(to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP))


def to_minor_units(amount) -> int:
    """Convert a major-unit amount (dollars) into minor units (cents)."""
    return int((to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def amounts_match(left, right) -> bool:
    """Two amounts are equal once both are rounded to cents."""
    return round_money(left) == round_money(right)


def line_total(unit_price, quantity: int) -> float:
    return round_money(to_decimal(unit_price) * quantity)


def calculate_tax(subtotal, tax_rate) -> float:
    return round_money(to_decimal(subtotal) * to_decimal(tax_rate))


def calculate_total(subtotal, tax, shipping, discount) -> float:
    return round_money(to_decimal(subtotal) + to_decimal(tax) + to_decimal(shipping) - to_decimal(discount))


def calculate_processing_fee(amount) -> float:
    return round_money(to_decimal(amount) * PROCESSING_PERCENTAGE_FEE + PROCESSING_FIXED_FEE)


def calculate_price_breakdown(subtotal, tax_rate) -> dict:
    """Checkout price breakdown shown to the buyer and to admins.

    Returns subtotal, tax, tax_rate, total, processing_fee and net_revenue
    (total minus the gateway's processing fee).
    """
    tax = calculate_tax(subtotal, tax_rate)
    total = round_money(to_decimal(subtotal) + to_decimal(tax))
    fee = calculate_processing_fee(total)
    return {
        "subtotal": round_money(subtotal),
        "tax": tax,
        "tax_rate": float(tax_rate),
        "total": total,
        "processing_fee": fee,
        "net_revenue": round_money(to_decimal(total) - to_decimal(fee)),
    }


def format_currency(amount, symbol: str = "$") -> str:
    return f"{symbol}{to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP):,.2f}"


def format_rate(rate) -> str:
    """Render a fractional rate as a percentage with one decimal, e.g. 11.5%."""
    percent = (to_decimal(rate) * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return f"{percent}%"
