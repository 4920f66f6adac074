from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

MONEY_QUANT = Decimal("0.01")
ZERO_MONEY = Decimal("0.00")


def to_money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def parse_money(value: object) -> Decimal | None:
    """Parse client-supplied amounts ("12.5", 12.5, 12) into money; None when not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return to_money(parsed)


def minor_to_money(minor_units: int | None) -> Decimal:
    if not minor_units:
        return ZERO_MONEY
    return to_money(Decimal(int(minor_units)) / 100)


def money_to_minor(value: Decimal) -> int:
    return int((to_money(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def format_money(value: Decimal) -> str:
    return f"{to_money(value):.2f}"
