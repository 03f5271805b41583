"""Decimal unit conversion for stakes (e.g. "0.05" at 18 decimals)."""

from decimal import Decimal, InvalidOperation


def parse_units(amount: str, decimals: int = 18) -> int:
    """
    Convert a decimal string to integer base units.

    Raises ValueError on malformed input, negative amounts, or more
    fractional digits than `decimals` allows.
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValueError(f"Not a decimal amount: {amount!r}")
    if not value.is_finite() or value < 0:
        raise ValueError(f"Amount must be a non-negative number: {amount!r}")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(
            f"Amount {amount!r} has more than {decimals} fractional digits"
        )
    return int(scaled)


def format_units(value: int, decimals: int = 18) -> str:
    """Inverse of parse_units(); trailing zeros are dropped."""
    text = format(Decimal(int(value)).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
