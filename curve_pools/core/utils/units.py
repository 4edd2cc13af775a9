from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, bool):
        raise TypeError("bool is not a numeric amount")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    return Decimal(str(value).strip())


def parse_units(amount: str | int | float | Decimal, decimals: int) -> int:
    """Human amount -> raw integer, truncating extra precision."""
    try:
        amt = _to_decimal(amount)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount}") from exc
    if not amt.is_finite():
        raise ValueError(f"Invalid token amount: {amount}")
    scale = Decimal(10) ** int(decimals)
    return int((amt * scale).to_integral_value(rounding=ROUND_DOWN))


def format_units(raw: int, decimals: int) -> str:
    """Raw integer -> decimal string, always with at least one fractional digit.

    Matches ethers' formatUnits: ``format_units(10**18, 18) == "1.0"``.
    """
    raw = int(raw)
    decimals = int(decimals)
    sign = "-" if raw < 0 else ""
    whole, frac = divmod(abs(raw), 10**decimals)
    if decimals == 0:
        return f"{sign}{whole}.0"
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"
