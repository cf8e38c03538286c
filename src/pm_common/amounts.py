"""Base-unit amount utilities.

Stake amounts are fixed-point integers in the currency's smallest unit
(WLD: 18 decimals, USDC: 6). They cross every boundary as decimal integer
strings and are summed as Python ints. Floats never enter amount arithmetic;
`format_compact` is display-only.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from src.pm_common.enums import Currency

CURRENCY_DECIMALS: dict[str, int] = {
    Currency.WLD.value: 18,
    Currency.USDC.value: 6,
    Currency.DEMO.value: 18,
}


def decimals_for(currency: str) -> int:
    try:
        return CURRENCY_DECIMALS[currency]
    except KeyError:
        raise ValueError(f"Unsupported currency: {currency}") from None


def parse_base_units(value: str | int) -> int:
    """Parse a non-negative base-unit amount: '1500' -> 1500."""
    if isinstance(value, bool):
        raise ValueError("Base-unit amount must be an int or digit string")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Base-unit amount must be non-negative, got {value}")
        return value
    if not value or not value.isascii() or not value.isdigit():
        raise ValueError(f"Base-unit amount must be a digit string, got {value!r}")
    return int(value)


def to_base_units(amount: str, currency: str) -> int:
    """Convert a human decimal string to base units: ('1.5', 'USDC') -> 1500000.

    Fractional digits beyond the currency precision are truncated.
    """
    decimals = decimals_for(currency)
    text = amount.strip()
    whole, _, frac = text.partition(".")
    if not whole:
        whole = "0"
    if not whole.isascii() or not whole.isdigit() or (frac and not (frac.isascii() and frac.isdigit())):
        raise ValueError(f"Amount must be a non-negative decimal string, got {amount!r}")
    padded_frac = frac.ljust(decimals, "0")[:decimals]
    return int(whole + padded_frac)


def from_base_units(base_units: str | int, currency: str) -> str:
    """Convert base units to a human decimal string: (1500000, 'USDC') -> '1.5'."""
    decimals = decimals_for(currency)
    digits = str(parse_base_units(base_units)).rjust(decimals + 1, "0")
    whole = digits[:-decimals] if decimals else digits
    frac = digits[-decimals:].rstrip("0") if decimals else ""
    return f"{whole}.{frac}" if frac else whole


def share_pct(part: int, total: int) -> float:
    """part/total as a percentage rounded half-up to 1 decimal; 0.0 when total is 0."""
    if total <= 0:
        return 0.0
    pct = (Decimal(part) * 100 / Decimal(total)).quantize(Decimal("0.1"), ROUND_HALF_UP)
    return float(pct)


_MILLION_CUTOFF = Decimal("999950")
_THOUSAND_CUTOFF = Decimal("999.5")


def format_compact(value: Decimal | int | str) -> str:
    """Compact display: 1234 -> '1.2k', 2500000 -> '2.5m', 0.004 -> '<0.01'.

    Unit boundaries sit where the rounded text would otherwise spill into the
    next unit, so 999999 renders '1.0m' rather than '1000.0k'.
    """
    try:
        n = Decimal(value)
    except InvalidOperation:
        return "-"
    if not n.is_finite():
        return "-"
    magnitude = abs(n)
    sign = "-" if n < 0 else ""
    if magnitude != 0 and magnitude < Decimal("0.01"):
        return f"{sign}<0.01"
    if magnitude >= _MILLION_CUTOFF:
        return f"{sign}{magnitude / 1_000_000:.1f}m"
    if magnitude >= _THOUSAND_CUTOFF:
        return f"{sign}{magnitude / 1_000:.1f}k"
    if magnitude >= Decimal("99.95"):
        return f"{n:.0f}"
    if magnitude >= Decimal("9.995"):
        return f"{n:.1f}"
    return f"{n:.2f}"
