"""Currency rounding."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CENTS = Decimal("0.01")


def round2(value: float) -> float:
    """Round to 2 decimal places with half-up semantics.

    Goes through the decimal string form so 1.005 rounds to 1.01
    rather than inheriting binary float error.

    Args:
        value: Amount to round.

    Returns:
        Rounded amount.

    Raises:
        ValueError: If value is not a finite number.
    """
    try:
        quantized = Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"cannot round {value!r}") from exc
    return float(quantized)
