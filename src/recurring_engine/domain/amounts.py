from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero on the decimal value as written (``1.005`` -> ``1.01``)."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def to_cents(value: float) -> float:
    return round_half_up(value, 2)
