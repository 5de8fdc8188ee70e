from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (66.5 -> 67), unlike ``round``."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: float, whole: float) -> int:
    if whole <= 0:
        return 0
    return round_half_up(100 * part / whole)
