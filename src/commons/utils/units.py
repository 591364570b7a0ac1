from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP


def to_base_units(amount: float, decimals: int, round_down: bool = False) -> int:
    """
    Convert a UI amount into integer base units.

    The float goes through str() so 2.01 becomes 2010000 at six
    decimals instead of 2009999. `round_down` is used for minimum outputs,
    which must never exceed what the quote allows.
    """
    scaled = Decimal(str(amount)).scaleb(decimals)
    rounding = ROUND_DOWN if round_down else ROUND_HALF_UP
    return int(scaled.to_integral_value(rounding=rounding))


def from_base_units(amount: int, decimals: int) -> float:
    return amount / 10 ** decimals
