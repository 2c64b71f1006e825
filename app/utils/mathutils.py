"""
Half-up rounding for points and scores.

Built-in round() sends exact halves to the even neighbour (round(2.5) == 2);
points and percentages here always round halves away from zero.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """
    round_half_up(2.5) == 3, round_half_up(3.125, 2) == 3.13.

    Returns an int when `digits` is 0, otherwise a float.
    """
    exponent = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)
