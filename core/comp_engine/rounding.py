"""
Rounding shared by models, scoring and aggregation.
"""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up."""
    return int(math.floor(value + 0.5))
