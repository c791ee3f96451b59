"""Score rounding shared by every report."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13).

    Built-in ``round`` uses banker's rounding, which would make scores
    disagree with reports produced by earlier tooling for the same inputs.
    """
    return math.floor(value + 0.5)
