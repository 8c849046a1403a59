"""Rounding shared by the 0..100 scores."""
import math


def round_half_up(x: float) -> int:
    """Round to the nearest int with .5 going up (2.5 -> 3), unlike ``round``."""
    return int(math.floor(x + 0.5))
