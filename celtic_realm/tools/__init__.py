"""Tools for Celtic Realm."""

from .dice import Dice, DrawResult, RandomSource

__all__ = ["Dice", "DrawResult", "RandomSource"]
