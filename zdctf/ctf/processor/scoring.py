"""Scoring Engine - decaying point values"""

import math
from dataclasses import dataclass

from zdctf.ctf.schemas.settings import SettingsSnapshot


@dataclass(frozen=True)
class Award:
    points: int
    is_first_blood: bool
    base_points: int
    solve_count: int


def decayed_points(
    base_points: int, solve_count: int, rate: float, divisor: float, min_points: int
) -> int:
    """max(floor(base * rate ** (solve_count / divisor)), min_points)

    >>> decayed_points(500, 0, 0.5, 10, 50)
    500
    >>> decayed_points(500, 10, 0.5, 10, 50)
    250
    >>> decayed_points(500, 100, 0.5, 10, 50)
    50
    """
    value = math.floor(base_points * rate ** (solve_count / divisor))
    return max(value, min_points)


def calculate_award(
    base_points: int,
    solve_count: int,
    is_first_blood: bool,
    snapshot: SettingsSnapshot,
) -> Award:
    """Points for a solve, given the solve count before it
    - the first blood bonus is added after the floor
    """
    points = decayed_points(
        base_points,
        solve_count,
        rate=snapshot.decay_rate,
        divisor=snapshot.decay_factor,
        min_points=snapshot.min_points,
    )
    if is_first_blood:
        points += snapshot.first_blood_bonus
    return Award(
        points=points,
        is_first_blood=is_first_blood,
        base_points=base_points,
        solve_count=solve_count,
    )
