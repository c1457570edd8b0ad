"""
Gamification Scorer

Points awarded for a completed case:

    base           = rating × 10                      (10-90)
    streak_bonus   = base × min(30%, 1% per streak day)
    speed_bonus    = base × 10%  if solved in under SPEED_BONUS_SECONDS
    no_hints_bonus = base × 10%  if no hint was revealed
    total          = base + all bonuses               (≤ 1.5 × base)
"""
from __future__ import annotations

from dataclasses import dataclass

from aiie import config
from aiie.utils.exceptions import InputError
from aiie.core.clinical.base import ACR_MAX, ACR_MIN, round_half_up

POINTS_PER_RATING   = 10
STREAK_RATE_PER_DAY = 0.01
STREAK_RATE_CAP     = 0.30
SPEED_BONUS_RATE    = 0.10
NO_HINTS_BONUS_RATE = 0.10


@dataclass(frozen=True)
class PointsBreakdown:
    base: int
    streak_bonus: int
    speed_bonus: int
    no_hints_bonus: int
    total: int

    def to_dict(self) -> dict:
        return {
            "base": self.base,
            "streak_bonus": self.streak_bonus,
            "speed_bonus": self.speed_bonus,
            "no_hints_bonus": self.no_hints_bonus,
            "total": self.total,
        }


def compute_points(
    effective_acr_rating: int,
    current_streak_days: int,
    time_spent_seconds: float,
    hints_used: int,
) -> PointsBreakdown:
    """
    Compute the reward for one submission.

    Negative streak, time or hint counts are treated as zero.

    Raises:
        InputError: rating outside the ACR 1-9 scale.
    """
    if isinstance(effective_acr_rating, bool) or not isinstance(effective_acr_rating, int) \
            or not ACR_MIN <= effective_acr_rating <= ACR_MAX:
        raise InputError(
            f"effective_acr_rating must be an integer in 1-9, got {effective_acr_rating!r}",
            field="effective_acr_rating",
        )

    streak_days = max(0, current_streak_days)
    time_spent = max(0, time_spent_seconds)
    hints = max(0, hints_used)

    base = effective_acr_rating * POINTS_PER_RATING
    streak_bonus = round_half_up(base * min(STREAK_RATE_CAP, streak_days * STREAK_RATE_PER_DAY))
    speed_bonus = round_half_up(base * SPEED_BONUS_RATE) if time_spent < config.SPEED_BONUS_SECONDS else 0
    no_hints_bonus = round_half_up(base * NO_HINTS_BONUS_RATE) if hints == 0 else 0

    return PointsBreakdown(
        base=base,
        streak_bonus=streak_bonus,
        speed_bonus=speed_bonus,
        no_hints_bonus=no_hints_bonus,
        total=base + streak_bonus + speed_bonus + no_hints_bonus,
    )
