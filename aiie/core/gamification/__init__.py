"""
Gamification

Usage:
    from aiie.core.gamification import compute_points, calculate_streak

    points = compute_points(9, current_streak_days=10, time_spent_seconds=90, hints_used=0)
    points.total    # 117
"""
from .points import PointsBreakdown, compute_points
from .streak import calculate_streak

__all__ = [
    "PointsBreakdown",
    "compute_points",
    "calculate_streak",
]
