"""
Evaluation Coordinator

Usage:
    from aiie.core.evaluation import evaluate, SessionMode

    result = evaluate({"mri-brain-contrast"}, ranking, SessionMode.LEARNING, hints_used=1)
"""
from .coordinator import (
    EvaluationResult,
    SessionMode,
    base_score,
    evaluate,
    evaluate_for_session,
)

__all__ = [
    "EvaluationResult",
    "SessionMode",
    "base_score",
    "evaluate",
    "evaluate_for_session",
]
