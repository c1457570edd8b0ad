"""
Evaluation Coordinator

Compares a learner's imaging order with the engine's ranking and
produces the verdict shown in the feedback panel.

Scoring:
    score = round(effective_acr_rating / 9 * 100)
    learning mode: minus HINT_PENALTY per hint used, floored at 0
    quiz mode:     no hint penalty (hints are unavailable)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Sequence, TYPE_CHECKING

from aiie import config
from aiie.core.clinical.base import (
    ACR_MAX,
    ACR_MIN,
    APPROPRIATE_THRESHOLD,
    NO_IMAGING_ID,
    RatingCategory,
    ScoringResult,
    rating_category,
    round_half_up,
)

if TYPE_CHECKING:
    from aiie.core.session.state import SessionState

logger = logging.getLogger(__name__)


class SessionMode(str, Enum):
    """LEARNING – hints, no timer.  QUIZ – no hints, countdown timer."""
    LEARNING = "learning"
    QUIZ     = "quiz"


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one submitted imaging order."""
    selected_ids: FrozenSet[str]
    effective_acr_rating: int
    rating_category: RatingCategory
    is_correct: bool
    score: int
    hint_penalty: int = 0

    # ── Feedback ──────────────────────────────────────────────────────────
    best_option_id: Optional[str] = None     # selected option that set the rating
    rationale: Optional[str] = None
    optimal_option_id: Optional[str] = None
    optimal_acr_rating: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "selected_ids": sorted(self.selected_ids),
            "effective_acr_rating": self.effective_acr_rating,
            "rating_category": self.rating_category.value,
            "is_correct": self.is_correct,
            "score": self.score,
            "hint_penalty": self.hint_penalty,
            "best_option_id": self.best_option_id,
            "rationale": self.rationale,
            "optimal_option_id": self.optimal_option_id,
            "optimal_acr_rating": self.optimal_acr_rating,
        }


def base_score(effective_acr_rating: int) -> int:
    """Map an ACR rating onto 0-100 before any hint penalty."""
    return round_half_up(effective_acr_rating / ACR_MAX * 100)


def _effective_result(
    selection: FrozenSet[str],
    ranking: Sequence[ScoringResult],
) -> Optional[ScoringResult]:
    no_imaging = next((r for r in ranking if r.is_no_imaging), None)
    if NO_IMAGING_ID in selection or (
        no_imaging is not None and no_imaging.imaging_option_id in selection
    ):
        # Exclusive: every other id in the selection is ignored
        return no_imaging

    best = None
    for result in ranking:
        if result.imaging_option_id in selection:
            if best is None or result.acr_rating > best.acr_rating:
                best = result
    return best


def evaluate(
    selection: Iterable[str],
    ranking: Sequence[ScoringResult],
    mode: SessionMode = SessionMode.LEARNING,
    hints_used: int = 0,
) -> EvaluationResult:
    """
    Score a learner's selection against a ranking.

    Args:
        selection: Selected imaging option ids.  Containing "no-imaging",
            or the id of a catalog `none` entry, makes the order a
            no-imaging order regardless of other ids.
        ranking: Output of AppropriatenessEngine.rank for the case
        mode: Session mode; only learning mode applies the hint penalty
        hints_used: Hints revealed during the attempt

    Returns:
        EvaluationResult.  An empty selection, or one matching nothing in
        the ranking, is rated 1 (no credit).
    """
    selected = frozenset(selection)
    mode = SessionMode(mode)

    effective = _effective_result(selected, ranking)
    rating = effective.acr_rating if effective is not None else ACR_MIN

    hint_penalty = config.HINT_PENALTY * max(0, hints_used) if mode == SessionMode.LEARNING else 0
    score = max(0, base_score(rating) - hint_penalty)

    optimal = next((r for r in ranking if r.is_optimal), None)

    result = EvaluationResult(
        selected_ids=selected,
        effective_acr_rating=rating,
        rating_category=rating_category(rating),
        is_correct=rating >= APPROPRIATE_THRESHOLD,
        score=score,
        hint_penalty=hint_penalty,
        best_option_id=effective.imaging_option_id if effective is not None else None,
        rationale=effective.rationale if effective is not None else None,
        optimal_option_id=optimal.imaging_option_id if optimal is not None else None,
        optimal_acr_rating=optimal.acr_rating if optimal is not None else None,
    )
    logger.debug(
        f"Evaluation: {len(selected)} selected, rating={rating}, "
        f"score={score}, correct={result.is_correct}"
    )
    return result


def evaluate_for_session(
    selection: Iterable[str],
    ranking: Sequence[ScoringResult],
    state: "SessionState",
) -> EvaluationResult:
    """Evaluate using the mode and hint count of a session."""
    return evaluate(selection, ranking, state.mode, state.hints_revealed)
