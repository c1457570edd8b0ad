"""
Unit Tests for the Evaluation Coordinator

Tests for effective rating, correctness threshold, score and hint penalty.
"""
import pytest
from typing import List

from aiie import config
from aiie.core.clinical import NO_IMAGING_ID, Modality, RatingCategory, ScoringResult
from aiie.core.evaluation import SessionMode, base_score, evaluate, evaluate_for_session
from aiie.core.session.state import new_session


@pytest.fixture
def ranking() -> List[ScoringResult]:
    return [
        ScoringResult("mri", Modality.MRI, 9, "MRI rated 9/9", is_optimal=True),
        ScoringResult("ct", Modality.CT, 7, "CT rated 7/9"),
        ScoringResult("xr", Modality.XRAY, 3, "X-ray rated 3/9"),
        ScoringResult(NO_IMAGING_ID, Modality.NONE, 1, "No imaging rated 1/9"),
    ]


class TestScoring:
    """Score and hint penalty."""

    def test_optimal_no_hints_scores_100(self, ranking):
        result = evaluate({"mri"}, ranking, SessionMode.LEARNING, hints_used=0)
        assert result.effective_acr_rating == 9
        assert result.score == 100
        assert result.is_correct
        assert result.hint_penalty == 0

    def test_two_hints_cost_ten_points(self, ranking):
        result = evaluate({"mri"}, ranking, SessionMode.LEARNING, hints_used=2)
        assert result.hint_penalty == 2 * config.HINT_PENALTY
        assert result.score == 90

    def test_quiz_mode_ignores_hints(self, ranking):
        result = evaluate({"mri"}, ranking, SessionMode.QUIZ, hints_used=2)
        assert result.score == 100
        assert result.hint_penalty == 0

    def test_score_floored_at_zero(self, ranking):
        result = evaluate({NO_IMAGING_ID}, ranking, SessionMode.LEARNING, hints_used=10)
        assert result.score == 0

    @pytest.mark.parametrize("rating,expected", [
        (1, 11), (3, 33), (5, 56), (7, 78), (8, 89), (9, 100),
    ])
    def test_base_score(self, rating, expected):
        assert base_score(rating) == expected

    def test_score_monotonic_in_rating(self):
        scores = [base_score(r) for r in range(1, 10)]
        assert scores == sorted(scores)


class TestEffectiveRating:
    """Which selected option decides the grade."""

    def test_inappropriate_choice_is_incorrect(self, ranking):
        result = evaluate({"xr"}, ranking)
        assert result.effective_acr_rating == 3
        assert not result.is_correct
        assert result.rating_category == RatingCategory.USUALLY_NOT_APPROPRIATE

    def test_best_of_multiple_selections(self, ranking):
        result = evaluate({"xr", "ct"}, ranking)
        assert result.effective_acr_rating == 7
        assert result.best_option_id == "ct"
        assert result.is_correct

    def test_threshold_is_seven(self, ranking):
        assert evaluate({"ct"}, ranking).is_correct
        assert not evaluate({"xr"}, ranking).is_correct

    def test_no_imaging_is_exclusive(self, ranking):
        result = evaluate({NO_IMAGING_ID, "mri"}, ranking)
        assert result.effective_acr_rating == 1
        assert result.best_option_id == NO_IMAGING_ID

    def test_catalog_none_entry_is_exclusive(self):
        ranking = [
            ScoringResult("mri", Modality.MRI, 9, "MRI rated 9/9", is_optimal=True),
            ScoringResult("skip", Modality.NONE, 1, "No imaging rated 1/9"),
        ]
        result = evaluate({"skip", "mri"}, ranking)
        assert result.effective_acr_rating == 1
        assert result.best_option_id == "skip"
        assert not result.is_correct

    def test_empty_selection_gets_no_credit(self, ranking):
        result = evaluate(set(), ranking)
        assert result.effective_acr_rating == 1
        assert result.best_option_id is None
        assert not result.is_correct

    def test_unknown_ids_get_no_credit(self, ranking):
        assert evaluate({"pet"}, ranking).effective_acr_rating == 1

    def test_reports_optimal_option(self, ranking):
        result = evaluate({"xr"}, ranking)
        assert result.optimal_option_id == "mri"
        assert result.optimal_acr_rating == 9
        assert result.rationale == "X-ray rated 3/9"

    def test_evaluate_for_session_uses_state(self, ranking):
        state = new_session(mode=SessionMode.QUIZ)
        result = evaluate_for_session({"mri"}, ranking, state)
        assert result.score == 100

    def test_to_dict(self, ranking):
        payload = evaluate({"ct", "xr"}, ranking).to_dict()
        assert payload["selected_ids"] == ["ct", "xr"]
        assert payload["rating_category"] == "usually-appropriate"
