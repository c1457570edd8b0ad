"""
Unit Tests for the Appropriateness Ranking Engine

Tests for rule-table validation, scoring, ordering, the no-imaging
result and the built-in case library.
"""
import pytest

from aiie.core.clinical import (
    NO_IMAGING_ID,
    Modality,
    RatingCategory,
    validate_catalog,
    validate_clinical_input,
)
from aiie.core.ranking import (
    DEFAULT_RULES,
    MODALITY_BASELINES,
    AppropriatenessEngine,
    Rule,
    rank,
    validate_rule_table,
)
from aiie.utils.exceptions import RuleEvaluationError, RuleTableError


def _by_id(results):
    return {r.imaging_option_id: r for r in results}


class TestRuleTable:
    """Tests for the declarative rule table."""

    def test_default_table_is_valid(self):
        validate_rule_table(DEFAULT_RULES, MODALITY_BASELINES)

    def test_rule_ids_are_unique(self):
        ids = [r.rule_id for r in DEFAULT_RULES]
        assert len(ids) == len(set(ids))

    def test_duplicate_rule_id_rejected(self):
        rule = DEFAULT_RULES[0]
        with pytest.raises(RuleTableError) as exc_info:
            AppropriatenessEngine(rules=[rule, rule])
        assert exc_info.value.rule_id == rule.rule_id

    def test_none_modality_adjustment_rejected(self):
        bad = Rule("bad", "a bad rule", lambda ci: True, {Modality.NONE: 1})
        with pytest.raises(RuleTableError):
            validate_rule_table([bad])

    def test_non_integer_delta_rejected(self):
        bad = Rule("bad", "a bad rule", lambda ci: True, {Modality.CT: 1.5})
        with pytest.raises(RuleTableError):
            validate_rule_table([bad])

    def test_missing_baseline_rejected(self):
        baselines = dict(MODALITY_BASELINES)
        del baselines[Modality.PET]
        with pytest.raises(RuleTableError):
            AppropriatenessEngine(baselines=baselines)

    def test_contrast_adjustment_applies_only_with_contrast(self):
        cancer = next(r for r in DEFAULT_RULES if r.rule_id == "cancer-history")
        assert cancer.adjustment_for(Modality.MRI, contrast=True) == \
            cancer.adjustment_for(Modality.MRI) + 1


class TestScoring:
    """Tests for per-option ratings."""

    def test_no_rules_gives_baseline(self, engine, plain_presentation, head_catalog):
        results = _by_id(engine.rank(plain_presentation, head_catalog))
        for option_id in ("ct-head", "mri-brain", "xr-skull"):
            assert results[option_id].acr_rating == 5
            assert results[option_id].contributions == ()
            assert "baseline" in results[option_id].rationale

    def test_ratings_clamped_to_scale(self, engine, flagged_presentation, head_catalog):
        for result in engine.rank(flagged_presentation, head_catalog):
            assert 1 <= result.acr_rating <= 9

    def test_flagged_ratings(self, engine, flagged_presentation, head_catalog):
        results = _by_id(engine.rank(flagged_presentation, head_catalog))
        assert results["mri-brain"].acr_rating == 9
        assert results["ct-head"].acr_rating == 9
        assert results["xr-skull"].acr_rating == 7

    def test_rationale_names_contributing_factors(self, engine, flagged_presentation, head_catalog):
        mri = _by_id(engine.rank(flagged_presentation, head_catalog))["mri-brain"]
        assert mri.rationale.startswith("MRI brain without contrast rated 9/9 (Usually appropriate)")
        assert "a focal neurologic deficit" in mri.rationale
        assert {c.rule_id for c in mri.contributions} >= {"red-flags", "neurologic-deficit"}

    def test_contributions_carry_citations(self, engine, flagged_presentation, head_catalog):
        mri = _by_id(engine.rank(flagged_presentation, head_catalog))["mri-brain"]
        citations = {c.rule_id: c.citation for c in mri.contributions}
        assert citations["neurologic-deficit"] == "Neurology 2020: Imaging in neurologic emergencies"
        assert citations["red-flags"] == "JAMA 2019: Red flags in imaging guidelines"
        payload = mri.to_dict()["contributions"]
        assert all("citation" in c for c in payload)

    def test_category_follows_rating(self, engine, flagged_presentation, head_catalog):
        for result in engine.rank(flagged_presentation, head_catalog):
            if result.acr_rating >= 7:
                assert result.category == RatingCategory.USUALLY_APPROPRIATE
            elif result.acr_rating >= 4:
                assert result.category == RatingCategory.MAY_BE_APPROPRIATE
            else:
                assert result.category == RatingCategory.USUALLY_NOT_APPROPRIATE

    def test_pediatric_penalises_ionising_studies(self, engine, head_catalog):
        child = validate_clinical_input({"age": 8, "sex": "male", "duration": "subacute"})
        results = _by_id(engine.rank(child, head_catalog))
        assert results["ct-head"].acr_rating == 4
        assert results["mri-brain"].acr_rating == 6


class TestRanking:
    """Tests for ordering, optimal flag and tie-breaks."""

    def test_empty_catalog_returns_empty(self, engine, flagged_presentation):
        assert engine.rank(flagged_presentation, []) == []

    def test_exactly_one_optimal_at_head(self, engine, flagged_presentation, head_catalog):
        results = engine.rank(flagged_presentation, head_catalog)
        assert results[0].is_optimal
        assert sum(r.is_optimal for r in results) == 1

    def test_sorted_by_rating(self, engine, flagged_presentation, head_catalog):
        ratings = [r.acr_rating for r in engine.rank(flagged_presentation, head_catalog)]
        assert ratings == sorted(ratings, reverse=True)

    def test_tie_broken_by_radiation(self, engine, flagged_presentation, head_catalog):
        results = engine.rank(flagged_presentation, head_catalog)
        assert [r.imaging_option_id for r in results] == ["mri-brain", "ct-head", "xr-skull", NO_IMAGING_ID]

    def test_tie_broken_by_cost_then_position(self, engine, plain_presentation):
        catalog = validate_catalog([
            {"id": "mri-a", "modality": "mri", "cost_usd": 900},
            {"id": "mri-b", "modality": "mri", "cost_usd": 700},
            {"id": "mri-c", "modality": "mri", "cost_usd": 700},
        ])
        results = [r.imaging_option_id for r in engine.rank(plain_presentation, catalog)]
        assert results[1:] == ["mri-b", "mri-c", "mri-a"]

    def test_deterministic(self, engine, flagged_presentation, head_catalog):
        first = engine.rank(flagged_presentation, head_catalog)
        second = AppropriatenessEngine().rank(flagged_presentation, head_catalog)
        assert first == second

    def test_module_level_rank_uses_default_engine(self, flagged_presentation, head_catalog):
        assert rank(flagged_presentation, head_catalog) == \
            AppropriatenessEngine().rank(flagged_presentation, head_catalog)

    def test_failing_rule_aborts_ranking(self, plain_presentation, head_catalog):
        def explode(ci):
            raise ValueError("boom")

        engine = AppropriatenessEngine(rules=[
            DEFAULT_RULES[0],
            Rule("exploding", "an exploding rule", explode, {Modality.CT: 1}),
        ])
        with pytest.raises(RuleEvaluationError) as exc_info:
            engine.rank(plain_presentation, head_catalog)
        assert exc_info.value.rule_id == "exploding"


class TestAlternativeRecommendation:
    """Options rated 1-3 point at a better choice."""

    def test_points_at_optimal_study(self, engine, flagged_presentation, head_catalog):
        results = _by_id(engine.rank(flagged_presentation, head_catalog))
        assert results[NO_IMAGING_ID].alternative_recommendation == \
            "Consider MRI brain without contrast instead (9/9)."
        assert results["mri-brain"].alternative_recommendation is None
        assert results["xr-skull"].alternative_recommendation is None

    def test_points_at_conservative_management(self, engine, head_catalog):
        child = validate_clinical_input({
            "age": 8, "sex": "female", "duration": "chronic", "severity": "mild",
        })
        results = _by_id(engine.rank(child, head_catalog))
        assert results[NO_IMAGING_ID].is_optimal
        assert results["ct-head"].acr_rating == 2
        assert results["ct-head"].alternative_recommendation == \
            "Consider conservative management without imaging."
        assert results["xr-skull"].alternative_recommendation is not None
        assert results["mri-brain"].acr_rating == 4
        assert results["mri-brain"].alternative_recommendation is None

    def test_generic_advice_when_nothing_scores_well(self, flagged_presentation, head_catalog):
        engine = AppropriatenessEngine(rules=[], baselines={m: 1 for m in MODALITY_BASELINES})
        results = engine.rank(flagged_presentation, head_catalog)
        assert all(r.acr_rating == 1 for r in results)
        assert results[0].alternative_recommendation == \
            "Consider conservative management or an alternative modality."

    def test_absent_when_everything_may_be_appropriate(self, engine, plain_presentation, head_catalog):
        for result in engine.rank(plain_presentation, head_catalog):
            assert result.alternative_recommendation is None
            assert "alternative_recommendation" in result.to_dict()


class TestNoImaging:
    """Tests for the no-imaging result."""

    def test_no_imaging_always_present(self, engine, flagged_presentation, head_catalog):
        results = engine.rank(flagged_presentation, head_catalog)
        assert len(results) == len(head_catalog) + 1
        assert sum(r.is_no_imaging for r in results) == 1

    def test_rated_9_without_indication(self, engine, plain_presentation, head_catalog):
        results = engine.rank(plain_presentation, head_catalog)
        assert results[0].imaging_option_id == NO_IMAGING_ID
        assert results[0].acr_rating == 9
        assert results[0].is_optimal

    def test_rated_1_with_red_flags(self, engine, flagged_presentation, head_catalog):
        no_imaging = _by_id(engine.rank(flagged_presentation, head_catalog))[NO_IMAGING_ID]
        assert no_imaging.acr_rating == 1
        assert "red flag" in no_imaging.rationale

    def test_rated_1_with_history_flag_only(self, engine, head_catalog):
        ci = validate_clinical_input({
            "age": 40, "sex": "female", "duration": "chronic", "severity": "mild",
            "immunocompromised": True,
        })
        assert _by_id(engine.rank(ci, head_catalog))[NO_IMAGING_ID].acr_rating == 1

    def test_rated_1_when_a_study_is_appropriate(self, engine, head_catalog):
        ci = validate_clinical_input({
            "age": 40, "sex": "male", "duration": "acute", "severity": "severe",
            "physical_exam_findings": ["scalp laceration"],
        })
        results = _by_id(engine.rank(ci, head_catalog))
        assert results["xr-skull"].acr_rating == 8
        assert results[NO_IMAGING_ID].acr_rating == 1

    def test_catalog_none_entry_replaces_sentinel(self, engine, plain_presentation, head_catalog_data):
        catalog = validate_catalog(head_catalog_data + [
            {"id": "watchful-waiting", "modality": "none", "name": "Watchful waiting"},
        ])
        results = engine.rank(plain_presentation, catalog)
        ids = [r.imaging_option_id for r in results]
        assert NO_IMAGING_ID not in ids
        assert results[0].imaging_option_id == "watchful-waiting"
        assert len(results) == len(catalog)


class TestCaseLibraryRankings:
    """The built-in cases rank to their intended answers."""

    @pytest.mark.parametrize("case_id,expected_optimal,expected_rating", [
        ("lbp-uncomplicated", NO_IMAGING_ID, 9),
        ("lbp-cancer-deficit", "mri-spine-contrast", 9),
        ("ankle-inversion", "xr-ankle", 9),
        ("breast-mass-45", "mammo-diagnostic", 8),
        ("peds-rlq-pain", "us-appendix", 9),
    ])
    def test_optimal_option(self, engine, library, case_id, expected_optimal, expected_rating):
        results = engine.rank_case(library.get_case(case_id))
        optimal = AppropriatenessEngine.optimal(results)
        assert optimal.imaging_option_id == expected_optimal
        assert optimal.acr_rating == expected_rating

    def test_author_answer_key_matches_engine(self, engine, library):
        for case in library.list_cases():
            optimal = AppropriatenessEngine.optimal(engine.rank_case(case))
            if case.optimal_imaging_ids:
                assert optimal.imaging_option_id in case.optimal_imaging_ids
            else:
                assert optimal.imaging_option_id == NO_IMAGING_ID

    def test_rank_case_is_cached(self, engine, ankle_case):
        first = engine.rank_case(ankle_case)
        assert engine.rank_case(ankle_case) == first
        assert ankle_case.id in engine._case_cache
        engine.clear_cache()
        assert engine._case_cache == {}
