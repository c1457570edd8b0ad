"""
Appropriateness Ranking Engine

Scores every imaging option in a case catalog against the declarative
rule table and returns them ranked, best first, with exactly one result
flagged optimal.

Usage:
    from aiie.core.ranking import AppropriatenessEngine

    engine = AppropriatenessEngine()
    results = engine.rank(clinical_input, catalog)
    best = results[0]            # best.is_optimal is True
    print(best.acr_rating, best.rationale)

Ordering / tie-break:
    acr_rating (high first) → radiation_msv (low first) → cost_usd (low
    first) → position in the input catalog.  The head of that order is
    the optimal result.

No imaging:
    A "no imaging" result is always part of a non-empty ranking.  It is
    rated 9 when the presentation carries no imaging indication and no
    study reaches the appropriate band, 1 otherwise.  A catalog entry with
    modality `none` stands in for it; without one the synthetic
    NO_IMAGING_OPTION (id "no-imaging") is appended.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

from aiie.utils.exceptions import RuleEvaluationError
from aiie.core.clinical.base import (
    ACR_MAX,
    ACR_MIN,
    APPROPRIATE_THRESHOLD,
    NO_IMAGING_OPTION,
    UNCERTAIN_THRESHOLD,
    ClinicalInput,
    ImagingOption,
    Modality,
    RuleContribution,
    ScoringResult,
    clamp_rating,
    rating_category,
)
from .rules import DEFAULT_RULES, MODALITY_BASELINES, Rule, validate_rule_table

if TYPE_CHECKING:
    from aiie.core.cases.repository import CaseRecord

logger = logging.getLogger(__name__)


def _join(items: Sequence[str]) -> str:
    if len(items) <= 1:
        return "".join(items)
    return ", ".join(items[:-1]) + " and " + items[-1]


def _build_rationale(
    option: ImagingOption,
    rating: int,
    contributions: Sequence[RuleContribution],
) -> str:
    label = option.label
    head = f"{label} rated {rating}/9 ({rating_category(rating).label})"

    favor = [c.description for c in sorted(contributions, key=lambda c: -c.adjustment) if c.adjustment > 0]
    against = [c.description for c in sorted(contributions, key=lambda c: c.adjustment) if c.adjustment < 0]

    clauses = []
    if favor:
        verb = "favors" if len(favor) == 1 else "favor"
        clauses.append(f"{_join(favor)} {verb} {label}")
    if against:
        verb = "argues" if len(against) == 1 else "argue"
        clauses.append(f"{_join(against)} {verb} against it")
    if not clauses:
        return f"{head}: no clinical factor moves it from its baseline."
    return f"{head}: " + "; ".join(clauses) + "."


def _alternative(result: ScoringResult, optimal: ScoringResult, labels: Mapping[str, str]) -> str:
    if result is optimal or optimal.acr_rating < UNCERTAIN_THRESHOLD:
        return "Consider conservative management or an alternative modality."
    if optimal.is_no_imaging:
        return "Consider conservative management without imaging."
    return f"Consider {labels[optimal.imaging_option_id]} instead ({optimal.acr_rating}/9)."


class AppropriatenessEngine:
    """
    Rule-weighted ACR-style ranking of imaging options.

    Stateless apart from an optional per-case result cache, so one
    instance can serve every session.
    """

    def __init__(
        self,
        rules: Optional[Sequence[Rule]] = None,
        baselines: Optional[Mapping[Modality, int]] = None,
    ):
        self.rules: List[Rule] = list(DEFAULT_RULES if rules is None else rules)
        self.baselines: Dict[Modality, int] = dict(MODALITY_BASELINES if baselines is None else baselines)
        validate_rule_table(self.rules, self.baselines)
        self._case_cache: Dict[str, List[ScoringResult]] = {}

    # ── Rule evaluation ───────────────────────────────────────────────────

    def fired_rules(self, clinical_input: ClinicalInput) -> List[Rule]:
        """
        Return the rules whose predicate holds for this presentation.

        Raises:
            RuleEvaluationError: a predicate raised.  The whole ranking call
                is aborted; a partially scored ranking is never returned.
        """
        fired = []
        for rule in self.rules:
            try:
                if rule.predicate(clinical_input):
                    fired.append(rule)
            except Exception as exc:
                logger.error(f"AppropriatenessEngine: rule {rule.rule_id} raised {exc}", exc_info=True)
                raise RuleEvaluationError(
                    f"Rule {rule.rule_id} failed: {exc}",
                    rule_id=rule.rule_id,
                ) from exc
        return fired

    def score_option(
        self,
        option: ImagingOption,
        fired: Sequence[Rule],
    ) -> Tuple[int, List[RuleContribution]]:
        """Baseline + adjustments of the fired rules, clamped to 1-9."""
        contributions = []
        total = self.baselines[option.modality]
        for rule in fired:
            delta = rule.adjustment_for(option.modality, option.contrast)
            if delta:
                total += delta
                contributions.append(RuleContribution(rule.rule_id, delta, rule.description, rule.citation))
        return clamp_rating(total), contributions

    def score_no_imaging(
        self,
        clinical_input: ClinicalInput,
        best_study: Optional[Tuple[ImagingOption, int]],
        option: ImagingOption = NO_IMAGING_OPTION,
    ) -> ScoringResult:
        """
        Rate the "no imaging" choice.

        Independent of how individual studies are scored: 9 only when the
        presentation has no red flag or history warning flag AND no study
        reached the appropriate band.
        """
        reasons = []
        if clinical_input.red_flags:
            reasons.append("red flag symptoms are present")
        if clinical_input.has_history_flags:
            reasons.append("high-risk history is present")
        if best_study is not None and best_study[1] >= APPROPRIATE_THRESHOLD:
            study, rating = best_study
            reasons.append(f"{study.label} is rated {rating}/9")

        if reasons:
            rating = ACR_MIN
            rationale = f"No imaging rated {rating}/9: imaging is indicated because {_join(reasons)}."
        else:
            rating = ACR_MAX
            rationale = (
                f"No imaging rated {rating}/9: no red flags or high-risk history, "
                "and no study is usually appropriate for this presentation."
            )
        return ScoringResult(
            imaging_option_id=option.id,
            modality=Modality.NONE,
            acr_rating=rating,
            rationale=rationale,
        )

    # ── Ranking ───────────────────────────────────────────────────────────

    def rank(
        self,
        clinical_input: ClinicalInput,
        modalities: Sequence[ImagingOption],
    ) -> List[ScoringResult]:
        """
        Rank imaging options for a presentation.

        Args:
            clinical_input: Validated presentation (see validate_clinical_input)
            modalities: Validated catalog in display order

        Returns:
            ScoringResults sorted best first; the first is the only one with
            is_optimal=True.  Results rated below 4 carry an
            alternative_recommendation naming the optimal option.  An empty
            catalog yields an empty list.

        Raises:
            RuleEvaluationError: a rule failed; no partial result is returned.
        """
        if not modalities:
            logger.debug("AppropriatenessEngine: empty catalog, nothing to rank")
            return []

        fired = self.fired_rules(clinical_input)

        # (result, radiation, cost, position)
        entries: List[Tuple[ScoringResult, float, float, int]] = []
        no_imaging: Tuple[ImagingOption, int] = (NO_IMAGING_OPTION, len(modalities))
        best_study: Optional[Tuple[ImagingOption, int]] = None

        for position, option in enumerate(modalities):
            if option.modality == Modality.NONE:
                no_imaging = (option, position)
                continue
            rating, contributions = self.score_option(option, fired)
            result = ScoringResult(
                imaging_option_id=option.id,
                modality=option.modality,
                acr_rating=rating,
                rationale=_build_rationale(option, rating, contributions),
                contributions=tuple(contributions),
            )
            entries.append((result, option.radiation_msv, option.cost_usd, position))
            if best_study is None or rating > best_study[1]:
                best_study = (option, rating)

        no_imaging_option, no_imaging_position = no_imaging
        entries.append((
            self.score_no_imaging(clinical_input, best_study, no_imaging_option),
            no_imaging_option.radiation_msv,
            no_imaging_option.cost_usd,
            no_imaging_position,
        ))

        entries.sort(key=lambda e: (-e[0].acr_rating, e[1], e[2], e[3]))

        ranked = [entry[0] for entry in entries]
        ranked[0] = replace(ranked[0], is_optimal=True)

        # Ratings 1-3 point the learner at something better
        labels = {o.id: o.label for o in modalities}
        labels[no_imaging_option.id] = no_imaging_option.label
        optimal = ranked[0]
        ranked = [
            replace(r, alternative_recommendation=_alternative(r, optimal, labels))
            if r.acr_rating < UNCERTAIN_THRESHOLD else r
            for r in ranked
        ]

        logger.debug(
            f"AppropriatenessEngine: ranked {len(ranked)} option(s), "
            f"{len(fired)} rule(s) fired, optimal={ranked[0].imaging_option_id} "
            f"({ranked[0].acr_rating})"
        )
        return ranked

    def rank_case(self, case: "CaseRecord") -> List[ScoringResult]:
        """Rank a repository case, caching the result by case id."""
        cached = self._case_cache.get(case.id)
        if cached is None:
            cached = self.rank(case.clinical_input, case.imaging_catalog)
            self._case_cache[case.id] = cached
        return list(cached)

    def clear_cache(self) -> None:
        self._case_cache.clear()

    @staticmethod
    def optimal(results: Sequence[ScoringResult]) -> Optional[ScoringResult]:
        return next((r for r in results if r.is_optimal), None)


_default_engine: Optional[AppropriatenessEngine] = None


def get_default_engine() -> AppropriatenessEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = AppropriatenessEngine()
    return _default_engine


def rank(
    clinical_input: ClinicalInput,
    modalities: Sequence[ImagingOption],
) -> List[ScoringResult]:
    """Rank with the default rule table."""
    return get_default_engine().rank(clinical_input, modalities)
