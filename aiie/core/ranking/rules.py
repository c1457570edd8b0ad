"""
Imaging Appropriateness Rules

Declarative rule table consumed by the ranking engine.  Each entry is a
pure predicate over ClinicalInput plus the integer rating adjustment it
applies to each modality when it fires.

Design principles:
  - Rules never look at each other; the engine sums their adjustments on
    top of MODALITY_BASELINES and clamps to the ACR 1-9 scale.
  - Weights are module-level constants so a clinical reviewer can tune
    them without touching control flow.  They are teaching defaults, not
    published ACR criteria.
  - Adding a rule means appending a Rule to DEFAULT_RULES; nothing else.

Each rule carries the citation its weight is drawn from; the engine
copies it onto every contribution the rule makes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Sequence

from aiie.utils.exceptions import RuleTableError
from aiie.core.clinical.base import ClinicalInput, Duration, Modality, Severity

Predicate = Callable[[ClinicalInput], bool]

# ── Baselines (rating before any clinical adjustment) ─────────────────────────
MODALITY_BASELINES: Dict[Modality, int] = {
    Modality.XRAY:        5,
    Modality.CT:          5,
    Modality.MRI:         5,
    Modality.ULTRASOUND:  5,
    Modality.NUCLEAR:     3,
    Modality.FLUOROSCOPY: 3,
    Modality.MAMMOGRAPHY: 3,
    Modality.PET:         3,
}

# ── Age bands ─────────────────────────────────────────────────────────────────
PEDIATRIC_MAX_AGE    = 17   # < 18
GERIATRIC_MIN_AGE    = 66   # > 65
MAMMOGRAPHY_MIN_AGE  = 30

BREAST_MASS_FLAG = "palpable breast mass"

_ALL_IMAGING = tuple(m for m in Modality if m != Modality.NONE)
_IONISING = (Modality.XRAY, Modality.CT, Modality.NUCLEAR, Modality.PET, Modality.FLUOROSCOPY)


@dataclass(frozen=True)
class Rule:
    """
    One declarative appropriateness rule.

    Attributes:
        rule_id: Stable identifier, e.g. "neurologic-deficit"
        description: Rationale fragment, phrased so it reads after "favor"
            or "argue against" in the engine's summary
        predicate: Pure function of the clinical input
        adjustments: Rating delta per modality when the rule fires
        contrast_adjustment: Extra delta for contrast-enhanced studies
        citation: Literature the weight is drawn from, shown with the
            contribution
    """
    rule_id: str
    description: str
    predicate: Predicate
    adjustments: Mapping[Modality, int] = field(default_factory=dict)
    contrast_adjustment: int = 0
    citation: str = ""

    def adjustment_for(self, modality: Modality, contrast: bool = False) -> int:
        delta = self.adjustments.get(modality, 0)
        if contrast:
            delta += self.contrast_adjustment
        return delta


def _uniform(delta: int, modalities: Sequence[Modality] = _ALL_IMAGING) -> Dict[Modality, int]:
    return {m: delta for m in modalities}


# ── Predicates ────────────────────────────────────────────────────────────────

def has_red_flags(ci: ClinicalInput) -> bool:
    return bool(ci.red_flags)


def is_acute(ci: ClinicalInput) -> bool:
    return ci.duration == Duration.ACUTE


def is_chronic(ci: ClinicalInput) -> bool:
    return ci.duration == Duration.CHRONIC


def prior_imaging_stable(ci: ClinicalInput) -> bool:
    """Prior studies exist and nothing has progressed since."""
    return bool(ci.prior_imaging) and not ci.progressive_symptoms


def progressive_despite_prior_imaging(ci: ClinicalInput) -> bool:
    return bool(ci.prior_imaging) and ci.progressive_symptoms


def is_mild_chronic(ci: ClinicalInput) -> bool:
    return ci.severity == Severity.MILD and ci.duration == Duration.CHRONIC


def is_pediatric(ci: ClinicalInput) -> bool:
    return ci.age <= PEDIATRIC_MAX_AGE


def is_geriatric(ci: ClinicalInput) -> bool:
    return ci.age >= GERIATRIC_MIN_AGE


def breast_mass_adult(ci: ClinicalInput) -> bool:
    return BREAST_MASS_FLAG in ci.red_flags and ci.age >= MAMMOGRAPHY_MIN_AGE


def breast_mass_young(ci: ClinicalInput) -> bool:
    return BREAST_MASS_FLAG in ci.red_flags and ci.age < MAMMOGRAPHY_MIN_AGE


# ── Rule table ────────────────────────────────────────────────────────────────
# Ordered roughly by clinical weight; order only affects how contributions
# are listed, never the rating.

DEFAULT_RULES: List[Rule] = [
    Rule(
        rule_id="red-flags",
        description="red flag symptoms",
        predicate=has_red_flags,
        citation="JAMA 2019: Red flags in imaging guidelines",
        adjustments={
            Modality.CT: 2, Modality.MRI: 2,
            Modality.XRAY: 1, Modality.NUCLEAR: 1, Modality.PET: 1,
        },
    ),
    Rule(
        rule_id="neurologic-deficit",
        description="a focal neurologic deficit",
        predicate=lambda ci: ci.neurologic_deficit,
        citation="Neurology 2020: Imaging in neurologic emergencies",
        adjustments={
            Modality.MRI: 3, Modality.CT: 2,
            Modality.XRAY: -1, Modality.ULTRASOUND: -1,
        },
    ),
    Rule(
        rule_id="cancer-history",
        description="a history of malignancy",
        predicate=lambda ci: ci.cancer_history,
        citation="JCO 2021: Imaging in oncology surveillance",
        adjustments={
            Modality.MRI: 2, Modality.CT: 2, Modality.PET: 2, Modality.NUCLEAR: 2,
        },
        contrast_adjustment=1,
    ),
    Rule(
        rule_id="recent-trauma",
        description="a recent traumatic mechanism",
        predicate=lambda ci: ci.recent_trauma,
        citation="J Trauma Acute Care Surg 2021: Imaging in trauma evaluation",
        adjustments={
            Modality.CT: 2, Modality.XRAY: 2, Modality.ULTRASOUND: 1,
        },
    ),
    Rule(
        rule_id="immunocompromised",
        description="an immunocompromised host",
        predicate=lambda ci: ci.immunocompromised,
        citation="Clin Infect Dis 2020: Imaging in immunocompromised hosts",
        adjustments={
            Modality.CT: 1, Modality.MRI: 1, Modality.NUCLEAR: 1, Modality.PET: 1,
        },
        contrast_adjustment=1,
    ),
    Rule(
        rule_id="progressive-despite-prior-imaging",
        description="symptoms progressing despite prior imaging",
        predicate=progressive_despite_prior_imaging,
        citation="Spine 2019: Imaging after conservative therapy",
        adjustments={Modality.MRI: 1, Modality.CT: 1},
    ),
    Rule(
        rule_id="acute-onset",
        description="acute onset",
        predicate=is_acute,
        citation="Radiology 2020: Timing and imaging appropriateness",
        adjustments={
            Modality.CT: 1, Modality.XRAY: 1, Modality.ULTRASOUND: 1,
        },
    ),
    Rule(
        rule_id="severe-symptoms",
        description="severe symptoms",
        predicate=lambda ci: ci.severity == Severity.SEVERE,
        citation="Ann Emerg Med 2019: Symptom severity and imaging decisions",
        adjustments={
            Modality.CT: 1, Modality.MRI: 1, Modality.XRAY: 1, Modality.ULTRASOUND: 1,
        },
    ),
    Rule(
        rule_id="chronic-duration",
        description="a chronic course usually managed conservatively first",
        predicate=is_chronic,
        citation="AJR 2021: Conservative management in chronic conditions",
        adjustments=_uniform(-1),
    ),
    Rule(
        rule_id="mild-chronic",
        description="mild chronic symptoms",
        predicate=is_mild_chronic,
        citation="BMJ 2020: Conservative management in chronic pain",
        adjustments=_uniform(-1),
    ),
    Rule(
        rule_id="prior-imaging-stable",
        description="recent prior imaging without progression",
        predicate=prior_imaging_stable,
        citation="JACR 2022: Repeat imaging utility",
        adjustments=_uniform(-1),
    ),
    Rule(
        rule_id="pediatric-patient",
        description="a pediatric patient (radiation-sparing)",
        predicate=is_pediatric,
        citation="Pediatrics 2020: Age-based imaging considerations",
        adjustments={
            Modality.ULTRASOUND: 1, Modality.MRI: 1,
            **_uniform(-1, _IONISING),
        },
    ),
    Rule(
        rule_id="geriatric-patient",
        description="advanced age",
        predicate=is_geriatric,
        citation="Pediatrics 2020: Age-based imaging considerations",
        adjustments={Modality.CT: 1, Modality.MRI: 1},
    ),
    Rule(
        rule_id="focal-exam-findings",
        description="focal examination findings",
        predicate=lambda ci: bool(ci.physical_exam_findings),
        adjustments={Modality.ULTRASOUND: 1, Modality.XRAY: 1},
    ),
    Rule(
        rule_id="labs-available",
        description="laboratory results to correlate with",
        predicate=lambda ci: bool(ci.labs_available),
        adjustments={Modality.ULTRASOUND: 1},
    ),
    Rule(
        rule_id="breast-mass-adult",
        description="a palpable breast mass at 30 or older",
        predicate=breast_mass_adult,
        citation="ACR Appropriateness Criteria: Palpable Breast Masses",
        adjustments={Modality.MAMMOGRAPHY: 5, Modality.ULTRASOUND: 1},
    ),
    Rule(
        rule_id="breast-mass-young",
        description="a palpable breast mass under 30",
        predicate=breast_mass_young,
        citation="ACR Appropriateness Criteria: Palpable Breast Masses",
        adjustments={Modality.ULTRASOUND: 3, Modality.MAMMOGRAPHY: 1},
    ),
]


def validate_rule_table(
    rules: Sequence[Rule],
    baselines: Mapping[Modality, int] = MODALITY_BASELINES,
) -> None:
    """
    Check a rule table before the engine uses it.

    Raises:
        RuleTableError: duplicate ids, missing predicate, adjustments keyed
            by an unknown or `none` modality, or non-integer deltas.
    """
    for modality in _ALL_IMAGING:
        baseline = baselines.get(modality)
        if isinstance(baseline, bool) or not isinstance(baseline, int):
            raise RuleTableError(
                f"Missing or non-integer baseline for {modality.value}",
                rule_id="baselines",
            )

    seen = set()
    for rule in rules:
        if not isinstance(rule, Rule):
            raise RuleTableError(f"Not a Rule: {rule!r}")
        if not rule.rule_id or rule.rule_id in seen:
            raise RuleTableError(f"Duplicate or empty rule id: {rule.rule_id!r}", rule_id=rule.rule_id)
        seen.add(rule.rule_id)

        if not callable(rule.predicate):
            raise RuleTableError("Rule predicate is not callable", rule_id=rule.rule_id)
        if not rule.description:
            raise RuleTableError("Rule has no rationale fragment", rule_id=rule.rule_id)

        deltas = list(rule.adjustments.items()) + [("contrast", rule.contrast_adjustment)]
        for key, delta in deltas:
            if key != "contrast" and (not isinstance(key, Modality) or key == Modality.NONE):
                raise RuleTableError(
                    f"Adjustment keyed by invalid modality {key!r}",
                    rule_id=rule.rule_id,
                )
            if isinstance(delta, bool) or not isinstance(delta, int):
                raise RuleTableError(
                    f"Adjustment for {key} must be an integer, got {delta!r}",
                    rule_id=rule.rule_id,
                )
