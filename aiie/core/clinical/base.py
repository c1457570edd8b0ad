"""
Clinical Layer — Base Types

Defines the data contracts shared by the validator, the ranking engine
and the evaluation coordinator.  Everything here is immutable: a
ClinicalInput or ScoringResult never changes after construction.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple

# Sentinel id for the "no imaging indicated" choice
NO_IMAGING_ID = "no-imaging"

ACR_MIN = 1
ACR_MAX = 9
APPROPRIATE_THRESHOLD = 7   # 7-9 usually appropriate
UNCERTAIN_THRESHOLD   = 4   # 4-6 may be appropriate


class Sex(str, Enum):
    MALE   = "male"
    FEMALE = "female"
    OTHER  = "other"


class Duration(str, Enum):
    """
    Symptom duration bucket.

    ACUTE    – under 7 days
    SUBACUTE – 1 to 6 weeks
    CHRONIC  – over 6 weeks
    """
    ACUTE    = "acute"
    SUBACUTE = "subacute"
    CHRONIC  = "chronic"


class Severity(str, Enum):
    MILD     = "mild"
    MODERATE = "moderate"
    SEVERE   = "severe"


class Modality(str, Enum):
    XRAY        = "xray"
    CT          = "ct"
    MRI         = "mri"
    ULTRASOUND  = "ultrasound"
    NUCLEAR     = "nuclear"
    FLUOROSCOPY = "fluoroscopy"
    MAMMOGRAPHY = "mammography"
    PET         = "pet"
    NONE        = "none"


MODALITY_LABELS = {
    Modality.XRAY:        "X-ray",
    Modality.CT:          "CT",
    Modality.MRI:         "MRI",
    Modality.ULTRASOUND:  "Ultrasound",
    Modality.NUCLEAR:     "Nuclear medicine",
    Modality.FLUOROSCOPY: "Fluoroscopy",
    Modality.MAMMOGRAPHY: "Mammography",
    Modality.PET:         "PET",
    Modality.NONE:        "No imaging",
}


class RatingCategory(str, Enum):
    """ACR appropriateness category, fully determined by the 1-9 rating."""
    USUALLY_APPROPRIATE     = "usually-appropriate"
    MAY_BE_APPROPRIATE      = "may-be-appropriate"
    USUALLY_NOT_APPROPRIATE = "usually-not-appropriate"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").capitalize()


def rating_category(rating: int) -> RatingCategory:
    """Map an ACR rating to its category (1-3 / 4-6 / 7-9)."""
    if rating >= APPROPRIATE_THRESHOLD:
        return RatingCategory.USUALLY_APPROPRIATE
    if rating >= UNCERTAIN_THRESHOLD:
        return RatingCategory.MAY_BE_APPROPRIATE
    return RatingCategory.USUALLY_NOT_APPROPRIATE


def clamp_rating(value: int) -> int:
    return max(ACR_MIN, min(ACR_MAX, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ClinicalInput:
    """
    Structured patient presentation.

    Built by `validate_clinical_input`; do not construct with raw user
    data directly, since the validator normalises red flags and enums.
    """
    age: int
    sex: Sex
    chief_complaint: str = ""
    duration: Duration = Duration.ACUTE
    severity: Severity = Severity.MODERATE

    red_flags: FrozenSet[str] = frozenset()

    # ── History flags ─────────────────────────────────────────────────────
    cancer_history: bool       = False
    immunocompromised: bool    = False
    recent_trauma: bool        = False
    neurologic_deficit: bool   = False
    progressive_symptoms: bool = False

    # ── Prior workup ──────────────────────────────────────────────────────
    prior_imaging: Tuple[str, ...]          = ()
    labs_available: Tuple[str, ...]         = ()
    physical_exam_findings: Tuple[str, ...] = ()

    @property
    def has_history_flags(self) -> bool:
        return any((
            self.cancer_history,
            self.immunocompromised,
            self.recent_trauma,
            self.neurologic_deficit,
            self.progressive_symptoms,
        ))

    @property
    def has_imaging_indication(self) -> bool:
        """True when any red flag or history warning flag is present."""
        return bool(self.red_flags) or self.has_history_flags

    def to_dict(self) -> dict:
        return {
            "age": self.age,
            "sex": self.sex.value,
            "chief_complaint": self.chief_complaint,
            "duration": self.duration.value,
            "severity": self.severity.value,
            "red_flags": sorted(self.red_flags),
            "cancer_history": self.cancer_history,
            "immunocompromised": self.immunocompromised,
            "recent_trauma": self.recent_trauma,
            "neurologic_deficit": self.neurologic_deficit,
            "progressive_symptoms": self.progressive_symptoms,
            "prior_imaging": list(self.prior_imaging),
            "labs_available": list(self.labs_available),
            "physical_exam_findings": list(self.physical_exam_findings),
        }


@dataclass(frozen=True)
class ImagingOption:
    """A candidate imaging study from the case catalog."""
    id: str
    modality: Modality
    name: str = ""
    cost_usd: float = 0.0
    radiation_msv: float = 0.0
    contrast: bool = False

    @property
    def label(self) -> str:
        return self.name or MODALITY_LABELS[self.modality]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "modality": self.modality.value,
            "name": self.label,
            "cost_usd": self.cost_usd,
            "radiation_msv": self.radiation_msv,
            "contrast": self.contrast,
        }


# Synthetic option used when the catalog carries no `none` entry
NO_IMAGING_OPTION = ImagingOption(
    id=NO_IMAGING_ID,
    modality=Modality.NONE,
    name="No imaging indicated",
)


@dataclass(frozen=True)
class RuleContribution:
    """One rule's effect on one modality's rating."""
    rule_id: str
    adjustment: int
    description: str
    citation: str = ""


@dataclass(frozen=True)
class ScoringResult:
    """
    Engine output for a single imaging option.

    `contributions` lists every rule that moved the rating away from the
    modality baseline; the rationale is a readable summary of them.
    `alternative_recommendation` is set for ratings below 4 and points
    the learner at the better choice.
    """
    imaging_option_id: str
    modality: Modality
    acr_rating: int
    rationale: str
    is_optimal: bool = False
    contributions: Tuple[RuleContribution, ...] = field(default_factory=tuple)
    alternative_recommendation: Optional[str] = None

    @property
    def category(self) -> RatingCategory:
        return rating_category(self.acr_rating)

    @property
    def is_no_imaging(self) -> bool:
        return self.modality == Modality.NONE

    def to_dict(self) -> dict:
        return {
            "imaging_option_id": self.imaging_option_id,
            "modality": self.modality.value,
            "acr_rating": self.acr_rating,
            "category": self.category.value,
            "rationale": self.rationale,
            "is_optimal": self.is_optimal,
            "contributions": [
                {
                    "rule_id": c.rule_id,
                    "adjustment": c.adjustment,
                    "description": c.description,
                    "citation": c.citation,
                }
                for c in self.contributions
            ],
            "alternative_recommendation": self.alternative_recommendation,
        }
