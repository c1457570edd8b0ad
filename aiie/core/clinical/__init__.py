"""
Clinical Layer

Structured patient presentations, imaging catalog entries and the
validator that guards the ranking engine.

Usage:
    from aiie.core.clinical import validate_clinical_input, validate_catalog

    clinical_input = validate_clinical_input({"age": 54, "sex": "female", ...})
    catalog = validate_catalog(raw_options, require_non_empty=True)
"""
from .base import (
    NO_IMAGING_ID,
    NO_IMAGING_OPTION,
    ClinicalInput,
    Duration,
    ImagingOption,
    Modality,
    RatingCategory,
    RuleContribution,
    ScoringResult,
    Severity,
    Sex,
    rating_category,
    round_half_up,
)
from .validator import validate_catalog, validate_clinical_input, validate_imaging_option

__all__ = [
    "NO_IMAGING_ID",
    "NO_IMAGING_OPTION",
    "ClinicalInput",
    "Duration",
    "ImagingOption",
    "Modality",
    "RatingCategory",
    "RuleContribution",
    "ScoringResult",
    "Severity",
    "Sex",
    "rating_category",
    "round_half_up",
    "validate_catalog",
    "validate_clinical_input",
    "validate_imaging_option",
]
