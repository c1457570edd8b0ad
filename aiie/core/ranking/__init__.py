"""
Appropriateness Ranking

Usage:
    from aiie.core.ranking import rank

    results = rank(clinical_input, catalog)   # best first, one is_optimal
"""
from .engine import AppropriatenessEngine, get_default_engine, rank
from .rules import DEFAULT_RULES, MODALITY_BASELINES, Rule, validate_rule_table

__all__ = [
    "AppropriatenessEngine",
    "get_default_engine",
    "rank",
    "DEFAULT_RULES",
    "MODALITY_BASELINES",
    "Rule",
    "validate_rule_table",
]
