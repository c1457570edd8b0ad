"""
AIIE core: validator → ranking engine → evaluation → gamification,
driven by the session state machine.
"""
from .clinical import validate_catalog, validate_clinical_input
from .evaluation import SessionMode, evaluate
from .gamification import compute_points
from .ranking import rank

__all__ = [
    "validate_catalog",
    "validate_clinical_input",
    "SessionMode",
    "evaluate",
    "compute_points",
    "rank",
]
