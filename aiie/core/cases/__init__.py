"""
Case Repository

Usage:
    from aiie.core.cases import load_library

    repo = load_library()
    case = repo.get_case("ankle-inversion")
"""
from .repository import CaseRecord, CaseRepository, InMemoryCaseRepository
from .library import SEED_CASES, load_library

__all__ = [
    "CaseRecord",
    "CaseRepository",
    "InMemoryCaseRepository",
    "SEED_CASES",
    "load_library",
]
