"""
Pytest Configuration and Fixtures

Shared fixtures for ranking, evaluation and session tests.
"""
import pytest
from pathlib import Path
import sys
from typing import Any, Dict, List

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from aiie.core.cases import CaseRecord, load_library
from aiie.core.clinical import (
    ClinicalInput,
    ImagingOption,
    validate_catalog,
    validate_clinical_input,
)
from aiie.core.ranking import AppropriatenessEngine
from aiie.core.session import InMemoryAttemptStore, ManualClock


@pytest.fixture
def plain_presentation() -> ClinicalInput:
    """Middle-aged adult, no red flags, no history flags."""
    return validate_clinical_input({
        "age": 40,
        "sex": "female",
        "chief_complaint": "Intermittent headache",
        "duration": "subacute",
        "severity": "moderate",
    })


@pytest.fixture
def flagged_presentation() -> ClinicalInput:
    """Red flags plus a neurologic deficit."""
    return validate_clinical_input({
        "age": 55,
        "sex": "male",
        "chief_complaint": "Sudden worst headache of life",
        "duration": "acute",
        "severity": "severe",
        "red_flags": ["thunderclap onset"],
        "neurologic_deficit": True,
    })


@pytest.fixture
def head_catalog_data() -> List[Dict[str, Any]]:
    return [
        {"id": "ct-head", "modality": "ct", "name": "CT head without contrast",
         "cost_usd": 400, "radiation_msv": 2.0},
        {"id": "mri-brain", "modality": "mri", "name": "MRI brain without contrast",
         "cost_usd": 1200, "radiation_msv": 0},
        {"id": "xr-skull", "modality": "xray", "name": "X-ray skull",
         "cost_usd": 80, "radiation_msv": 0.1},
    ]


@pytest.fixture
def head_catalog(head_catalog_data) -> List[ImagingOption]:
    return validate_catalog(head_catalog_data)


@pytest.fixture
def engine() -> AppropriatenessEngine:
    return AppropriatenessEngine()


@pytest.fixture
def library():
    return load_library()


@pytest.fixture
def ankle_case(library) -> CaseRecord:
    return library.get_case("ankle-inversion")


@pytest.fixture
def uncomplicated_case(library) -> CaseRecord:
    return library.get_case("lbp-uncomplicated")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def attempt_store() -> InMemoryAttemptStore:
    return InMemoryAttemptStore()
