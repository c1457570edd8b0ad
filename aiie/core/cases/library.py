"""
Built-in teaching cases.

A small starter library covering the main decision patterns: no imaging
indicated, MRI for neurologic red flags, radiographs after trauma,
mammography for a breast mass and radiation-sparing paediatric imaging.
Costs are typical US list prices; doses are typical effective doses.
"""
from __future__ import annotations

from typing import Any, Dict, List

from .repository import InMemoryCaseRepository

SEED_CASES: List[Dict[str, Any]] = [
    {
        "id": "lbp-uncomplicated",
        "title": "Uncomplicated Low Back Pain",
        "specialty": "Primary Care",
        "difficulty": "beginner",
        "clinical_input": {
            "age": 42,
            "sex": "male",
            "chief_complaint": "Low back pain after lifting boxes",
            "duration": "subacute",
            "severity": "mild",
            "red_flags": [],
            "physical_exam_findings": [],
        },
        "imaging_catalog": [
            {"id": "xr-lumbar", "modality": "xray", "name": "X-ray lumbar spine",
             "cost_usd": 120, "radiation_msv": 1.5},
            {"id": "ct-lumbar", "modality": "ct", "name": "CT lumbar spine without contrast",
             "cost_usd": 600, "radiation_msv": 6.0},
            {"id": "mri-lumbar", "modality": "mri", "name": "MRI lumbar spine without contrast",
             "cost_usd": 1200, "radiation_msv": 0},
        ],
        "optimal_imaging_ids": [],
        "hints": [
            "Look for red flags: cancer, infection, fracture risk, neurologic deficit.",
            "Most mechanical back pain resolves within six weeks.",
            "Would any imaging result change management today?",
        ],
        "explanation": (
            "Without red flags, imaging in the first six weeks of low back pain "
            "does not improve outcomes and adds cost and radiation."
        ),
        "teaching_points": [
            "Uncomplicated low back pain: no imaging for the first six weeks.",
            "Reassess if symptoms persist or red flags appear.",
        ],
    },
    {
        "id": "lbp-cancer-deficit",
        "title": "Back Pain with Cancer History and Leg Weakness",
        "specialty": "Emergency Medicine",
        "difficulty": "intermediate",
        "clinical_input": {
            "age": 68,
            "sex": "female",
            "chief_complaint": "Worsening thoracolumbar back pain and leg weakness",
            "duration": "subacute",
            "severity": "severe",
            "red_flags": ["night pain", "unexplained weight loss"],
            "cancer_history": True,
            "neurologic_deficit": True,
            "progressive_symptoms": True,
            "physical_exam_findings": ["bilateral hip flexor weakness"],
        },
        "imaging_catalog": [
            {"id": "xr-spine", "modality": "xray", "name": "X-ray thoracolumbar spine",
             "cost_usd": 120, "radiation_msv": 1.5},
            {"id": "ct-spine", "modality": "ct", "name": "CT thoracolumbar spine with contrast",
             "cost_usd": 800, "radiation_msv": 10.0, "contrast": True},
            {"id": "mri-spine-contrast", "modality": "mri", "name": "MRI whole spine with and without contrast",
             "cost_usd": 1800, "radiation_msv": 0, "contrast": True},
            {"id": "bone-scan", "modality": "nuclear", "name": "Tc-99m bone scan",
             "cost_usd": 900, "radiation_msv": 6.3},
        ],
        "optimal_imaging_ids": ["mri-spine-contrast"],
        "hints": [
            "A history of breast cancer changes the pre-test probability.",
            "New weakness suggests the cord or cauda equina may be involved.",
            "Which study shows both bone marrow and the spinal canal without radiation?",
        ],
        "explanation": (
            "Suspected metastatic cord compression needs urgent MRI of the whole "
            "spine with contrast; CT is reserved for patients who cannot have MRI."
        ),
        "teaching_points": [
            "Cancer history plus neurologic deficit: urgent MRI.",
            "Image the whole spine; metastases are often multilevel.",
        ],
    },
    {
        "id": "ankle-inversion",
        "title": "Ankle Inversion Injury",
        "specialty": "Emergency Medicine",
        "difficulty": "beginner",
        "clinical_input": {
            "age": 25,
            "sex": "male",
            "chief_complaint": "Ankle pain after rolling it playing football",
            "duration": "acute",
            "severity": "moderate",
            "recent_trauma": True,
            "physical_exam_findings": ["bony tenderness at posterior edge of lateral malleolus"],
        },
        "imaging_catalog": [
            {"id": "xr-ankle", "modality": "xray", "name": "X-ray ankle (3 views)",
             "cost_usd": 90, "radiation_msv": 0.001},
            {"id": "ct-ankle", "modality": "ct", "name": "CT ankle without contrast",
             "cost_usd": 450, "radiation_msv": 0.07},
            {"id": "mri-ankle", "modality": "mri", "name": "MRI ankle without contrast",
             "cost_usd": 1100, "radiation_msv": 0},
            {"id": "us-ankle", "modality": "ultrasound", "name": "Ultrasound ankle",
             "cost_usd": 200, "radiation_msv": 0},
        ],
        "optimal_imaging_ids": ["xr-ankle"],
        "hints": [
            "Apply the Ottawa ankle rules.",
            "Bony tenderness at the malleolus is a positive criterion.",
            "Start with the cheapest test that answers 'is it broken?'.",
        ],
        "explanation": (
            "A positive Ottawa ankle rule calls for radiographs. Cross-sectional "
            "imaging is for complex or occult injuries after plain films."
        ),
        "teaching_points": [
            "Ottawa ankle rules are highly sensitive for fracture.",
            "Radiographs first after ankle trauma.",
        ],
    },
    {
        "id": "breast-mass-45",
        "title": "Palpable Breast Mass, Age 45",
        "specialty": "Women's Health",
        "difficulty": "intermediate",
        "clinical_input": {
            "age": 45,
            "sex": "female",
            "chief_complaint": "New lump in the left breast",
            "duration": "subacute",
            "severity": "mild",
            "red_flags": ["palpable breast mass"],
        },
        "imaging_catalog": [
            {"id": "mammo-diagnostic", "modality": "mammography", "name": "Diagnostic mammography",
             "cost_usd": 250, "radiation_msv": 0.4},
            {"id": "us-breast", "modality": "ultrasound", "name": "Ultrasound breast",
             "cost_usd": 200, "radiation_msv": 0},
            {"id": "mri-breast", "modality": "mri", "name": "MRI breast with and without contrast",
             "cost_usd": 2000, "radiation_msv": 0, "contrast": True},
            {"id": "ct-chest", "modality": "ct", "name": "CT chest with contrast",
             "cost_usd": 500, "radiation_msv": 7.0, "contrast": True},
        ],
        "optimal_imaging_ids": ["mammo-diagnostic"],
        "hints": [
            "Age decides which breast study comes first.",
            "Over 30, the initial study is usually paired with a targeted ultrasound.",
            "MRI is a problem-solving tool, not a first-line test.",
        ],
        "explanation": (
            "Women 30 and older with a palpable mass start with diagnostic "
            "mammography, usually with targeted ultrasound."
        ),
        "teaching_points": [
            "Palpable mass at 30+: diagnostic mammography first.",
            "Under 30: ultrasound first.",
        ],
    },
    {
        "id": "peds-rlq-pain",
        "title": "Right Lower Quadrant Pain in a Child",
        "specialty": "Pediatrics",
        "difficulty": "advanced",
        "clinical_input": {
            "age": 9,
            "sex": "male",
            "chief_complaint": "Periumbilical pain migrating to the right lower quadrant",
            "duration": "acute",
            "severity": "severe",
            "red_flags": ["rebound tenderness"],
            "labs_available": ["WBC 15.2"],
            "physical_exam_findings": ["McBurney point tenderness"],
        },
        "imaging_catalog": [
            {"id": "us-appendix", "modality": "ultrasound", "name": "Ultrasound right lower quadrant",
             "cost_usd": 250, "radiation_msv": 0},
            {"id": "ct-abdomen", "modality": "ct", "name": "CT abdomen and pelvis with contrast",
             "cost_usd": 700, "radiation_msv": 10.0, "contrast": True},
            {"id": "mri-abdomen", "modality": "mri", "name": "MRI abdomen and pelvis without contrast",
             "cost_usd": 1500, "radiation_msv": 0},
            {"id": "xr-abdomen", "modality": "xray", "name": "X-ray abdomen",
             "cost_usd": 100, "radiation_msv": 0.7},
        ],
        "optimal_imaging_ids": ["us-appendix"],
        "hints": [
            "Children are more sensitive to ionising radiation.",
            "The classic story plus leukocytosis points to one diagnosis.",
            "Choose the radiation-free study that is available at the bedside.",
        ],
        "explanation": (
            "Suspected appendicitis in children: ultrasound first; MRI if the "
            "ultrasound is equivocal; CT only when neither is available."
        ),
        "teaching_points": [
            "Paediatric appendicitis: ultrasound first.",
            "Plain radiographs add little for appendicitis.",
        ],
    },
]


def load_library() -> InMemoryCaseRepository:
    """Build a repository holding the built-in cases."""
    return InMemoryCaseRepository.from_dicts(SEED_CASES)
