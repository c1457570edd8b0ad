"""
API request / response models.

Thin pydantic shells over the core dataclasses; validation of clinical
content is still done by `aiie.core.clinical.validator` so the API and
library callers get identical InputError behaviour.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from aiie.core.evaluation import SessionMode


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    uptime_seconds: float
    active_sessions: int = 0


class ClinicalInputModel(BaseModel):
    """Structured presentation.  Enum-like fields are checked by the core validator."""
    age: Optional[int] = None
    sex: Optional[str] = None
    chief_complaint: str = ""
    duration: str = "acute"
    severity: str = "moderate"
    red_flags: List[str] = Field(default_factory=list)
    cancer_history: bool = False
    immunocompromised: bool = False
    recent_trauma: bool = False
    neurologic_deficit: bool = False
    progressive_symptoms: bool = False
    prior_imaging: List[str] = Field(default_factory=list)
    labs_available: List[str] = Field(default_factory=list)
    physical_exam_findings: List[str] = Field(default_factory=list)


class ImagingOptionModel(BaseModel):
    id: str
    modality: str
    name: str = ""
    cost_usd: float = 0.0
    radiation_msv: float = 0.0
    contrast: bool = False


class RankRequest(BaseModel):
    clinical_input: ClinicalInputModel
    imaging_catalog: List[ImagingOptionModel]


class RankResponse(BaseModel):
    results: List[Dict[str, Any]]
    optimal_option_id: Optional[str] = None


class PointsRequest(BaseModel):
    effective_acr_rating: int = Field(..., ge=1, le=9)
    current_streak_days: int = 0
    time_spent_seconds: float = 0
    hints_used: int = 0


class CreateSessionRequest(BaseModel):
    case_id: str
    user_id: str
    mode: SessionMode = SessionMode.LEARNING


class ModeRequest(BaseModel):
    mode: SessionMode


class HintRequest(BaseModel):
    index: Optional[int] = Field(None, description="Zero-based hint index; omit for the next hint")


class SelectionRequest(BaseModel):
    option_id: Optional[str] = Field(None, description="Option to toggle; omit to clear the selection")


class TransitionResponse(BaseModel):
    """Outcome of a session operation.  Denials are 200s with accepted=false."""
    accepted: bool
    reason: Optional[str] = None
    reason_kind: Optional[str] = None
    session: Dict[str, Any]
