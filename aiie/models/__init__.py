"""API schemas."""
from .api import (
    ClinicalInputModel,
    CreateSessionRequest,
    HealthResponse,
    HintRequest,
    ImagingOptionModel,
    ModeRequest,
    PointsRequest,
    RankRequest,
    RankResponse,
    SelectionRequest,
    TransitionResponse,
)

__all__ = [
    "ClinicalInputModel",
    "CreateSessionRequest",
    "HealthResponse",
    "HintRequest",
    "ImagingOptionModel",
    "ModeRequest",
    "PointsRequest",
    "RankRequest",
    "RankResponse",
    "SelectionRequest",
    "TransitionResponse",
]
