"""
AIIE - FastAPI Application

HTTP surface for the presentation layer:
- Case catalog and engine rankings
- Ad-hoc ranking and points calculation
- Learner sessions (mode, hints, selection, submit, review, retry)
- Attempt history
"""
from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aiie import config
from aiie.core.clinical import validate_catalog, validate_clinical_input
from aiie.core.gamification import compute_points
from aiie.core.session import AsyncioClock, CaseSession, Transition
from aiie.models import (
    CreateSessionRequest,
    HealthResponse,
    HintRequest,
    ModeRequest,
    PointsRequest,
    RankRequest,
    RankResponse,
    SelectionRequest,
    TransitionResponse,
)
from aiie.services import SessionNotFoundError, SessionService
from aiie.utils import (
    AppropriatenessError,
    CaseNotFoundError,
    InputError,
    setup_logging,
)

logger = logging.getLogger(__name__)

# ---- Shared services ----
_clock = AsyncioClock()
_session_service = SessionService(clock=_clock)
START_TIME = datetime.now()


# ---- Application Lifespan ----

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the session clock for the lifetime of the app."""
    setup_logging(config.LOG_LEVEL, config.LOG_FILE or None)
    _clock.start()
    logger.info("AIIE API ready to accept requests")
    yield
    _session_service.close_all()
    await _clock.stop()
    logger.info("AIIE API shut down.")


# ---- FastAPI Application ----

app = FastAPI(
    title="AIIE Imaging Appropriateness API",
    description="ACR-style imaging appropriateness ranking and case-based learning sessions",
    version=config.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppropriatenessError)
async def appropriateness_error_handler(request: Request, exc: AppropriatenessError):
    if isinstance(exc, InputError):
        status_code = 422
    elif isinstance(exc, CaseNotFoundError):
        status_code = 404
    else:
        logger.error(f"{request.url.path} failed: {exc.message}")
        status_code = 500
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# ---- Utility Functions ----

def _get_session_or_404(session_id: str) -> CaseSession:
    try:
        return _session_service.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found") from None


def _transition_response(session: CaseSession, transition: Transition) -> TransitionResponse:
    return TransitionResponse(
        accepted=transition.accepted,
        reason=transition.reason.value if transition.reason else None,
        reason_kind=transition.reason.kind if transition.reason else None,
        session=session.to_dict(),
    )


# ---- API Endpoints ----

@app.get("/", response_model=HealthResponse, tags=["Health"])
async def root():
    """API root - health check."""
    return await health_check()


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=config.API_VERSION,
        timestamp=datetime.now().isoformat(),
        uptime_seconds=(datetime.now() - START_TIME).total_seconds(),
        active_sessions=_session_service.active_sessions,
    )


@app.get("/api/v1/cases", tags=["Cases"])
async def list_cases():
    """List available teaching cases."""
    cases = _session_service.repository.list_cases()
    return {"cases": [c.summary() for c in cases]}


@app.get("/api/v1/cases/{case_id}", tags=["Cases"])
async def get_case(case_id: str):
    """Case presentation and imaging catalog.  Hints and the answer key stay server-side."""
    case = _session_service.get_case(case_id)
    return {
        **case.summary(),
        "clinical_input": case.clinical_input.to_dict(),
        "imaging_catalog": [o.to_dict() for o in case.imaging_catalog],
    }


@app.get("/api/v1/cases/{case_id}/ranking", response_model=RankResponse, tags=["Cases"])
async def case_ranking(case_id: str):
    """Engine ranking for a case (cached by case id)."""
    case = _session_service.get_case(case_id)
    results = _session_service.engine.rank_case(case)
    return RankResponse(
        results=[r.to_dict() for r in results],
        optimal_option_id=results[0].imaging_option_id if results else None,
    )


@app.post("/api/v1/rank", response_model=RankResponse, tags=["Ranking"])
async def rank_presentation(request: RankRequest):
    """Rank an arbitrary presentation against an arbitrary catalog."""
    clinical_input = validate_clinical_input(request.clinical_input.model_dump())
    catalog = validate_catalog([o.model_dump() for o in request.imaging_catalog])
    results = _session_service.engine.rank(clinical_input, catalog)
    return RankResponse(
        results=[r.to_dict() for r in results],
        optimal_option_id=results[0].imaging_option_id if results else None,
    )


@app.post("/api/v1/points", tags=["Gamification"])
async def points(request: PointsRequest):
    """Points breakdown for a completed case."""
    breakdown = compute_points(
        request.effective_acr_rating,
        request.current_streak_days,
        request.time_spent_seconds,
        request.hints_used,
    )
    return breakdown.to_dict()


@app.post("/api/v1/sessions", status_code=201, tags=["Sessions"])
async def create_session(request: CreateSessionRequest):
    """Open a case for a learner; the attempt starts immediately."""
    session = _session_service.create_session(request.case_id, request.user_id, request.mode)
    return session.to_dict()


@app.get("/api/v1/sessions/{session_id}", tags=["Sessions"])
async def get_session(session_id: str):
    return _get_session_or_404(session_id).to_dict()


@app.post("/api/v1/sessions/{session_id}/mode", response_model=TransitionResponse, tags=["Sessions"])
async def set_mode(session_id: str, request: ModeRequest):
    session = _get_session_or_404(session_id)
    return _transition_response(session, session.set_mode(request.mode))


@app.post("/api/v1/sessions/{session_id}/hints", response_model=TransitionResponse, tags=["Sessions"])
async def reveal_hint(session_id: str, request: HintRequest):
    session = _get_session_or_404(session_id)
    return _transition_response(session, session.reveal_hint(request.index))


@app.post("/api/v1/sessions/{session_id}/selection", response_model=TransitionResponse, tags=["Sessions"])
async def update_selection(session_id: str, request: SelectionRequest):
    """Toggle one option, or clear the selection when no option_id is given."""
    session = _get_session_or_404(session_id)
    if request.option_id is None:
        return _transition_response(session, session.clear_selection())
    return _transition_response(session, session.update_selection(request.option_id))


@app.post("/api/v1/sessions/{session_id}/submit", response_model=TransitionResponse, tags=["Sessions"])
async def submit(session_id: str):
    session = _get_session_or_404(session_id)
    return _transition_response(session, session.submit())


@app.post("/api/v1/sessions/{session_id}/review", response_model=TransitionResponse, tags=["Sessions"])
async def review(session_id: str):
    session = _get_session_or_404(session_id)
    return _transition_response(session, session.review())


@app.post("/api/v1/sessions/{session_id}/retry", response_model=TransitionResponse, tags=["Sessions"])
async def retry(session_id: str):
    session = _get_session_or_404(session_id)
    return _transition_response(session, session.retry())


@app.delete("/api/v1/sessions/{session_id}", status_code=204, tags=["Sessions"])
async def close_session(session_id: str):
    """Leave the case; stops the session's clock subscription."""
    try:
        _session_service.close_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found") from None


@app.get("/api/v1/users/{user_id}/attempts", tags=["Attempts"])
async def user_attempts(user_id: str):
    """Attempt records emitted for a user, with their current streak."""
    attempts = _session_service.attempts_for(user_id)
    return {
        "user_id": user_id,
        "streak_days": _session_service.streak_for(user_id),
        "attempts": [a.to_dict() for a in attempts],
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("aiie.main:app", host="0.0.0.0", port=8000, reload=False)
