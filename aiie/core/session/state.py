"""
Session State Machine — pure transitions

Every learner action is a function `(SessionState, ...) -> Transition`.
SessionState is immutable; a transition either carries the next state
(accepted) or the unchanged state plus a DenialReason.  Nothing here
raises for UI-driven misuse such as a double-clicked submit.

Phases:
    not_started ──start──▶ in_progress ──submit──▶ submitted ──review──▶ reviewing
                               ▲                        │                    │
                               └─────────retry──────────┴────────────────────┘

Evaluation, points and attempt records are attached by the CaseSession
orchestrator (`aiie.core.session.machine`) right after `submit`.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import FrozenSet, Optional, TYPE_CHECKING

from aiie import config
from aiie.core.clinical.base import NO_IMAGING_ID
from aiie.core.evaluation.coordinator import EvaluationResult, SessionMode

if TYPE_CHECKING:
    from aiie.core.gamification.points import PointsBreakdown


class SessionPhase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED   = "submitted"
    REVIEWING   = "reviewing"


class DenialReason(str, Enum):
    """Why an operation was rejected.  See `kind` for the error family."""
    NOT_IN_PROGRESS              = "not_in_progress"
    ALREADY_STARTED              = "already_started"
    ALREADY_SUBMITTED            = "already_submitted"
    NOT_SUBMITTED                = "not_submitted"
    HINTS_UNAVAILABLE_IN_QUIZ    = "hints_unavailable_in_quiz"
    HINT_LIMIT_REACHED           = "hint_limit_reached"
    HINT_OUT_OF_ORDER            = "hint_out_of_order"
    UNKNOWN_OPTION               = "unknown_option"
    RETRY_REQUIRES_LEARNING_MODE = "retry_requires_learning_mode"
    RETRY_NOT_OFFERED            = "retry_not_offered"
    SESSION_CLOSED               = "session_closed"
    INCOMPLETE_SELECTION         = "incomplete_selection"

    @property
    def kind(self) -> str:
        if self is DenialReason.INCOMPLETE_SELECTION:
            return "incomplete_selection"
        return "invalid_transition"


@dataclass(frozen=True)
class SessionState:
    """Mutable-by-replacement per-attempt state of one learner on one case."""
    phase: SessionPhase = SessionPhase.NOT_STARTED
    mode: SessionMode = SessionMode.LEARNING
    max_hints: int = config.MAX_HINTS
    quiz_duration_seconds: int = config.QUIZ_DURATION_SECONDS

    hints_revealed: int = 0
    selection: FrozenSet[str] = frozenset()
    elapsed_seconds: int = 0
    quiz_remaining_seconds: int = config.QUIZ_DURATION_SECONDS
    countdown_active: bool = False

    attempt_number: int = 1
    forced_submission: bool = False
    evaluation: Optional[EvaluationResult] = None
    points: Optional["PointsBreakdown"] = None

    @property
    def submitted(self) -> bool:
        return self.phase in (SessionPhase.SUBMITTED, SessionPhase.REVIEWING)

    @property
    def retry_offered(self) -> bool:
        return (
            self.submitted
            and self.mode == SessionMode.LEARNING
            and not (self.evaluation is not None and self.evaluation.is_correct)
        )

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "mode": self.mode.value,
            "max_hints": self.max_hints,
            "hints_revealed": self.hints_revealed,
            "selection": sorted(self.selection),
            "elapsed_seconds": self.elapsed_seconds,
            "quiz_remaining_seconds": self.quiz_remaining_seconds,
            "countdown_active": self.countdown_active,
            "attempt_number": self.attempt_number,
            "forced_submission": self.forced_submission,
            "retry_offered": self.retry_offered,
            "evaluation": self.evaluation.to_dict() if self.evaluation else None,
            "points": self.points.to_dict() if self.points else None,
        }


@dataclass(frozen=True)
class Transition:
    """Result of applying one operation."""
    state: SessionState
    accepted: bool
    reason: Optional[DenialReason] = None
    time_up: bool = False           # tick drove the countdown to zero

    def __bool__(self) -> bool:
        return self.accepted


def _accept(state: SessionState, time_up: bool = False) -> Transition:
    return Transition(state=state, accepted=True, time_up=time_up)


def _deny(state: SessionState, reason: DenialReason) -> Transition:
    return Transition(state=state, accepted=False, reason=reason)


def _in_progress_guard(state: SessionState) -> Optional[DenialReason]:
    if state.phase == SessionPhase.NOT_STARTED:
        return DenialReason.NOT_IN_PROGRESS
    if state.submitted:
        return DenialReason.ALREADY_SUBMITTED
    return None


def _countdown_fields(state: SessionState, mode: SessionMode) -> dict:
    return {
        "quiz_remaining_seconds": state.quiz_duration_seconds,
        "countdown_active": mode == SessionMode.QUIZ,
    }


# ── Lifecycle ─────────────────────────────────────────────────────────────────

def new_session(
    mode: SessionMode = SessionMode.LEARNING,
    max_hints: int = config.MAX_HINTS,
    quiz_duration_seconds: int = config.QUIZ_DURATION_SECONDS,
) -> SessionState:
    return SessionState(
        mode=SessionMode(mode),
        max_hints=max(0, max_hints),
        quiz_duration_seconds=quiz_duration_seconds,
        quiz_remaining_seconds=quiz_duration_seconds,
    )


def start(state: SessionState) -> Transition:
    """not_started → in_progress; a quiz session starts its countdown."""
    if state.phase != SessionPhase.NOT_STARTED:
        return _deny(state, DenialReason.ALREADY_STARTED)
    return _accept(replace(
        state,
        phase=SessionPhase.IN_PROGRESS,
        **_countdown_fields(state, state.mode),
    ))


def set_mode(state: SessionState, mode: SessionMode) -> Transition:
    """
    Switch learning/quiz while in progress.

    Resets revealed hints.  Quiz restarts the countdown at full duration;
    learning cancels it.  Re-selecting the current mode is a no-op.
    """
    reason = _in_progress_guard(state)
    if reason:
        return _deny(state, reason)
    mode = SessionMode(mode)
    if mode == state.mode:
        return _accept(state)
    return _accept(replace(
        state,
        mode=mode,
        hints_revealed=0,
        **_countdown_fields(state, mode),
    ))


# ── Hints ─────────────────────────────────────────────────────────────────────

def reveal_hint(state: SessionState, index: Optional[int] = None) -> Transition:
    """
    Reveal the next hint (learning mode only).

    Args:
        index: Zero-based hint the UI asked for.  Must be the next
            unrevealed one; omit to simply reveal the next hint.
    """
    reason = _in_progress_guard(state)
    if reason:
        return _deny(state, reason)
    if state.mode != SessionMode.LEARNING:
        return _deny(state, DenialReason.HINTS_UNAVAILABLE_IN_QUIZ)
    if state.hints_revealed >= state.max_hints:
        return _deny(state, DenialReason.HINT_LIMIT_REACHED)
    if index is not None and index != state.hints_revealed:
        return _deny(state, DenialReason.HINT_OUT_OF_ORDER)
    return _accept(replace(state, hints_revealed=state.hints_revealed + 1))


# ── Selection ─────────────────────────────────────────────────────────────────

def update_selection(state: SessionState, option_id: str) -> Transition:
    """
    Toggle one option.

    "no-imaging" is exclusive: choosing it drops every other option, and
    choosing any other option drops it.
    """
    reason = _in_progress_guard(state)
    if reason:
        return _deny(state, reason)

    selection = set(state.selection)
    if option_id == NO_IMAGING_ID:
        selection = set() if NO_IMAGING_ID in selection else {NO_IMAGING_ID}
    else:
        selection.discard(NO_IMAGING_ID)
        if option_id in selection:
            selection.remove(option_id)
        else:
            selection.add(option_id)
    return _accept(replace(state, selection=frozenset(selection)))


def clear_selection(state: SessionState) -> Transition:
    reason = _in_progress_guard(state)
    if reason:
        return _deny(state, reason)
    return _accept(replace(state, selection=frozenset()))


# ── Clock ─────────────────────────────────────────────────────────────────────

def tick(state: SessionState) -> Transition:
    """
    Consume one second.

    Elapsed time advances in both modes.  With a running countdown the
    remaining time drops by one; reaching zero stops the countdown and
    sets `time_up` so the caller runs the forced submission.
    """
    if state.phase != SessionPhase.IN_PROGRESS:
        return _deny(state, DenialReason.NOT_IN_PROGRESS)

    elapsed = state.elapsed_seconds + 1
    if not (state.mode == SessionMode.QUIZ and state.countdown_active):
        return _accept(replace(state, elapsed_seconds=elapsed))

    remaining = max(0, state.quiz_remaining_seconds - 1)
    time_up = remaining == 0
    return _accept(
        replace(
            state,
            elapsed_seconds=elapsed,
            quiz_remaining_seconds=remaining,
            countdown_active=not time_up,
        ),
        time_up=time_up,
    )


# ── Submission ────────────────────────────────────────────────────────────────

def submit(state: SessionState, forced: bool = False) -> Transition:
    """
    in_progress → submitted.

    A manual submit needs a non-empty selection; a forced (time-up)
    submit goes through with whatever is selected, possibly nothing.
    """
    reason = _in_progress_guard(state)
    if reason:
        return _deny(state, reason)
    if not forced and not state.selection:
        return _deny(state, DenialReason.INCOMPLETE_SELECTION)
    return _accept(replace(
        state,
        phase=SessionPhase.SUBMITTED,
        countdown_active=False,
        forced_submission=forced,
    ))


def review(state: SessionState) -> Transition:
    if not state.submitted:
        return _deny(state, DenialReason.NOT_SUBMITTED)
    return _accept(replace(state, phase=SessionPhase.REVIEWING))


def retry(state: SessionState) -> Transition:
    """
    Start a fresh attempt on the same case.

    Only offered in learning mode, after submission, when the answer was
    not correct.  Clears selection, hints and elapsed time; the attempt
    number is the only counter carried over.
    """
    if not state.submitted:
        return _deny(state, DenialReason.NOT_SUBMITTED)
    if state.mode != SessionMode.LEARNING:
        return _deny(state, DenialReason.RETRY_REQUIRES_LEARNING_MODE)
    if state.evaluation is not None and state.evaluation.is_correct:
        return _deny(state, DenialReason.RETRY_NOT_OFFERED)
    return _accept(replace(
        state,
        phase=SessionPhase.IN_PROGRESS,
        hints_revealed=0,
        selection=frozenset(),
        elapsed_seconds=0,
        attempt_number=state.attempt_number + 1,
        forced_submission=False,
        evaluation=None,
        points=None,
        **_countdown_fields(state, state.mode),
    ))
