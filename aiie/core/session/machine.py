"""
Case Session

Orchestrates one learner working one case: owns the SessionState, the
clock subscription and the (cached) ranking, and runs evaluation +
gamification when the attempt is submitted.

Usage:
    from aiie.core.session import CaseSession, ManualClock

    clock = ManualClock()
    session = CaseSession(case, user_id="u-1", clock=clock, attempt_sink=store)
    session.start()
    session.update_selection("xr-ankle")
    result = session.submit()
    session.state.evaluation.score

Every operation returns a Transition.  Denials are normal return
values; the UI decides how to surface them.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import List, Optional, Tuple

from aiie import config
from aiie.core.cases.repository import CaseRecord
from aiie.core.clinical.base import NO_IMAGING_ID, Modality, ScoringResult
from aiie.core.evaluation.coordinator import SessionMode, evaluate_for_session
from aiie.core.gamification.points import compute_points
from aiie.core.ranking.engine import AppropriatenessEngine, get_default_engine
from . import state as transitions
from .clock import Clock, ClockSubscription
from .records import AttemptRecord, AttemptSink
from .state import DenialReason, SessionState, Transition

logger = logging.getLogger(__name__)


class CaseSession:
    """
    One learner, one case, one or more attempts.

    Not thread-safe and does not need to be: sessions share no mutable
    state and all ticks arrive on the clock's thread/loop.
    """

    def __init__(
        self,
        case: CaseRecord,
        user_id: str,
        *,
        mode: SessionMode = SessionMode.LEARNING,
        clock: Optional[Clock] = None,
        engine: Optional[AppropriatenessEngine] = None,
        attempt_sink: Optional[AttemptSink] = None,
        streak_days: int = 0,
        max_hints: Optional[int] = None,
        quiz_duration_seconds: Optional[int] = None,
        session_id: Optional[str] = None,
    ):
        self.case = case
        self.user_id = user_id
        self.session_id = session_id or f"sess_{uuid.uuid4().hex[:12]}"
        self.streak_days = max(0, streak_days)

        self.engine = engine or get_default_engine()
        self.ranking: List[ScoringResult] = self.engine.rank_case(case)

        self._clock = clock
        self._subscription: Optional[ClockSubscription] = None
        self._attempt_sink = attempt_sink
        self._closed = False
        self.attempts: List[AttemptRecord] = []

        hint_cap = config.MAX_HINTS if max_hints is None else max_hints
        self._state = transitions.new_session(
            mode=mode,
            max_hints=min(hint_cap, len(case.hints)),
            quiz_duration_seconds=(
                config.QUIZ_DURATION_SECONDS if quiz_duration_seconds is None else quiz_duration_seconds
            ),
        )

        self._option_ids = {o.id for o in case.imaging_catalog}
        # A catalog `none` entry behaves exactly like the no-imaging sentinel
        self._no_imaging_aliases = {NO_IMAGING_ID} | {
            o.id for o in case.imaging_catalog if o.modality == Modality.NONE
        }

    # ── Read-only views ───────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def revealed_hints(self) -> Tuple[str, ...]:
        return self.case.hints[:self._state.hints_revealed]

    @property
    def ticking(self) -> bool:
        return self._subscription is not None and self._subscription.active

    # ── Internals ─────────────────────────────────────────────────────────

    def _apply(self, transition: Transition, action: str) -> Transition:
        if transition.accepted:
            self._state = transition.state
        else:
            logger.debug(
                f"Session {self.session_id}: {action} denied ({transition.reason.value})"
            )
        return transition

    def _closed_denial(self) -> Transition:
        return Transition(state=self._state, accepted=False, reason=DenialReason.SESSION_CLOSED)

    def _start_ticking(self) -> None:
        if self._clock is not None and not self.ticking:
            self._subscription = self._clock.subscribe(self.tick)

    def _stop_ticking(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _emit(self, record: AttemptRecord) -> None:
        self.attempts.append(record)
        if self._attempt_sink is None:
            return
        try:
            self._attempt_sink(record)
        except Exception as exc:
            # Fire-and-forget: persistence trouble never breaks the session
            logger.error(
                f"Session {self.session_id}: attempt sink raised {exc}",
                exc_info=True
            )

    # ── Operations ────────────────────────────────────────────────────────

    def start(self) -> Transition:
        if self._closed:
            return self._closed_denial()
        result = self._apply(transitions.start(self._state), "start")
        if result.accepted:
            self._start_ticking()
            logger.info(
                f"Session {self.session_id}: user {self.user_id} started case "
                f"{self.case.id} in {self._state.mode.value} mode"
            )
        return result

    def set_mode(self, mode: SessionMode) -> Transition:
        if self._closed:
            return self._closed_denial()
        return self._apply(transitions.set_mode(self._state, mode), "set_mode")

    def reveal_hint(self, index: Optional[int] = None) -> Transition:
        if self._closed:
            return self._closed_denial()
        return self._apply(transitions.reveal_hint(self._state, index), "reveal_hint")

    def update_selection(self, option_id: str) -> Transition:
        if self._closed:
            return self._closed_denial()
        if option_id in self._no_imaging_aliases:
            option_id = NO_IMAGING_ID
        elif option_id not in self._option_ids:
            return self._apply(
                Transition(state=self._state, accepted=False, reason=DenialReason.UNKNOWN_OPTION),
                "update_selection",
            )
        return self._apply(transitions.update_selection(self._state, option_id), "update_selection")

    def clear_selection(self) -> Transition:
        if self._closed:
            return self._closed_denial()
        return self._apply(transitions.clear_selection(self._state), "clear_selection")

    def tick(self) -> Transition:
        """One second elapsed.  Called by the clock, or directly by a caller."""
        if self._closed:
            return self._closed_denial()
        result = self._apply(transitions.tick(self._state), "tick")
        if result.time_up:
            logger.info(f"Session {self.session_id}: quiz time expired, forcing submission")
            return self._submit(forced=True)
        return result

    def submit(self) -> Transition:
        if self._closed:
            return self._closed_denial()
        return self._submit(forced=False)

    def _submit(self, forced: bool) -> Transition:
        result = self._apply(transitions.submit(self._state, forced=forced), "submit")
        if not result.accepted:
            return result

        self._stop_ticking()
        submitted = result.state
        evaluation = evaluate_for_session(submitted.selection, self.ranking, submitted)
        points = compute_points(
            evaluation.effective_acr_rating,
            self.streak_days,
            submitted.elapsed_seconds,
            submitted.hints_revealed,
        )
        self._state = replace(submitted, evaluation=evaluation, points=points)

        self._emit(AttemptRecord(
            case_id=self.case.id,
            user_id=self.user_id,
            session_id=self.session_id,
            selection=submitted.selection,
            effective_acr_rating=evaluation.effective_acr_rating,
            is_correct=evaluation.is_correct,
            score=evaluation.score,
            points=points,
            mode=submitted.mode.value,
            hints_used=submitted.hints_revealed,
            elapsed_seconds=submitted.elapsed_seconds,
            attempt_number=submitted.attempt_number,
            forced=forced,
        ))
        logger.info(
            f"Session {self.session_id}: attempt {submitted.attempt_number} submitted"
            f"{' (time up)' if forced else ''}: rating={evaluation.effective_acr_rating}, "
            f"score={evaluation.score}, points={points.total}"
        )
        return Transition(state=self._state, accepted=True)

    def review(self) -> Transition:
        if self._closed:
            return self._closed_denial()
        return self._apply(transitions.review(self._state), "review")

    def retry(self) -> Transition:
        if self._closed:
            return self._closed_denial()
        result = self._apply(transitions.retry(self._state), "retry")
        if result.accepted:
            self._start_ticking()
            logger.info(f"Session {self.session_id}: retry, attempt {self._state.attempt_number}")
        return result

    def close(self) -> None:
        """Leave the case.  Cancels the clock subscription; idempotent."""
        if self._closed:
            return
        self._stop_ticking()
        self._closed = True
        logger.debug(f"Session {self.session_id}: closed")

    # ── Serialisation ─────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "case_id": self.case.id,
            "user_id": self.user_id,
            "closed": self._closed,
            "revealed_hints": list(self.revealed_hints),
            "state": self._state.to_dict(),
        }
