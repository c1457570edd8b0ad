"""
Attempt records handed to the persistence / analytics layer.

The core only builds the record and calls the sink.  Storage is the
sink's business; sink failures are logged by the session and never
block it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Dict, FrozenSet, List

from aiie.core.gamification.points import PointsBreakdown

AttemptSink = Callable[["AttemptRecord"], None]


@dataclass(frozen=True)
class AttemptRecord:
    case_id: str
    user_id: str
    session_id: str
    selection: FrozenSet[str]
    effective_acr_rating: int
    is_correct: bool
    score: int
    points: PointsBreakdown
    mode: str
    hints_used: int
    elapsed_seconds: int
    attempt_number: int = 1
    forced: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "case_id": self.case_id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "selection": sorted(self.selection),
            "effective_acr_rating": self.effective_acr_rating,
            "is_correct": self.is_correct,
            "score": self.score,
            "points": self.points.to_dict(),
            "mode": self.mode,
            "hints_used": self.hints_used,
            "elapsed_seconds": self.elapsed_seconds,
            "attempt_number": self.attempt_number,
            "forced": self.forced,
            "timestamp": self.timestamp.isoformat(),
        }


class InMemoryAttemptStore:
    """
    Process-local attempt log.

    Stands in for the real persistence layer in the API service; swap in
    any callable taking an AttemptRecord.
    """

    def __init__(self):
        self._by_user: Dict[str, List[AttemptRecord]] = {}

    def __call__(self, record: AttemptRecord) -> None:
        self.record(record)

    def record(self, record: AttemptRecord) -> None:
        self._by_user.setdefault(record.user_id, []).append(record)

    def for_user(self, user_id: str) -> List[AttemptRecord]:
        return list(self._by_user.get(user_id, []))

    def activity_dates(self, user_id: str) -> List[date]:
        return [r.timestamp.date() for r in self._by_user.get(user_id, [])]
