"""
Session State Machine

Pure transitions live in `state`; `CaseSession` wires them to a clock,
the ranking engine, evaluation, gamification and an attempt sink.
"""
from .clock import AsyncioClock, Clock, ClockSubscription, ManualClock
from .machine import CaseSession
from .records import AttemptRecord, AttemptSink, InMemoryAttemptStore
from .state import DenialReason, SessionPhase, SessionState, Transition

__all__ = [
    "AsyncioClock",
    "Clock",
    "ClockSubscription",
    "ManualClock",
    "CaseSession",
    "AttemptRecord",
    "AttemptSink",
    "InMemoryAttemptStore",
    "DenialReason",
    "SessionPhase",
    "SessionState",
    "Transition",
]
