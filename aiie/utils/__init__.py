"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    AppropriatenessError,
    InputError,
    RuleTableError,
    RuleEvaluationError,
    CaseNotFoundError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "AppropriatenessError",
    "InputError",
    "RuleTableError",
    "RuleEvaluationError",
    "CaseNotFoundError",
]
